"""
Per-state side effects.

Responsibility:
    Applies the field mutations that accompany entry into a lifecycle state.
    The mapping ``SIDE_EFFECTS`` is the single place that says what each
    target state does to the record.

Architecture position:
    Kernel > Domain.  Functions mutate whatever record object they are given
    by attribute name; they do not import the ORM and do no I/O.  The
    LifecycleEngine calls ``apply_side_effects`` after the transition and the
    context have been validated.

Invariants enforced:
    - Entering SalvagePending clears every field in SENSITIVE_FIELDS.
      The values are not recoverable afterwards.
    - Entering Salvaged mutates nothing; it only reports consistency
      warnings (missing tag or site) for the caller to log.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from asset_kernel.domain.contexts import DeliveryContext, DeployContext, PickupContext
from asset_kernel.domain.lifecycle import LifecycleState
from asset_kernel.domain.policy import WorkflowPolicy

SENSITIVE_FIELDS: tuple[str, ...] = (
    "ip_address",
    "mac_address",
    "wall_port",
    "switch_name",
    "switch_port",
    "net_name",
    "assigned_user_name",
    "assigned_user_email",
    "deployed_to_user",
    "deployed_to_email",
    "current_desk",
    "desk",
    "phone_number",
    "extension",
    "deployed_at",
    "deployed_by",
)


@dataclass(frozen=True)
class SideEffectInput:
    """Everything a side effect may read besides the record itself."""

    actor: str
    now: datetime
    context: Any
    policy: WorkflowPolicy


def _enter_deployed(asset: Any, inp: SideEffectInput) -> list[str]:
    ctx: DeployContext = inp.context
    asset.current_desk = ctx.desk
    asset.deployed_at = inp.now
    asset.deployed_by = inp.actor
    if ctx.user_name is not None:
        asset.deployed_to_user = ctx.user_name
    if ctx.user_email is not None:
        asset.deployed_to_email = ctx.user_email
    return []


def _enter_delivered(asset: Any, inp: SideEffectInput) -> list[str]:
    ctx: DeliveryContext = inp.context
    asset.current_site = ctx.to_site
    asset.location = ctx.location
    asset.floor = ctx.floor
    asset.desk = ctx.desk
    asset.delivered_at = inp.now
    asset.delivered_by = inp.actor
    return []


def _enter_in_storage(asset: Any, inp: SideEffectInput) -> list[str]:
    site = asset.current_site
    if not site:
        return ["no current site; storage location left unchanged"]
    asset.current_storage_location = inp.policy.storage_location_for(site)
    asset.floor = inp.policy.storage_floor
    asset.location = site
    return []


def _enter_ready_for_shipment(asset: Any, inp: SideEffectInput) -> list[str]:
    asset.ready_for_pickup_at = inp.now
    asset.ready_for_pickup_by = inp.actor
    return []


def _enter_in_transit(asset: Any, inp: SideEffectInput) -> list[str]:
    asset.picked_up_at = inp.now
    asset.picked_up_by = inp.actor
    ctx: PickupContext | None = inp.context
    if ctx is not None:
        asset.destination_site = ctx.destination_site
        asset.carrier = ctx.carrier
        asset.tracking_number = ctx.tracking_number
    return []


def _enter_salvage_pending(asset: Any, inp: SideEffectInput) -> list[str]:
    clear_sensitive_fields(asset)
    return []


def _enter_salvaged(asset: Any, inp: SideEffectInput) -> list[str]:
    warnings = []
    if not asset.asset_tag:
        warnings.append("salvaged asset has no asset tag")
    if not asset.current_site:
        warnings.append("salvaged asset has no current site")
    return warnings


def _no_effect(asset: Any, inp: SideEffectInput) -> list[str]:
    return []


SIDE_EFFECTS: dict[LifecycleState, Callable[[Any, SideEffectInput], list[str]]] = {
    LifecycleState.DEPLOYED: _enter_deployed,
    LifecycleState.DELIVERED: _enter_delivered,
    LifecycleState.IN_STORAGE: _enter_in_storage,
    LifecycleState.READY_FOR_SHIPMENT: _enter_ready_for_shipment,
    LifecycleState.IN_TRANSIT: _enter_in_transit,
    LifecycleState.REDEPLOY_PENDING: _no_effect,
    LifecycleState.SALVAGE_PENDING: _enter_salvage_pending,
    LifecycleState.SALVAGED: _enter_salvaged,
}


def clear_sensitive_fields(asset: Any) -> None:
    for name in SENSITIVE_FIELDS:
        setattr(asset, name, None)


def apply_side_effects(asset: Any, target: LifecycleState, inp: SideEffectInput) -> list[str]:
    """
    Apply the side effects of entering ``target`` to ``asset``.

    Returns:
        Non-fatal consistency warnings, for the caller to log.
    """
    return SIDE_EFFECTS[target](asset, inp)
