"""
Typed transition contexts.

Each context carries the data a particular target state needs for its side
effects.  They are frozen value objects; the engine validates them before any
mutation happens, and they are stored verbatim in the StateChanged event.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any
from uuid import UUID

from asset_kernel.domain.lifecycle import LifecycleState


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclass(frozen=True)
class DeployContext:
    """Deploying an asset to a desk.  User fields left as None keep the current value."""

    desk: str
    user_name: str | None = None
    user_email: str | None = None

    def problems(self) -> list[str]:
        return ["desk is required"] if _blank(self.desk) else []


@dataclass(frozen=True)
class DeliveryContext:
    """Arrival of an asset at a site."""

    to_site: str
    location: str
    floor: str
    desk: str | None = None

    def problems(self) -> list[str]:
        errors = []
        if _blank(self.to_site):
            errors.append("to_site is required")
        if _blank(self.location):
            errors.append("location is required")
        if _blank(self.floor):
            errors.append("floor is required")
        return errors


@dataclass(frozen=True)
class PickupContext:
    """Carrier handover when an asset goes into transit."""

    destination_site: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None

    def problems(self) -> list[str]:
        return []


@dataclass(frozen=True)
class SalvageSealContext:
    """Issued by batch finalization; the only ticket into Salvaged."""

    batch_id: str
    batch_code: str
    manifest_number: str

    def problems(self) -> list[str]:
        errors = []
        try:
            UUID(str(self.batch_id))
        except ValueError:
            errors.append("batch_id must be a UUID")
        if _blank(self.manifest_number):
            errors.append("manifest_number is required")
        return errors


TransitionContext = DeployContext | DeliveryContext | PickupContext | SalvageSealContext

CONTEXT_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (DeployContext, DeliveryContext, PickupContext, SalvageSealContext)
}


@dataclass(frozen=True)
class ContextRule:
    """Which context type a target state takes, and whether it is mandatory."""

    context_type: type | None = None
    required: bool = False


NO_CONTEXT = ContextRule()

CONTEXT_RULES: dict[LifecycleState, ContextRule] = {
    LifecycleState.DEPLOYED: ContextRule(DeployContext, required=True),
    LifecycleState.DELIVERED: ContextRule(DeliveryContext, required=True),
    LifecycleState.IN_TRANSIT: ContextRule(PickupContext, required=False),
    LifecycleState.SALVAGED: ContextRule(SalvageSealContext, required=True),
}


def context_rule(target: LifecycleState) -> ContextRule:
    return CONTEXT_RULES.get(target, NO_CONTEXT)


def encode_context(context: Any) -> dict[str, Any] | None:
    if context is None:
        return None
    return {"kind": type(context).__name__, **asdict(context)}


def decode_context(data: dict[str, Any] | None) -> Any:
    if data is None:
        return None
    values = dict(data)
    cls = CONTEXT_TYPES[values.pop("kind")]
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in values.items() if k in names})
