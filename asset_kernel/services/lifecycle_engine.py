"""
LifecycleEngine -- validated lifecycle transitions with side effects.

Responsibility:
    The only component that changes ``Asset.lifecycle_state``.  For every
    transition it: loads the asset with a row lock, checks the transition
    table, validates the typed context, applies the per-state side effects,
    stamps updated_at/updated_by, saves with the version check and appends
    exactly one ``StateChanged_{target}`` event, all in one savepoint.

Architecture position:
    Kernel > Services.  Called directly for deploy/replace/redeploy and by
    TransferWorkflow and SalvageBatchWorkflow, which drive it through
    ``apply_transition`` inside their own unit of work.

Invariants enforced:
    - A rejected transition changes nothing and writes no event.
    - ``Salvaged`` is entered only with a SalvageSealContext for a batch that
      is being finalized and that the asset belongs to.
    - ``replace_asset`` is all-or-nothing across both assets.

Failure modes (returned as OperationResult, never raised by public methods):
    - NOT_FOUND, INVALID_TRANSITION, VALIDATION_FAILED, INELIGIBLE, CONFLICT.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock
from asset_kernel.domain.contexts import (
    DeliveryContext,
    DeployContext,
    PickupContext,
    SalvageSealContext,
    context_rule,
)
from asset_kernel.domain.dtos import AssetEventRecord, AssetInfo, ReplacementOutcome
from asset_kernel.domain.events import (
    AssetRegistered,
    LocationReassignedAfterDelivery,
    Replaced,
    ReplacedBy,
    StateChanged,
)
from asset_kernel.domain.field_map import (
    EDITABLE_FIELDS,
    REGISTRATION_FIELDS,
    normalize_field_value,
)
from asset_kernel.domain.lifecycle import (
    LifecycleState,
    can_transition,
    coerce_state,
    is_transition_permitted,
)
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult
from asset_kernel.domain.side_effects import SideEffectInput, apply_side_effects
from asset_kernel.exceptions import (
    FieldValidationError,
    InvalidContextError,
    InvalidInitialStateError,
    InvalidTransitionError,
    MissingContextError,
    NotDeliveredError,
    SelfReplacementError,
    UnknownFieldError,
    UnknownLifecycleStateError,
)
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.models.asset import Asset
from asset_kernel.selectors.asset_selector import AssetSelector
from asset_kernel.services.asset_store import AssetStore
from asset_kernel.services.base import BaseService
from asset_kernel.services.event_log import EventLog

logger = get_logger("services.lifecycle_engine")


class LifecycleEngine(BaseService):
    """
    Drives assets through the lifecycle state machine.

    Usage:
        engine = LifecycleEngine(session, clock)
        result = engine.deploy_asset("LT-0001", "4F-12", "Jane Doe", actor="tech1")
        if not result.is_success:
            print(result.status, result.error_code, result.message)
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WorkflowPolicy | None = None,
        auto_commit: bool = False,
    ):
        super().__init__(session, clock, policy, auto_commit)
        self._store = AssetStore(session)
        self._events = EventLog(session, self._clock)
        self._assets = AssetSelector(session)

    # ------------------------------------------------------------------
    # Core transition (raises; joins the caller's unit of work)
    # ------------------------------------------------------------------

    @staticmethod
    def can_transition(current: LifecycleState | str, target: LifecycleState | str) -> bool:
        """Pure transition-table lookup."""
        return can_transition(current, target)

    def _validate_context(self, target: LifecycleState, context: Any) -> None:
        rule = context_rule(target)
        if context is None:
            if rule.required:
                raise MissingContextError(target.value, rule.context_type.__name__)
            return
        if rule.context_type is None:
            raise InvalidContextError(
                target.value, f"takes no context, got {type(context).__name__}"
            )
        if not isinstance(context, rule.context_type):
            raise InvalidContextError(
                target.value,
                f"expected {rule.context_type.__name__}, got {type(context).__name__}",
            )
        problems = context.problems()
        if problems:
            raise InvalidContextError(target.value, "; ".join(problems))

    def _verify_seal(self, asset: Asset, seal: SalvageSealContext) -> None:
        batch = self._store.get_batch(seal.batch_id)
        if batch is None or not batch.is_finalized:
            raise InvalidContextError(
                LifecycleState.SALVAGED.value,
                f"batch {seal.batch_code} is not being finalized",
            )
        if asset.salvage_batch_id != batch.id:
            raise InvalidContextError(
                LifecycleState.SALVAGED.value,
                f"asset {asset.asset_tag} is not a member of batch {batch.batch_code}",
            )

    def apply_transition(
        self,
        asset_tag: str,
        target: LifecycleState | str,
        actor: str,
        context: Any = None,
    ) -> tuple[Asset, LifecycleState]:
        """
        Perform one transition inside the caller's unit of work.

        Returns:
            The updated asset and the state it left.

        Raises:
            AssetNotFoundError, InvalidTransitionError, MissingContextError,
            InvalidContextError, ConcurrentModificationError.
        """
        # Multi-asset operations bind another tag (or none) around this call.
        with LogContext.bind(asset_tag=asset_tag):
            return self._apply_transition(asset_tag, target, actor, context)

    def _apply_transition(
        self,
        asset_tag: str,
        target: LifecycleState | str,
        actor: str,
        context: Any,
    ) -> tuple[Asset, LifecycleState]:
        try:
            target_state = coerce_state(target)
        except ValueError:
            raise UnknownLifecycleStateError(str(target)) from None

        asset = self._store.get_for_update(asset_tag)
        current = LifecycleState(asset.lifecycle_state)

        if not is_transition_permitted(current, target_state, context):
            raise InvalidTransitionError(asset_tag, current.value, target_state.value)

        self._validate_context(target_state, context)
        if target_state is LifecycleState.SALVAGED:
            self._verify_seal(asset, context)

        now = self._clock.now()
        warnings = apply_side_effects(
            asset,
            target_state,
            SideEffectInput(actor=actor, now=now, context=context, policy=self._policy),
        )
        for warning in warnings:
            logger.warning(
                "lifecycle_consistency_warning",
                extra={"target_state": target_state.value, "warning": warning},
            )

        asset.lifecycle_state = target_state
        asset.updated_at = now
        asset.updated_by = actor
        self._store.save(asset)

        self._events.append(
            StateChanged(old_state=current, new_state=target_state, context=context),
            actor,
            asset_tag=asset_tag,
        )
        logger.info(
            "asset_state_changed",
            extra={
                "from_state": current.value,
                "to_state": target_state.value,
            },
        )
        return asset, current

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def transition_to_state(
        self,
        asset_tag: str,
        target: LifecycleState | str,
        *,
        actor: str,
        context: Any = None,
    ) -> OperationResult[AssetInfo]:
        """Generic transition with an optional typed context."""
        return self._run(
            "transition_to_state",
            lambda: AssetInfo.from_model(
                self.apply_transition(asset_tag, target, actor, context)[0]
            ),
            actor=actor,
            asset_tag=asset_tag,
            target_state=str(getattr(target, "value", target)),
        )

    def deploy_asset(
        self,
        asset_tag: str,
        desk: str,
        user_name: str | None = None,
        user_email: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        return self.transition_to_state(
            asset_tag,
            LifecycleState.DEPLOYED,
            actor=actor,
            context=DeployContext(desk=desk, user_name=user_name, user_email=user_email),
        )

    def mark_salvage_pending(self, asset_tag: str, *, actor: str) -> OperationResult[AssetInfo]:
        return self.transition_to_state(asset_tag, LifecycleState.SALVAGE_PENDING, actor=actor)

    def mark_ready_for_shipment(self, asset_tag: str, *, actor: str) -> OperationResult[AssetInfo]:
        return self.transition_to_state(asset_tag, LifecycleState.READY_FOR_SHIPMENT, actor=actor)

    def pickup_asset(
        self,
        asset_tag: str,
        destination_site: str | None = None,
        carrier: str | None = None,
        tracking_number: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        """Carrier picks the asset up: ReadyForShipment -> InTransit."""
        context = None
        if destination_site or carrier or tracking_number:
            context = PickupContext(
                destination_site=destination_site,
                carrier=carrier,
                tracking_number=tracking_number,
            )
        return self.transition_to_state(
            asset_tag, LifecycleState.IN_TRANSIT, actor=actor, context=context
        )

    def deliver_asset(
        self,
        asset_tag: str,
        to_site: str,
        location: str,
        floor: str,
        desk: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        return self.transition_to_state(
            asset_tag,
            LifecycleState.DELIVERED,
            actor=actor,
            context=DeliveryContext(to_site=to_site, location=location, floor=floor, desk=desk),
        )

    def replace_asset(
        self,
        old_asset_tag: str,
        new_asset_tag: str,
        desk: str,
        user_name: str | None = None,
        user_email: str | None = None,
        *,
        actor: str,
        send_old_to_salvage: bool = True,
    ) -> OperationResult[ReplacementOutcome]:
        """
        Deploy ``new_asset_tag`` in place of ``old_asset_tag``.

        The old asset goes to SalvagePending (or RedeployPending when
        ``send_old_to_salvage`` is False).  Linked Replaced / ReplacedBy events
        are written.  If either side fails, neither asset changes.
        """

        def work() -> ReplacementOutcome:
            if old_asset_tag == new_asset_tag:
                raise SelfReplacementError(old_asset_tag)
            disposition = (
                LifecycleState.SALVAGE_PENDING
                if send_old_to_salvage
                else LifecycleState.REDEPLOY_PENDING
            )
            new_asset, _ = self.apply_transition(
                new_asset_tag,
                LifecycleState.DEPLOYED,
                actor,
                DeployContext(desk=desk, user_name=user_name, user_email=user_email),
            )
            old_asset, _ = self.apply_transition(old_asset_tag, disposition, actor)

            self._events.append(
                Replaced(
                    replaced_asset_tag=old_asset_tag,
                    desk=desk,
                    user_name=user_name,
                    user_email=user_email,
                ),
                actor,
                asset_tag=new_asset_tag,
            )
            self._events.append(
                ReplacedBy(replacement_asset_tag=new_asset_tag, disposition=disposition.value),
                actor,
                asset_tag=old_asset_tag,
            )
            return ReplacementOutcome(
                new_asset=AssetInfo.from_model(new_asset),
                old_asset=AssetInfo.from_model(old_asset),
            )

        return self._run(
            "replace_asset",
            work,
            actor=actor,
            asset_tag=old_asset_tag,
            new_asset_tag=new_asset_tag,
        )

    def redeploy_asset(
        self,
        asset_tag: str,
        new_desk: str | None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        """
        Put an asset back into service at a new desk, keeping its user.

        An empty desk sends the asset to InStorage instead.
        """
        if new_desk is None or not new_desk.strip():
            return self.transition_to_state(asset_tag, LifecycleState.IN_STORAGE, actor=actor)
        return self.transition_to_state(
            asset_tag,
            LifecycleState.DEPLOYED,
            actor=actor,
            context=DeployContext(desk=new_desk),
        )

    def reassign_location_after_delivery(
        self,
        asset_tag: str,
        location: str,
        floor: str,
        desk: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        """Correct the location of a Delivered asset without changing its state."""

        def work() -> AssetInfo:
            asset = self._store.get_for_update(asset_tag)
            if asset.lifecycle_state != LifecycleState.DELIVERED:
                raise NotDeliveredError(asset_tag, LifecycleState(asset.lifecycle_state).value)
            if not location or not location.strip():
                raise FieldValidationError("location", location, "a value is required")
            if not floor or not floor.strip():
                raise FieldValidationError("floor", floor, "a value is required")

            event = LocationReassignedAfterDelivery(
                previous_location=asset.location,
                previous_floor=asset.floor,
                previous_desk=asset.desk,
                location=location,
                floor=floor,
                desk=desk,
            )
            asset.location = location
            asset.floor = floor
            asset.desk = desk
            asset.updated_at = self._clock.now()
            asset.updated_by = actor
            self._store.save(asset)
            self._events.append(event, actor, asset_tag=asset_tag)
            return AssetInfo.from_model(asset)

        return self._run(
            "reassign_location_after_delivery",
            work,
            actor=actor,
            asset_tag=asset_tag,
        )

    def register_asset(
        self,
        asset_tag: str,
        *,
        actor: str,
        lifecycle_state: LifecycleState | str = LifecycleState.IN_STORAGE,
        **attributes: str | date | Decimal | None,
    ) -> OperationResult[AssetInfo]:
        """
        Add a new asset record.

        ``attributes`` may name any editable field plus the registration-only
        fields (site, storage location, procurement dates and price).  String
        values of editable fields go through the same validation as inline
        edits.  Assets cannot be registered as Salvaged.
        """

        def work() -> AssetInfo:
            if not asset_tag or not asset_tag.strip():
                raise FieldValidationError("asset_tag", asset_tag, "a value is required")
            if len(asset_tag) > 50:
                raise FieldValidationError("asset_tag", asset_tag, "cannot exceed 50 characters")
            try:
                state = coerce_state(lifecycle_state)
            except ValueError:
                raise UnknownLifecycleStateError(str(lifecycle_state)) from None
            if state is LifecycleState.SALVAGED:
                raise InvalidInitialStateError(asset_tag, state.value)

            now = self._clock.now()
            asset = Asset(
                asset_tag=asset_tag,
                lifecycle_state=state,
                created_at=now,
                created_by=actor,
                updated_at=now,
                updated_by=actor,
            )
            for name, value in attributes.items():
                if name not in REGISTRATION_FIELDS:
                    raise UnknownFieldError(name)
                if name in EDITABLE_FIELDS and (value is None or isinstance(value, str)):
                    _, value = normalize_field_value(name, value, self._policy)
                setattr(asset, name, value)

            self._store.add(asset)
            self._events.append(
                AssetRegistered(lifecycle_state=state.value, current_site=asset.current_site),
                actor,
                asset_tag=asset_tag,
            )
            return AssetInfo.from_model(asset)

        return self._run("register_asset", work, actor=actor, asset_tag=asset_tag)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_asset(self, asset_tag: str) -> AssetInfo | None:
        return self._assets.get(asset_tag)

    def history(self, asset_tag: str) -> tuple[AssetEventRecord, ...]:
        return self._events.history(asset_tag)

    def assets_ready_for_shipment(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self._assets.ready_for_shipment(site)

    def assets_in_transit(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self._assets.in_transit(site)

    def assets_delivered(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self._assets.delivered(site)

    def assets_in_storage(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self._assets.in_storage(site)

    def assets_salvage_pending(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self._assets.salvage_pending(site)
