"""
TransferWorkflow -- inter-site shipment legs for single assets.

Responsibility:
    Creates, ships and receives transfers and answers transfer queries.
    Shipping and receiving drive the asset's lifecycle through
    LifecycleEngine in the same savepoint as the transfer's own state change.

Architecture position:
    Kernel > Services.  Depends on LifecycleEngine, EventLog and
    TransferSelector.

Invariants enforced:
    - Transfer state follows VALID_TRANSFER_TRANSITIONS.
    - The transfer moves to Shipped / Received only if the matching lifecycle
      transition succeeded; otherwise both roll back together.
    - from_site / from_storage_bin are snapshotted at creation.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock
from asset_kernel.domain.contexts import DeliveryContext
from asset_kernel.domain.dtos import TransferInfo
from asset_kernel.domain.events import TransferCreated, TransferReceived, TransferShipped
from asset_kernel.domain.lifecycle import TRANSFERABLE_STATES, LifecycleState
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult
from asset_kernel.domain.transfer import UNKNOWN_SITE, TransferState, can_advance_transfer
from asset_kernel.exceptions import (
    FieldValidationError,
    InvalidTransferTransitionError,
    TransferNotAllowedError,
    TransferNotFoundError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.transfer import AssetTransfer
from asset_kernel.selectors.transfer_selector import TransferSelector
from asset_kernel.services.asset_store import AssetStore, coerce_uuid
from asset_kernel.services.base import BaseService
from asset_kernel.services.event_log import EventLog
from asset_kernel.services.lifecycle_engine import LifecycleEngine

logger = get_logger("services.transfer_workflow")


class TransferWorkflow(BaseService):
    """Draft -> Shipped -> Received, coupled to the asset lifecycle."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WorkflowPolicy | None = None,
        auto_commit: bool = False,
        lifecycle: LifecycleEngine | None = None,
    ):
        super().__init__(session, clock, policy, auto_commit)
        self._lifecycle = lifecycle or LifecycleEngine(session, self._clock, self._policy)
        self._store = AssetStore(session)
        self._events = EventLog(session, self._clock)
        self._transfers = TransferSelector(session)

    def _get_for_update(self, transfer_id: UUID | str) -> AssetTransfer:
        parsed = coerce_uuid(transfer_id)
        transfer = None
        if parsed is not None:
            transfer = self._session.get(
                AssetTransfer, parsed, with_for_update=True, populate_existing=True
            )
        if transfer is None:
            raise TransferNotFoundError(str(transfer_id))
        return transfer

    def _advance(self, transfer: AssetTransfer, target: TransferState) -> None:
        if not can_advance_transfer(transfer.state, target):
            raise InvalidTransferTransitionError(
                str(transfer.id), TransferState(transfer.state).value, target.value
            )

    def create_transfer(
        self,
        asset_tag: str,
        to_site: str,
        *,
        actor: str,
        to_storage_bin: str | None = None,
        carrier: str | None = None,
        tracking_number: str | None = None,
    ) -> OperationResult[TransferInfo]:
        """Open a Draft transfer for an asset that is allowed to move."""

        def work() -> TransferInfo:
            if not to_site or not to_site.strip():
                raise FieldValidationError("to_site", to_site, "a value is required")
            asset = self._store.get_for_update(asset_tag)
            state = LifecycleState(asset.lifecycle_state)
            if state not in TRANSFERABLE_STATES:
                raise TransferNotAllowedError(asset_tag, state.value)

            now = self._clock.now()
            transfer = AssetTransfer(
                asset_tag=asset_tag,
                from_site=asset.current_site or UNKNOWN_SITE,
                to_site=to_site,
                from_storage_bin=asset.current_storage_location,
                to_storage_bin=to_storage_bin,
                carrier=carrier,
                tracking_number=tracking_number,
                state=TransferState.DRAFT,
                created_at=now,
                created_by=actor,
                updated_at=now,
                updated_by=actor,
            )
            self._session.add(transfer)
            self._session.flush()

            self._events.append(
                TransferCreated(
                    transfer_id=str(transfer.id),
                    from_site=transfer.from_site,
                    to_site=to_site,
                    from_storage_bin=transfer.from_storage_bin,
                    to_storage_bin=to_storage_bin,
                    carrier=carrier,
                    tracking_number=tracking_number,
                ),
                actor,
                asset_tag=asset_tag,
            )
            return TransferInfo.from_model(transfer)

        return self._run(
            "create_transfer",
            work,
            actor=actor,
            asset_tag=asset_tag,
            to_site=to_site,
        )

    def ship_transfer(self, transfer_id: UUID | str, *, actor: str) -> OperationResult[TransferInfo]:
        """Hand a Draft transfer to the carrier; the asset becomes ReadyForShipment."""

        def work() -> TransferInfo:
            transfer = self._get_for_update(transfer_id)
            self._advance(transfer, TransferState.SHIPPED)

            self._lifecycle.apply_transition(
                transfer.asset_tag, LifecycleState.READY_FOR_SHIPMENT, actor
            )

            now = self._clock.now()
            transfer.state = TransferState.SHIPPED
            transfer.shipped_at = now
            transfer.shipped_by = actor
            transfer.updated_at = now
            transfer.updated_by = actor
            self._session.flush()

            self._events.append(
                TransferShipped(
                    transfer_id=str(transfer.id),
                    to_site=transfer.to_site,
                    carrier=transfer.carrier,
                    tracking_number=transfer.tracking_number,
                ),
                actor,
                asset_tag=transfer.asset_tag,
            )
            return TransferInfo.from_model(transfer)

        return self._run("ship_transfer", work, actor=actor, transfer_id=str(transfer_id))

    def receive_transfer(
        self,
        transfer_id: UUID | str,
        received_by: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[TransferInfo]:
        """
        Record arrival at the destination; the asset becomes Delivered.

        The storage bin named on the transfer becomes the delivery location;
        without one the policy's default delivery area is used.
        """

        def work() -> TransferInfo:
            transfer = self._get_for_update(transfer_id)
            self._advance(transfer, TransferState.RECEIVED)

            receiver = received_by if received_by and received_by.strip() else actor
            location = transfer.to_storage_bin or self._policy.default_delivery_location
            self._lifecycle.apply_transition(
                transfer.asset_tag,
                LifecycleState.DELIVERED,
                actor,
                DeliveryContext(
                    to_site=transfer.to_site,
                    location=location,
                    floor=self._policy.default_delivery_floor,
                ),
            )

            now = self._clock.now()
            transfer.state = TransferState.RECEIVED
            transfer.received_at = now
            transfer.received_by = receiver
            transfer.updated_at = now
            transfer.updated_by = actor
            self._session.flush()

            self._events.append(
                TransferReceived(
                    transfer_id=str(transfer.id),
                    to_site=transfer.to_site,
                    location=location,
                    received_by=receiver,
                ),
                actor,
                asset_tag=transfer.asset_tag,
            )
            return TransferInfo.from_model(transfer)

        return self._run("receive_transfer", work, actor=actor, transfer_id=str(transfer_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_transfer(self, transfer_id: UUID | str) -> TransferInfo | None:
        parsed = coerce_uuid(transfer_id)
        return self._transfers.get(parsed) if parsed is not None else None

    def transfers_for_asset(self, asset_tag: str) -> tuple[TransferInfo, ...]:
        return self._transfers.for_asset(asset_tag)

    def transfers_by_tracking_number(self, tracking_number: str) -> tuple[TransferInfo, ...]:
        return self._transfers.by_tracking_number(tracking_number)

    def pending_transfers(self, site: str | None = None) -> tuple[TransferInfo, ...]:
        return self._transfers.pending(site)
