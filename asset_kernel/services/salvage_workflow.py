"""
SalvageBatchWorkflow -- grouping assets for vendor disposal.

Responsibility:
    Creates batches, adds eligible assets to open batches, seals a batch at
    pickup (moving every member to Salvaged) and produces the manifest and
    date-range report.

Architecture position:
    Kernel > Services.  Depends on LifecycleEngine for the member
    transitions, AssetStore for locked loads and EventLog for the audit
    trail.

Invariants enforced:
    - A sealed batch never gains or loses members and its columns never
      change again.
    - Finalization is one atomic unit: either the batch is sealed and every
      member is Salvaged, or nothing changes.
    - The seal context handed to LifecycleEngine is the only route into
      Salvaged.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, utc_day_bounds
from asset_kernel.domain.contexts import SalvageSealContext
from asset_kernel.domain.dtos import (
    AssetInfo,
    ManifestItem,
    SalvageBatchInfo,
    SalvageBatchSummary,
    SalvageManifest,
    SalvageReport,
)
from asset_kernel.domain.events import AddedToSalvageBatch, SalvageBatchFinalized
from asset_kernel.domain.lifecycle import SALVAGE_SEAL_SOURCES, LifecycleState
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult
from asset_kernel.exceptions import (
    AlreadyInSalvageBatchError,
    BatchMemberIneligibleError,
    DuplicateBatchCodeError,
    FieldValidationError,
    InvalidDateRangeError,
    SalvageBatchEmptyError,
    SalvageBatchNotFoundError,
    SalvageBatchSealedError,
    SalvageIneligibleError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.salvage_batch import SalvageBatch
from asset_kernel.selectors.asset_selector import AssetSelector
from asset_kernel.selectors.salvage_selector import SalvageSelector
from asset_kernel.services.asset_store import AssetStore, coerce_uuid
from asset_kernel.services.base import BaseService
from asset_kernel.services.event_log import EventLog
from asset_kernel.services.lifecycle_engine import LifecycleEngine

logger = get_logger("services.salvage_workflow")


class SalvageBatchWorkflow(BaseService):
    """Create, fill, seal and report on salvage batches."""

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
        self._assets = AssetSelector(session)
        self._batches = SalvageSelector(session)

    def create_batch(
        self,
        pickup_vendor: str | None = None,
        *,
        actor: str,
    ) -> OperationResult[SalvageBatchInfo]:
        """
        Open an empty batch coded ``SAL-yyyy-MM-dd-HHmmss`` from the UTC clock.

        Two batches created in the same second collide; the second gets a
        CONFLICT result and the caller may retry.
        """

        def work() -> SalvageBatchInfo:
            now = self._clock.now_utc()
            code = self._policy.batch_code_for(now)
            existing = self._session.execute(
                select(SalvageBatch.id).where(SalvageBatch.batch_code == code)
            ).scalar_one_or_none()
            if existing is not None:
                raise DuplicateBatchCodeError(code)

            vendor = pickup_vendor.strip() if pickup_vendor and pickup_vendor.strip() else None
            batch = SalvageBatch(
                batch_code=code,
                pickup_vendor=vendor or self._policy.default_pickup_vendor,
                created_at=now,
                created_by=actor,
                updated_at=now,
                updated_by=actor,
            )
            savepoint = self._session.begin_nested()
            try:
                self._session.add(batch)
                self._session.flush()
                savepoint.commit()
            except IntegrityError as exc:
                savepoint.rollback()
                raise DuplicateBatchCodeError(code) from exc
            return SalvageBatchInfo.from_model(batch)

        return self._run("create_batch", work, actor=actor)

    def add_asset_to_batch(
        self,
        asset_tag: str,
        batch_id: UUID | str,
        *,
        actor: str,
    ) -> OperationResult[SalvageBatchInfo]:
        def work() -> SalvageBatchInfo:
            batch = self._store.get_batch_for_update(batch_id)
            if batch.is_finalized:
                raise SalvageBatchSealedError(str(batch.id), batch.batch_code)

            asset = self._store.get_for_update(asset_tag)
            state = LifecycleState(asset.lifecycle_state)
            if state not in SALVAGE_SEAL_SOURCES:
                raise SalvageIneligibleError(asset_tag, state.value)
            if asset.salvage_batch_id is not None:
                raise AlreadyInSalvageBatchError(asset_tag, str(asset.salvage_batch_id))

            asset.salvage_batch = batch
            asset.updated_at = self._clock.now()
            asset.updated_by = actor
            self._store.save(asset)

            self._events.append(
                AddedToSalvageBatch(batch_id=str(batch.id), batch_code=batch.batch_code),
                actor,
                asset_tag=asset_tag,
                batch_id=batch.id,
            )
            return SalvageBatchInfo.from_model(batch)

        return self._run(
            "add_asset_to_batch",
            work,
            actor=actor,
            asset_tag=asset_tag,
            batch_id=str(batch_id),
        )

    def finalize_batch(
        self,
        batch_id: UUID | str,
        manifest_number: str,
        picked_up_at: datetime | None = None,
        *,
        actor: str,
    ) -> OperationResult[SalvageBatchInfo]:
        """
        Seal the batch at pickup and move every member to Salvaged.

        All checks run before anything is written: a sealed or empty batch,
        a blank manifest number, or any member outside Delivered /
        SalvagePending rejects the whole call.
        """

        def work() -> SalvageBatchInfo:
            batch = self._store.get_batch_for_update(batch_id)
            if batch.is_finalized:
                raise SalvageBatchSealedError(str(batch.id), batch.batch_code)
            if not batch.assets:
                raise SalvageBatchEmptyError(str(batch.id), batch.batch_code)
            if not manifest_number or not manifest_number.strip():
                raise FieldValidationError(
                    "manifest_number", manifest_number, "a value is required"
                )
            for member in batch.assets:
                state = LifecycleState(member.lifecycle_state)
                if state not in SALVAGE_SEAL_SOURCES:
                    raise BatchMemberIneligibleError(
                        batch.batch_code, member.asset_tag, state.value
                    )

            now = self._clock.now()
            pickup_time = picked_up_at or now
            batch.pickup_manifest_number = manifest_number.strip()
            batch.picked_up_at = pickup_time
            batch.finalized_at = now
            batch.finalized_by = actor
            batch.updated_at = now
            batch.updated_by = actor
            self._session.flush()

            seal = SalvageSealContext(
                batch_id=str(batch.id),
                batch_code=batch.batch_code,
                manifest_number=batch.pickup_manifest_number,
            )
            member_tags = [member.asset_tag for member in batch.assets]
            for tag in member_tags:
                self._lifecycle.apply_transition(tag, LifecycleState.SALVAGED, actor, seal)

            self._events.append(
                SalvageBatchFinalized(
                    batch_id=str(batch.id),
                    batch_code=batch.batch_code,
                    manifest_number=batch.pickup_manifest_number,
                    picked_up_at=pickup_time.isoformat(),
                    asset_tags=tuple(member_tags),
                ),
                actor,
                batch_id=batch.id,
            )
            logger.info(
                "salvage_batch_sealed",
                extra={"batch_code": batch.batch_code, "asset_count": len(member_tags)},
            )
            return SalvageBatchInfo.from_model(batch)

        return self._run(
            "finalize_batch",
            work,
            actor=actor,
            batch_id=str(batch_id),
            manifest_number=manifest_number,
        )

    # ------------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------------

    def generate_manifest(self, batch_id: UUID | str) -> OperationResult[SalvageManifest]:
        """Per-member pickup listing with advisory weight estimates."""

        def work() -> SalvageManifest:
            batch = self._store.get_batch(batch_id)
            if batch is None:
                raise SalvageBatchNotFoundError(str(batch_id))
            items = tuple(
                ManifestItem(
                    asset_tag=asset.asset_tag,
                    serial_number=asset.serial_number,
                    manufacturer=asset.manufacturer,
                    model=asset.model,
                    notes=asset.notes,
                    estimated_weight=self._policy.estimated_weight(asset.category),
                    bin_number=asset.current_storage_location,
                )
                for asset in sorted(batch.assets, key=lambda a: a.asset_tag)
            )
            return SalvageManifest(
                batch_id=batch.id,
                batch_code=batch.batch_code,
                pickup_vendor=batch.pickup_vendor,
                pickup_manifest_number=batch.pickup_manifest_number,
                generated_at=self._clock.now(),
                items=items,
            )

        return self._run("generate_manifest", work, batch_id=str(batch_id))

    def generate_salvage_report(
        self,
        from_date: date,
        to_date: date,
    ) -> OperationResult[SalvageReport]:
        """Batches created between the two dates, both days included."""

        def work() -> SalvageReport:
            start = from_date.date() if isinstance(from_date, datetime) else from_date
            end = to_date.date() if isinstance(to_date, datetime) else to_date
            if start > end:
                raise InvalidDateRangeError(start.isoformat(), end.isoformat())
            batches = self._batches.created_between(*utc_day_bounds(start, end))
            return SalvageReport(
                from_date=start,
                to_date=end,
                batches=tuple(
                    SalvageBatchSummary(
                        batch_id=b.id,
                        batch_code=b.batch_code,
                        pickup_vendor=b.pickup_vendor,
                        created_at=b.created_at,
                        finalized_at=b.finalized_at,
                        picked_up_at=b.picked_up_at,
                        pickup_manifest_number=b.pickup_manifest_number,
                        asset_count=b.asset_count,
                    )
                    for b in batches
                ),
            )

        return self._run("generate_salvage_report", work)

    def get_batch(self, batch_id: UUID | str) -> SalvageBatchInfo | None:
        parsed = coerce_uuid(batch_id)
        return self._batches.get(parsed) if parsed is not None else None

    def eligible_assets(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        """Delivered or SalvagePending assets not yet in a batch."""
        return self._assets.salvage_eligible(site)

    def list_batches(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> tuple[SalvageBatchInfo, ...]:
        """Batches created in the optional inclusive date range, oldest first."""
        start = utc_day_bounds(from_date, from_date)[0] if from_date is not None else None
        end = utc_day_bounds(to_date, to_date)[1] if to_date is not None else None
        return self._batches.created_between(start, end)
