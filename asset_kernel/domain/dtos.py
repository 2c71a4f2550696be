"""
DTOs -- immutable views handed back to callers.

Responsibility:
    Services return these frozen snapshots, never ORM entities, so callers
    cannot mutate persistent state behind the engine's back.  ``from_model``
    class methods are boundary converters invoked only from services and
    selectors.

Architecture position:
    Kernel > Domain -- pure, no I/O.  ORM types appear only under
    TYPE_CHECKING.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from asset_kernel.domain.events import AssetEventBody
from asset_kernel.domain.lifecycle import LifecycleState
from asset_kernel.domain.transfer import TransferState

if TYPE_CHECKING:
    from asset_kernel.models.asset import Asset as AssetModel
    from asset_kernel.models.salvage_batch import SalvageBatch as SalvageBatchModel
    from asset_kernel.models.transfer import AssetTransfer as AssetTransferModel


@dataclass(frozen=True)
class AssetInfo:
    """Snapshot of an asset record after an operation."""

    id: UUID
    asset_tag: str
    lifecycle_state: LifecycleState
    version: int
    serial_number: str | None
    manufacturer: str | None
    model: str | None
    category: str | None
    status: str | None
    notes: str | None
    current_site: str | None
    current_storage_location: str | None
    location: str | None
    floor: str | None
    desk: str | None
    current_desk: str | None
    deployed_at: datetime | None
    deployed_by: str | None
    deployed_to_user: str | None
    deployed_to_email: str | None
    ready_for_pickup_at: datetime | None
    ready_for_pickup_by: str | None
    picked_up_at: datetime | None
    picked_up_by: str | None
    destination_site: str | None
    carrier: str | None
    tracking_number: str | None
    delivered_at: datetime | None
    delivered_by: str | None
    salvage_batch_id: UUID | None
    ip_address: str | None
    mac_address: str | None
    assigned_user_name: str | None
    assigned_user_email: str | None
    phone_number: str | None
    extension: str | None
    created_at: datetime | None
    created_by: str | None
    updated_at: datetime | None
    updated_by: str | None

    @property
    def is_editable(self) -> bool:
        return self.lifecycle_state != LifecycleState.SALVAGED

    @classmethod
    def from_model(cls, asset: AssetModel) -> AssetInfo:
        return cls(
            id=asset.id,
            asset_tag=asset.asset_tag,
            lifecycle_state=LifecycleState(asset.lifecycle_state),
            version=asset.version,
            serial_number=asset.serial_number,
            manufacturer=asset.manufacturer,
            model=asset.model,
            category=asset.category,
            status=asset.status,
            notes=asset.notes,
            current_site=asset.current_site,
            current_storage_location=asset.current_storage_location,
            location=asset.location,
            floor=asset.floor,
            desk=asset.desk,
            current_desk=asset.current_desk,
            deployed_at=asset.deployed_at,
            deployed_by=asset.deployed_by,
            deployed_to_user=asset.deployed_to_user,
            deployed_to_email=asset.deployed_to_email,
            ready_for_pickup_at=asset.ready_for_pickup_at,
            ready_for_pickup_by=asset.ready_for_pickup_by,
            picked_up_at=asset.picked_up_at,
            picked_up_by=asset.picked_up_by,
            destination_site=asset.destination_site,
            carrier=asset.carrier,
            tracking_number=asset.tracking_number,
            delivered_at=asset.delivered_at,
            delivered_by=asset.delivered_by,
            salvage_batch_id=asset.salvage_batch_id,
            ip_address=asset.ip_address,
            mac_address=asset.mac_address,
            assigned_user_name=asset.assigned_user_name,
            assigned_user_email=asset.assigned_user_email,
            phone_number=asset.phone_number,
            extension=asset.extension,
            created_at=asset.created_at,
            created_by=asset.created_by,
            updated_at=asset.updated_at,
            updated_by=asset.updated_by,
        )


@dataclass(frozen=True)
class ReplacementOutcome:
    """Both sides of a replacement."""

    new_asset: AssetInfo
    old_asset: AssetInfo


@dataclass(frozen=True)
class TransferInfo:
    id: UUID
    asset_tag: str
    state: TransferState
    from_site: str
    to_site: str
    from_storage_bin: str | None
    to_storage_bin: str | None
    carrier: str | None
    tracking_number: str | None
    created_at: datetime
    created_by: str
    shipped_at: datetime | None
    shipped_by: str | None
    received_at: datetime | None
    received_by: str | None

    @classmethod
    def from_model(cls, transfer: AssetTransferModel) -> TransferInfo:
        return cls(
            id=transfer.id,
            asset_tag=transfer.asset_tag,
            state=TransferState(transfer.state),
            from_site=transfer.from_site,
            to_site=transfer.to_site,
            from_storage_bin=transfer.from_storage_bin,
            to_storage_bin=transfer.to_storage_bin,
            carrier=transfer.carrier,
            tracking_number=transfer.tracking_number,
            created_at=transfer.created_at,
            created_by=transfer.created_by,
            shipped_at=transfer.shipped_at,
            shipped_by=transfer.shipped_by,
            received_at=transfer.received_at,
            received_by=transfer.received_by,
        )


@dataclass(frozen=True)
class SalvageBatchInfo:
    id: UUID
    batch_code: str
    pickup_vendor: str
    created_at: datetime
    created_by: str
    pickup_manifest_number: str | None
    picked_up_at: datetime | None
    finalized_at: datetime | None
    finalized_by: str | None
    asset_tags: tuple[str, ...]

    @property
    def is_finalized(self) -> bool:
        return self.finalized_at is not None

    @property
    def asset_count(self) -> int:
        return len(self.asset_tags)

    @classmethod
    def from_model(cls, batch: SalvageBatchModel) -> SalvageBatchInfo:
        return cls(
            id=batch.id,
            batch_code=batch.batch_code,
            pickup_vendor=batch.pickup_vendor,
            created_at=batch.created_at,
            created_by=batch.created_by,
            pickup_manifest_number=batch.pickup_manifest_number,
            picked_up_at=batch.picked_up_at,
            finalized_at=batch.finalized_at,
            finalized_by=batch.finalized_by,
            asset_tags=tuple(sorted(a.asset_tag for a in batch.assets)),
        )


@dataclass(frozen=True)
class AssetEventRecord:
    """One decoded entry of the event log."""

    id: UUID
    seq: int
    asset_tag: str | None
    salvage_batch_id: UUID | None
    event_type: str
    event: AssetEventBody
    created_at: datetime
    created_by: str
    hash: str


@dataclass(frozen=True)
class ManifestItem:
    asset_tag: str
    serial_number: str | None
    manufacturer: str | None
    model: str | None
    notes: str | None
    estimated_weight: Decimal | None
    bin_number: str | None


@dataclass(frozen=True)
class SalvageManifest:
    """
    Pickup manifest for a batch.

    ``total_weight`` sums only the items whose category has a known weight
    (None when no item does); the figures are advisory.
    """

    batch_id: UUID
    batch_code: str
    pickup_vendor: str
    pickup_manifest_number: str | None
    generated_at: datetime
    items: tuple[ManifestItem, ...]

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def total_weight(self) -> Decimal | None:
        weights = [i.estimated_weight for i in self.items if i.estimated_weight is not None]
        if not weights:
            return None
        return sum(weights, Decimal("0"))

    @property
    def unweighed_count(self) -> int:
        return sum(1 for i in self.items if i.estimated_weight is None)


@dataclass(frozen=True)
class SalvageBatchSummary:
    batch_id: UUID
    batch_code: str
    pickup_vendor: str
    created_at: datetime
    finalized_at: datetime | None
    picked_up_at: datetime | None
    pickup_manifest_number: str | None
    asset_count: int


@dataclass(frozen=True)
class SalvageReport:
    from_date: date
    to_date: date
    batches: tuple[SalvageBatchSummary, ...]

    @property
    def total_batches(self) -> int:
        return len(self.batches)

    @property
    def total_assets(self) -> int:
        return sum(b.asset_count for b in self.batches)
