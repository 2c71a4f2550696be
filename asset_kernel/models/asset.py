"""
Module: asset_kernel.models.asset
Responsibility: ORM persistence for asset records -- identification,
    procurement, location, deployment, shipment, salvage membership and
    network/assignment data, plus the lifecycle state.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - asset_tag is unique and never reassigned (UNIQUE constraint; not in the
      editable field map).
    - ``version`` is the optimistic concurrency token (SQLAlchemy
      version_id_col).  Every UPDATE checks and bumps it; a stale write raises
      StaleDataError, which services surface as ConcurrentModificationError.
    - A Salvaged asset rejects further updates (db/immutability.py).

Failure modes:
    - IntegrityError on duplicate asset_tag.
    - StaleDataError on concurrent modification.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from asset_kernel.db.base import TrackedBase
from asset_kernel.db.types import UUIDString
from asset_kernel.domain.lifecycle import LifecycleState

if TYPE_CHECKING:
    from asset_kernel.models.salvage_batch import SalvageBatch


class Asset(TrackedBase):
    """A physical IT asset tracked by tag."""

    __tablename__ = "assets"

    __table_args__ = (
        Index("idx_asset_lifecycle_site", "lifecycle_state", "current_site"),
        Index("idx_asset_salvage_batch", "salvage_batch_id"),
    )

    asset_tag: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    lifecycle_state: Mapped[LifecycleState] = mapped_column(
        SAEnum(
            LifecycleState,
            name="lifecycle_state",
            native_enum=False,
            length=32,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=LifecycleState.IN_STORAGE,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Identification
    serial_number: Mapped[str | None] = mapped_column(String(100))
    service_tag: Mapped[str | None] = mapped_column(String(100))
    manufacturer: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str | None] = mapped_column(String(100))
    category: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str | None] = mapped_column(String(50))
    net_name: Mapped[str | None] = mapped_column(String(100))
    imei: Mapped[str | None] = mapped_column(String(50))
    card_number: Mapped[str | None] = mapped_column(String(50))
    os_version: Mapped[str | None] = mapped_column(String(100))
    license1: Mapped[str | None] = mapped_column(String(255))
    license2: Mapped[str | None] = mapped_column(String(255))
    license3: Mapped[str | None] = mapped_column(String(255))
    license4: Mapped[str | None] = mapped_column(String(255))
    license5: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(String(4000))

    # Organization
    manager: Mapped[str | None] = mapped_column(String(255))
    department: Mapped[str | None] = mapped_column(String(255))
    unit: Mapped[str | None] = mapped_column(String(255))

    # Procurement
    order_number: Mapped[str | None] = mapped_column(String(100))
    vendor: Mapped[str | None] = mapped_column(String(255))
    vendor_invoice: Mapped[str | None] = mapped_column(String(100))
    purchase_price: Mapped[Decimal | None] = mapped_column()
    purchase_date: Mapped[date | None] = mapped_column(Date)
    warranty_start: Mapped[date | None] = mapped_column(Date)
    warranty_end_date: Mapped[date | None] = mapped_column(Date)

    # Location
    current_site: Mapped[str | None] = mapped_column(String(255))
    current_storage_location: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(255))
    floor: Mapped[str | None] = mapped_column(String(255))
    desk: Mapped[str | None] = mapped_column(String(255))
    current_desk: Mapped[str | None] = mapped_column(String(255))

    # Deployment
    deployed_at: Mapped[datetime | None] = mapped_column()
    deployed_by: Mapped[str | None] = mapped_column(String(255))
    deployed_to_user: Mapped[str | None] = mapped_column(String(255))
    deployed_to_email: Mapped[str | None] = mapped_column(String(255))

    # Shipment
    ready_for_pickup_at: Mapped[datetime | None] = mapped_column()
    ready_for_pickup_by: Mapped[str | None] = mapped_column(String(255))
    picked_up_at: Mapped[datetime | None] = mapped_column()
    picked_up_by: Mapped[str | None] = mapped_column(String(255))
    destination_site: Mapped[str | None] = mapped_column(String(255))
    carrier: Mapped[str | None] = mapped_column(String(100))
    tracking_number: Mapped[str | None] = mapped_column(String(100))
    delivered_at: Mapped[datetime | None] = mapped_column()
    delivered_by: Mapped[str | None] = mapped_column(String(255))

    # Salvage
    salvage_batch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("salvage_batches.id"),
        nullable=True,
    )

    # Network / assignment (cleared on entry to SalvagePending)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    mac_address: Mapped[str | None] = mapped_column(String(17))
    wall_port: Mapped[str | None] = mapped_column(String(50))
    switch_name: Mapped[str | None] = mapped_column(String(100))
    switch_port: Mapped[str | None] = mapped_column(String(50))
    assigned_user_name: Mapped[str | None] = mapped_column(String(255))
    assigned_user_email: Mapped[str | None] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(50))
    extension: Mapped[str | None] = mapped_column(String(20))

    salvage_batch: Mapped["SalvageBatch | None"] = relationship(
        back_populates="assets",
        lazy="select",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Asset {self.asset_tag} [{self.lifecycle_state}]>"

    @property
    def is_editable(self) -> bool:
        return self.lifecycle_state != LifecycleState.SALVAGED
