"""
Module: asset_kernel.models.transfer
Responsibility: ORM persistence for inter-site transfers of a single asset.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - from_site / from_storage_bin are snapshots of the asset's location at
      creation time and never change afterwards.
    - Transfers are never deleted (db/immutability.py).
    - State advances only along VALID_TRANSFER_TRANSITIONS, and only in the
      same unit of work as the matching lifecycle transition.
"""

from datetime import datetime

from sqlalchemy import Enum as SAEnum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import TrackedBase
from asset_kernel.domain.transfer import TransferState


class AssetTransfer(TrackedBase):
    """A shipment of one asset from one site to another."""

    __tablename__ = "asset_transfers"

    __table_args__ = (
        Index("idx_transfer_asset_tag", "asset_tag"),
        Index("idx_transfer_tracking", "tracking_number"),
        Index("idx_transfer_state", "state"),
    )

    asset_tag: Mapped[str] = mapped_column(String(50), nullable=False)

    from_site: Mapped[str] = mapped_column(String(255), nullable=False)
    to_site: Mapped[str] = mapped_column(String(255), nullable=False)
    from_storage_bin: Mapped[str | None] = mapped_column(String(255))
    to_storage_bin: Mapped[str | None] = mapped_column(String(255))
    carrier: Mapped[str | None] = mapped_column(String(100))
    tracking_number: Mapped[str | None] = mapped_column(String(100))

    state: Mapped[TransferState] = mapped_column(
        SAEnum(
            TransferState,
            name="transfer_state",
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=TransferState.DRAFT,
    )

    shipped_at: Mapped[datetime | None] = mapped_column()
    shipped_by: Mapped[str | None] = mapped_column(String(255))
    received_at: Mapped[datetime | None] = mapped_column()
    received_by: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<AssetTransfer {self.asset_tag} {self.from_site}->{self.to_site} [{self.state}]>"

    @property
    def is_pending(self) -> bool:
        return self.state in (TransferState.DRAFT, TransferState.SHIPPED)
