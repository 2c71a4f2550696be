"""
Module: asset_kernel.models.salvage_batch
Responsibility: ORM persistence for salvage batches -- groups of assets
    handed to a disposal vendor in one pickup.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - batch_code is unique (``SAL-{yyyy-MM-dd}-{HHmmss}``).
    - Once finalized_at is set the batch is sealed: no column may change
      and membership is frozen (db/immutability.py plus workflow guards).
    - Batches are never deleted.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from asset_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from asset_kernel.models.asset import Asset


class SalvageBatch(TrackedBase):
    """A salvage pickup batch."""

    __tablename__ = "salvage_batches"

    batch_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    pickup_vendor: Mapped[str] = mapped_column(String(255), nullable=False)

    pickup_manifest_number: Mapped[str | None] = mapped_column(String(100))

    picked_up_at: Mapped[datetime | None] = mapped_column()

    finalized_at: Mapped[datetime | None] = mapped_column()

    finalized_by: Mapped[str | None] = mapped_column(String(255))

    assets: Mapped[list["Asset"]] = relationship(
        back_populates="salvage_batch",
        order_by="Asset.asset_tag",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<SalvageBatch {self.batch_code} ({'sealed' if self.is_finalized else 'open'})>"

    @property
    def is_finalized(self) -> bool:
        return self.finalized_at is not None
