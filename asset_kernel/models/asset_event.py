"""
Module: asset_kernel.models.asset_event
Responsibility: ORM persistence for the append-only asset event log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: ORM listeners reject every UPDATE and DELETE
      (db/immutability.py).
    - Events are not linked to assets by foreign key, so no cascade from an
      asset row can ever remove history.
    - ``seq`` is unique and strictly increasing (allocated from the locked
      sequence counter, never max+1).
    - ``hash = H(seq | subject | event_type | payload_hash | prev_hash)``
      chains every event to its predecessor.

Failure modes:
    - ImmutabilityViolationError on any attempt to modify or delete.
    - IntegrityError on duplicate seq.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base
from asset_kernel.db.types import UUIDString


class AssetEvent(Base):
    """One typed event in the global asset history."""

    __tablename__ = "asset_events"

    __table_args__ = (
        Index("idx_asset_event_tag_seq", "asset_tag", "seq"),
        Index("idx_asset_event_batch", "salvage_batch_id"),
        Index("idx_asset_event_type", "event_type"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    # Null only for batch-level events
    asset_tag: Mapped[str | None] = mapped_column(String(50), nullable=True)

    salvage_batch_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    event_type: Mapped[str] = mapped_column(String(100), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        subject = self.asset_tag or f"batch:{self.salvage_batch_id}"
        return f"<AssetEvent #{self.seq} {self.event_type} {subject}>"

    @property
    def subject(self) -> str:
        """What the event is about, as used in the chain hash."""
        if self.asset_tag is not None:
            return self.asset_tag
        return f"batch:{self.salvage_batch_id}"
