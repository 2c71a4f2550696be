"""
SalvageSelector -- read-only salvage batch queries.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from asset_kernel.domain.dtos import SalvageBatchInfo
from asset_kernel.models.salvage_batch import SalvageBatch
from asset_kernel.selectors.base import BaseSelector


class SalvageSelector(BaseSelector):
    """Queries over salvage batches."""

    def get(self, batch_id: UUID) -> SalvageBatchInfo | None:
        return self._one(
            select(SalvageBatch)
            .where(SalvageBatch.id == batch_id)
            .options(selectinload(SalvageBatch.assets)),
            SalvageBatchInfo.from_model,
        )

    def created_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[SalvageBatchInfo, ...]:
        """Batches with ``start <= created_at < end``, oldest first."""
        stmt = select(SalvageBatch).options(selectinload(SalvageBatch.assets))
        if start is not None:
            stmt = stmt.where(SalvageBatch.created_at >= start)
        if end is not None:
            stmt = stmt.where(SalvageBatch.created_at < end)
        return self._all(
            stmt.order_by(SalvageBatch.created_at, SalvageBatch.batch_code),
            SalvageBatchInfo.from_model,
        )
