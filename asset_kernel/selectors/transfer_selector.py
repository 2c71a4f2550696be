"""
TransferSelector -- read-only transfer queries, newest first.
"""

from uuid import UUID

from sqlalchemy import or_, select

from asset_kernel.domain.dtos import TransferInfo
from asset_kernel.domain.transfer import PENDING_TRANSFER_STATES
from asset_kernel.models.transfer import AssetTransfer
from asset_kernel.selectors.base import BaseSelector


class TransferSelector(BaseSelector):
    """Queries over inter-site transfers."""

    def _list(self, stmt) -> tuple[TransferInfo, ...]:
        return self._all(
            stmt.order_by(AssetTransfer.created_at.desc(), AssetTransfer.id),
            TransferInfo.from_model,
        )

    def get(self, transfer_id: UUID) -> TransferInfo | None:
        transfer = self.session.get(AssetTransfer, transfer_id)
        return TransferInfo.from_model(transfer) if transfer is not None else None

    def for_asset(self, asset_tag: str) -> tuple[TransferInfo, ...]:
        return self._list(select(AssetTransfer).where(AssetTransfer.asset_tag == asset_tag))

    def by_tracking_number(self, tracking_number: str) -> tuple[TransferInfo, ...]:
        return self._list(
            select(AssetTransfer).where(AssetTransfer.tracking_number == tracking_number)
        )

    def pending(self, site: str | None = None) -> tuple[TransferInfo, ...]:
        """Draft or Shipped transfers, optionally touching ``site`` at either end."""
        stmt = select(AssetTransfer).where(AssetTransfer.state.in_(PENDING_TRANSFER_STATES))
        if site is not None:
            stmt = stmt.where(
                or_(AssetTransfer.from_site == site, AssetTransfer.to_site == site)
            )
        return self._list(stmt)
