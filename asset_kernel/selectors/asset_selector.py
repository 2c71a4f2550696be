"""
AssetSelector -- read-only asset listings.

Every listing is ordered by asset tag and optionally filtered by current site.
"""

from sqlalchemy import select

from asset_kernel.domain.dtos import AssetInfo
from asset_kernel.domain.lifecycle import SALVAGE_ELIGIBLE_STATES, LifecycleState
from asset_kernel.models.asset import Asset
from asset_kernel.selectors.base import BaseSelector


class AssetSelector(BaseSelector):
    """Queries over asset records."""

    def get(self, asset_tag: str) -> AssetInfo | None:
        return self._one(select(Asset).where(Asset.asset_tag == asset_tag), AssetInfo.from_model)

    def by_state(
        self,
        states: LifecycleState | frozenset[LifecycleState],
        site: str | None = None,
        unbatched_only: bool = False,
    ) -> tuple[AssetInfo, ...]:
        if isinstance(states, LifecycleState):
            states = frozenset({states})
        stmt = select(Asset).where(Asset.lifecycle_state.in_(states))
        if site is not None:
            stmt = stmt.where(Asset.current_site == site)
        if unbatched_only:
            stmt = stmt.where(Asset.salvage_batch_id.is_(None))
        return self._all(stmt.order_by(Asset.asset_tag), AssetInfo.from_model)

    def ready_for_shipment(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self.by_state(LifecycleState.READY_FOR_SHIPMENT, site)

    def in_transit(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self.by_state(LifecycleState.IN_TRANSIT, site)

    def delivered(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self.by_state(LifecycleState.DELIVERED, site)

    def in_storage(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self.by_state(LifecycleState.IN_STORAGE, site)

    def salvage_pending(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        return self.by_state(LifecycleState.SALVAGE_PENDING, site)

    def salvage_eligible(self, site: str | None = None) -> tuple[AssetInfo, ...]:
        """Delivered or SalvagePending assets not yet in any batch."""
        return self.by_state(SALVAGE_ELIGIBLE_STATES, site, unbatched_only=True)
