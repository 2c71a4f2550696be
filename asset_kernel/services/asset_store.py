"""
AssetStore -- persistence port for asset records and salvage batches.

Responsibility:
    Loads assets by tag (optionally with a row lock), saves them with the
    optimistic version check, registers new assets, and loads salvage batches
    together with their members.

Architecture position:
    Kernel > Services.  The only component that turns StaleDataError into the
    kernel's ConcurrentModificationError.  Never commits.

Invariants enforced:
    - Mutation loads use SELECT ... FOR UPDATE and ``populate_existing`` so
      the caller always works on the latest committed row.
    - ``save`` flushes immediately so a version conflict surfaces inside the
      operation that caused it.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from asset_kernel.exceptions import (
    AssetNotFoundError,
    ConcurrentModificationError,
    DuplicateAssetTagError,
    SalvageBatchNotFoundError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.asset import Asset
from asset_kernel.models.salvage_batch import SalvageBatch

logger = get_logger("services.asset_store")


def coerce_uuid(value: UUID | str) -> UUID | None:
    """Parse an id supplied by a caller; None if it is not a UUID."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class AssetStore:
    """Get/save assets by tag; get batches with members."""

    def __init__(self, session: Session):
        self._session = session

    def get_by_tag(self, asset_tag: str) -> Asset | None:
        return self._session.execute(
            select(Asset).where(Asset.asset_tag == asset_tag)
        ).scalar_one_or_none()

    def get_for_update(self, asset_tag: str) -> Asset:
        """
        Load an asset with a row lock.

        Raises:
            AssetNotFoundError: If no asset has this tag.
        """
        asset = self._session.execute(
            select(Asset)
            .where(Asset.asset_tag == asset_tag)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_tag)
        return asset

    def save(self, asset: Asset) -> None:
        """
        Flush pending changes to ``asset``.

        Raises:
            ConcurrentModificationError: If the row's version moved since load.
        """
        # A failed flush leaves the session unusable until rollback, so the tag
        # has to be read first.
        asset_tag = asset.asset_tag
        try:
            self._session.flush()
        except StaleDataError as exc:
            logger.warning(
                "asset_version_conflict",
                extra={"asset_tag": asset_tag, "detail": str(exc)},
            )
            raise ConcurrentModificationError("Asset", asset_tag) from exc

    def add(self, asset: Asset) -> Asset:
        """
        Insert a new asset.

        Raises:
            DuplicateAssetTagError: If the tag is already registered.
        """
        asset_tag = asset.asset_tag
        if self.get_by_tag(asset_tag) is not None:
            raise DuplicateAssetTagError(asset_tag)

        savepoint = self._session.begin_nested()
        try:
            self._session.add(asset)
            self._session.flush()
            savepoint.commit()
        except IntegrityError as exc:
            savepoint.rollback()
            raise DuplicateAssetTagError(asset_tag) from exc
        return asset

    def get_batch(self, batch_id: UUID | str) -> SalvageBatch | None:
        """A batch with its members loaded, or None."""
        parsed = coerce_uuid(batch_id)
        if parsed is None:
            return None
        return self._session.execute(
            select(SalvageBatch)
            .where(SalvageBatch.id == parsed)
            .options(selectinload(SalvageBatch.assets))
        ).scalar_one_or_none()

    def get_batch_for_update(self, batch_id: UUID | str) -> SalvageBatch:
        """
        A batch with a row lock and freshly loaded members.

        Raises:
            SalvageBatchNotFoundError: If no batch has this id.
        """
        parsed = coerce_uuid(batch_id)
        batch = None
        if parsed is not None:
            batch = self._session.execute(
                select(SalvageBatch)
                .where(SalvageBatch.id == parsed)
                .options(selectinload(SalvageBatch.assets))
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        if batch is None:
            raise SalvageBatchNotFoundError(str(batch_id))
        return batch
