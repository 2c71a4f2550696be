"""ORM models for the asset kernel."""

from asset_kernel.models.asset import Asset
from asset_kernel.models.asset_event import AssetEvent
from asset_kernel.models.salvage_batch import SalvageBatch
from asset_kernel.models.sequence_counter import SequenceCounter
from asset_kernel.models.transfer import AssetTransfer

__all__ = [
    "Asset",
    "AssetEvent",
    "AssetTransfer",
    "SalvageBatch",
    "SequenceCounter",
]
