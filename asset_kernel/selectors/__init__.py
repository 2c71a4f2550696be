"""Read-only selectors for the asset kernel."""

from asset_kernel.selectors.asset_selector import AssetSelector
from asset_kernel.selectors.base import BaseSelector
from asset_kernel.selectors.salvage_selector import SalvageSelector
from asset_kernel.selectors.transfer_selector import TransferSelector

__all__ = [
    "AssetSelector",
    "BaseSelector",
    "SalvageSelector",
    "TransferSelector",
]
