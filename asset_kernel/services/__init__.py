"""
Kernel services -- the imperative shell around the pure domain.

Public workflow operations return ``OperationResult``; lower-level helpers
(AssetStore, EventLog, SequenceService) raise typed kernel errors and never
commit.
"""

from asset_kernel.services.asset_editor import AssetEditor
from asset_kernel.services.asset_store import AssetStore
from asset_kernel.services.base import BaseService
from asset_kernel.services.event_log import EventLog
from asset_kernel.services.lifecycle_engine import LifecycleEngine
from asset_kernel.services.salvage_workflow import SalvageBatchWorkflow
from asset_kernel.services.sequence_service import SequenceService
from asset_kernel.services.transfer_workflow import TransferWorkflow

__all__ = [
    "AssetEditor",
    "AssetStore",
    "BaseService",
    "EventLog",
    "LifecycleEngine",
    "SalvageBatchWorkflow",
    "SequenceService",
    "TransferWorkflow",
]
