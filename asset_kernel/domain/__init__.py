"""
Pure domain core of the asset kernel.

State tables, transition contexts, event variants, side effects and DTOs.
Nothing in this package touches the database.
"""

from asset_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from asset_kernel.domain.contexts import (
    DeliveryContext,
    DeployContext,
    PickupContext,
    SalvageSealContext,
)
from asset_kernel.domain.lifecycle import (
    VALID_TRANSITIONS,
    LifecycleState,
    can_transition,
    is_transition_permitted,
)
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult, OperationStatus
from asset_kernel.domain.transfer import TransferState

__all__ = [
    "Clock",
    "DeliveryContext",
    "DeployContext",
    "DeterministicClock",
    "LifecycleState",
    "OperationResult",
    "OperationStatus",
    "PickupContext",
    "SalvageSealContext",
    "SystemClock",
    "TransferState",
    "VALID_TRANSITIONS",
    "WorkflowPolicy",
    "can_transition",
    "is_transition_permitted",
]
