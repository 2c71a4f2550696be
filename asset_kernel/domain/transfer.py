"""
Transfer sub-state machine.

A transfer moves one asset between sites:

    Draft -> Shipped -> Received

``Closed`` is reserved for a future archival step; nothing reaches it yet
and it has no exits.
"""

from enum import Enum


class TransferState(str, Enum):
    """State of an inter-site transfer."""

    DRAFT = "Draft"
    SHIPPED = "Shipped"
    RECEIVED = "Received"
    CLOSED = "Closed"


VALID_TRANSFER_TRANSITIONS: dict[TransferState, frozenset[TransferState]] = {
    TransferState.DRAFT: frozenset({TransferState.SHIPPED}),
    TransferState.SHIPPED: frozenset({TransferState.RECEIVED}),
    TransferState.RECEIVED: frozenset(),
    TransferState.CLOSED: frozenset(),
}

PENDING_TRANSFER_STATES: frozenset[TransferState] = frozenset({
    TransferState.DRAFT,
    TransferState.SHIPPED,
})

UNKNOWN_SITE = "Unknown"

if set(VALID_TRANSFER_TRANSITIONS) != set(TransferState):
    raise ValueError("Transfer transition table must cover every TransferState")


def can_advance_transfer(current: TransferState | str, target: TransferState | str) -> bool:
    return TransferState(target) in VALID_TRANSFER_TRANSITIONS[TransferState(current)]
