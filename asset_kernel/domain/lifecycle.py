"""
Lifecycle -- the asset state machine as static data.

Responsibility:
    Declares the eight lifecycle states and the transition table that is the
    single source of truth for which moves are legal.  Everything that asks
    "may this asset go from X to Y?" ends up here.

Architecture position:
    Kernel > Domain -- pure, no I/O, no ORM.

Invariants enforced:
    - The table is validated at import: every state has an entry, every
      target is a known state, and terminal states have no exits.
    - ``Salvaged`` has no incoming edge in the table.  The only way in is
      sealing a salvage batch, which carries a SalvageSealContext and is
      accepted only from ``Delivered`` or ``SalvagePending``
      (see ``is_transition_permitted``).
"""

from enum import Enum
from typing import Any

from asset_kernel.exceptions import UnknownLifecycleStateError


class LifecycleState(str, Enum):
    """
    Lifecycle state of an asset.

    State machine:
        InStorage        -> ReadyForShipment | Deployed | SalvagePending
        ReadyForShipment -> InTransit
        InTransit        -> Delivered
        Delivered        -> InStorage | Deployed
        Deployed         -> RedeployPending | SalvagePending | ReadyForShipment | InStorage
        RedeployPending  -> Deployed | InStorage | ReadyForShipment
        SalvagePending   -> ReadyForShipment
        Salvaged: terminal (entered only by finalizing a salvage batch)
    """

    IN_STORAGE = "InStorage"
    READY_FOR_SHIPMENT = "ReadyForShipment"
    IN_TRANSIT = "InTransit"
    DELIVERED = "Delivered"
    DEPLOYED = "Deployed"
    REDEPLOY_PENDING = "RedeployPending"
    SALVAGE_PENDING = "SalvagePending"
    SALVAGED = "Salvaged"


VALID_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.IN_STORAGE: frozenset({
        LifecycleState.READY_FOR_SHIPMENT,
        LifecycleState.DEPLOYED,
        LifecycleState.SALVAGE_PENDING,
    }),
    LifecycleState.READY_FOR_SHIPMENT: frozenset({
        LifecycleState.IN_TRANSIT,
    }),
    LifecycleState.IN_TRANSIT: frozenset({
        LifecycleState.DELIVERED,
    }),
    LifecycleState.DELIVERED: frozenset({
        LifecycleState.IN_STORAGE,
        LifecycleState.DEPLOYED,
    }),
    LifecycleState.DEPLOYED: frozenset({
        LifecycleState.REDEPLOY_PENDING,
        LifecycleState.SALVAGE_PENDING,
        LifecycleState.READY_FOR_SHIPMENT,
        LifecycleState.IN_STORAGE,
    }),
    LifecycleState.REDEPLOY_PENDING: frozenset({
        LifecycleState.DEPLOYED,
        LifecycleState.IN_STORAGE,
        LifecycleState.READY_FOR_SHIPMENT,
    }),
    LifecycleState.SALVAGE_PENDING: frozenset({
        LifecycleState.READY_FOR_SHIPMENT,
    }),
    LifecycleState.SALVAGED: frozenset(),
}

TERMINAL_STATES: frozenset[LifecycleState] = frozenset({LifecycleState.SALVAGED})

# States from which batch sealing may move an asset to Salvaged.
SALVAGE_SEAL_SOURCES: frozenset[LifecycleState] = frozenset({
    LifecycleState.DELIVERED,
    LifecycleState.SALVAGE_PENDING,
})

# States from which an asset may join a salvage batch.
SALVAGE_ELIGIBLE_STATES: frozenset[LifecycleState] = SALVAGE_SEAL_SOURCES

# States from which a transfer may be created.
TRANSFERABLE_STATES: frozenset[LifecycleState] = frozenset({
    LifecycleState.IN_STORAGE,
    LifecycleState.DELIVERED,
    LifecycleState.REDEPLOY_PENDING,
    LifecycleState.SALVAGE_PENDING,
})


def _validate_table(table: dict[LifecycleState, frozenset[LifecycleState]]) -> None:
    missing = set(LifecycleState) - set(table)
    if missing:
        raise ValueError(
            f"Transition table has no entry for: {sorted(s.value for s in missing)}"
        )
    for source, targets in table.items():
        for target in targets:
            if not isinstance(target, LifecycleState):
                raise ValueError(f"Unknown target {target!r} from {source.value}")
    for terminal in TERMINAL_STATES:
        if table[terminal]:
            raise ValueError(f"Terminal state {terminal.value} has exits")
    if any(LifecycleState.SALVAGED in targets for targets in table.values()):
        raise ValueError("Salvaged must only be reachable through batch sealing")


_validate_table(VALID_TRANSITIONS)


def coerce_state(value: "LifecycleState | str") -> LifecycleState:
    """Accept a LifecycleState or its string value."""
    if isinstance(value, LifecycleState):
        return value
    return LifecycleState(value)


def can_transition(current: LifecycleState | str, target: LifecycleState | str) -> bool:
    """
    Pure table lookup: is ``current -> target`` a legal move?

    Raises:
        UnknownLifecycleStateError: If either side is not a lifecycle state.
    """
    try:
        source_state = coerce_state(current)
    except ValueError:
        raise UnknownLifecycleStateError(str(current)) from None
    try:
        target_state = coerce_state(target)
    except ValueError:
        raise UnknownLifecycleStateError(str(target)) from None
    return target_state in VALID_TRANSITIONS[source_state]


def is_transition_permitted(
    current: LifecycleState,
    target: LifecycleState,
    context: Any = None,
) -> bool:
    """
    Table lookup plus the batch-sealing entry into Salvaged.

    ``Salvaged`` is permitted only when the caller presents a salvage seal
    (issued while finalizing a batch) and the asset is in a seal source state.
    """
    from asset_kernel.domain.contexts import SalvageSealContext

    if target is LifecycleState.SALVAGED:
        return isinstance(context, SalvageSealContext) and current in SALVAGE_SEAL_SOURCES
    return can_transition(current, target)
