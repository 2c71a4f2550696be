"""
Lifecycle transition table.

Pure checks on the state machine data: completeness, the exact edge set,
terminal Salvaged, and that the only way into Salvaged is the batch seal.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from asset_kernel.domain.contexts import DeployContext, SalvageSealContext
from asset_kernel.domain.lifecycle import (
    SALVAGE_SEAL_SOURCES,
    TERMINAL_STATES,
    TRANSFERABLE_STATES,
    VALID_TRANSITIONS,
    LifecycleState,
    can_transition,
    coerce_state,
    is_transition_permitted,
)
from asset_kernel.exceptions import UnknownLifecycleStateError

S = LifecycleState

EXPECTED_EDGES = {
    (S.IN_STORAGE, S.READY_FOR_SHIPMENT),
    (S.IN_STORAGE, S.DEPLOYED),
    (S.IN_STORAGE, S.SALVAGE_PENDING),
    (S.READY_FOR_SHIPMENT, S.IN_TRANSIT),
    (S.IN_TRANSIT, S.DELIVERED),
    (S.DELIVERED, S.IN_STORAGE),
    (S.DELIVERED, S.DEPLOYED),
    (S.DEPLOYED, S.REDEPLOY_PENDING),
    (S.DEPLOYED, S.SALVAGE_PENDING),
    (S.DEPLOYED, S.READY_FOR_SHIPMENT),
    (S.DEPLOYED, S.IN_STORAGE),
    (S.REDEPLOY_PENDING, S.DEPLOYED),
    (S.REDEPLOY_PENDING, S.IN_STORAGE),
    (S.REDEPLOY_PENDING, S.READY_FOR_SHIPMENT),
    (S.SALVAGE_PENDING, S.READY_FOR_SHIPMENT),
}

states = st.sampled_from(list(LifecycleState))

SEAL = SalvageSealContext(
    batch_id="5b0c7f9e-8d0a-4a8c-9a53-3f1f0e4b8d11",
    batch_code="SAL-2024-01-01-120000",
    manifest_number="MAN-1",
)


class TestTableShape:

    def test_every_state_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(LifecycleState)

    def test_edge_set_is_exact(self):
        actual = {
            (source, target)
            for source, targets in VALID_TRANSITIONS.items()
            for target in targets
        }
        assert actual == EXPECTED_EDGES

    def test_salvaged_is_terminal(self):
        assert VALID_TRANSITIONS[S.SALVAGED] == frozenset()
        assert S.SALVAGED in TERMINAL_STATES

    def test_no_table_edge_enters_salvaged(self):
        assert all(S.SALVAGED not in targets for targets in VALID_TRANSITIONS.values())

    def test_transferable_states(self):
        assert TRANSFERABLE_STATES == {
            S.IN_STORAGE, S.DELIVERED, S.REDEPLOY_PENDING, S.SALVAGE_PENDING,
        }

    def test_state_values_are_the_stored_names(self):
        assert [s.value for s in LifecycleState] == [
            "InStorage",
            "ReadyForShipment",
            "InTransit",
            "Delivered",
            "Deployed",
            "RedeployPending",
            "SalvagePending",
            "Salvaged",
        ]


class TestCanTransition:

    @given(source=states, target=states)
    def test_matches_table(self, source, target):
        assert can_transition(source, target) == ((source, target) in EXPECTED_EDGES)

    @given(target=states)
    def test_nothing_leaves_salvaged(self, target):
        assert not can_transition(S.SALVAGED, target)
        assert not is_transition_permitted(S.SALVAGED, target, SEAL)

    def test_accepts_string_values(self):
        assert can_transition("InStorage", "Deployed")
        assert not can_transition("InTransit", "Deployed")

    def test_coerce_unknown_state_raises(self):
        with pytest.raises(ValueError):
            coerce_state("Lost")

    @pytest.mark.parametrize("current, target", [("Lost", "Deployed"), ("InStorage", "Lost")])
    def test_unknown_state_is_typed_error(self, current, target):
        with pytest.raises(UnknownLifecycleStateError) as excinfo:
            can_transition(current, target)
        assert excinfo.value.value == "Lost"
        assert excinfo.value.code == "UNKNOWN_LIFECYCLE_STATE"


class TestSalvageSeal:

    @given(source=states)
    def test_salvaged_requires_seal(self, source):
        assert not is_transition_permitted(source, S.SALVAGED, None)
        assert not is_transition_permitted(
            source, S.SALVAGED, DeployContext(desk="4F-01")
        )

    @given(source=states)
    def test_seal_only_from_seal_sources(self, source):
        assert is_transition_permitted(source, S.SALVAGED, SEAL) == (
            source in SALVAGE_SEAL_SOURCES
        )

    def test_seal_sources(self):
        assert SALVAGE_SEAL_SOURCES == {S.DELIVERED, S.SALVAGE_PENDING}

    @given(source=states, target=states)
    def test_non_salvage_targets_follow_table(self, source, target):
        if target is S.SALVAGED:
            return
        assert is_transition_permitted(source, target, None) == can_transition(source, target)
