"""
LifecycleEngine: transitions, side effects, events and the composite
deploy / replace / redeploy / reassign operations.
"""

from datetime import date
from decimal import Decimal

import pytest

from asset_kernel.domain.contexts import DeliveryContext, DeployContext, SalvageSealContext
from asset_kernel.domain.events import (
    LocationReassignedAfterDelivery,
    Replaced,
    ReplacedBy,
    StateChanged,
)
from asset_kernel.domain.lifecycle import VALID_TRANSITIONS, LifecycleState
from asset_kernel.domain.results import OperationStatus
from asset_kernel.domain.side_effects import SENSITIVE_FIELDS
from asset_kernel.exceptions import UnknownLifecycleStateError

S = LifecycleState
ACTOR = "test-tech"

# A context that satisfies each context-taking target.
CONTEXT_FOR = {
    S.DEPLOYED: DeployContext(desk="4F-12"),
    S.DELIVERED: DeliveryContext(to_site="BRONX", location="Dock", floor="Ground"),
}


class TestTransitionToState:

    def test_deploy_from_storage(self, lifecycle, make_asset, deterministic_clock):
        make_asset("LT-1")
        result = lifecycle.deploy_asset(
            "LT-1", "4F-12", "Jane Doe", "jane@example.com", actor=ACTOR
        )

        assert result.is_success
        info = result.value
        assert info.lifecycle_state == S.DEPLOYED
        assert info.current_desk == "4F-12"
        assert info.deployed_to_user == "Jane Doe"
        assert info.deployed_at == deterministic_clock.now()
        assert info.updated_by == ACTOR

    def test_transition_writes_one_state_changed_event(self, lifecycle, make_asset):
        make_asset("LT-2")
        lifecycle.deploy_asset("LT-2", "4F-12", actor=ACTOR)

        history = lifecycle.history("LT-2")
        assert [r.event_type for r in history] == ["AssetRegistered", "StateChanged_Deployed"]
        event = history[-1].event
        assert isinstance(event, StateChanged)
        assert event.old_state == S.IN_STORAGE
        assert event.context == DeployContext(desk="4F-12")
        assert history[-1].created_by == ACTOR

    @pytest.mark.parametrize("source", [s for s in LifecycleState if s is not S.SALVAGED])
    def test_illegal_transitions_change_nothing(self, lifecycle, make_asset, source):
        tag = f"IL-{source.value}"
        make_asset(tag, source)
        before = lifecycle.get_asset(tag)
        events_before = len(lifecycle.history(tag))

        for target in LifecycleState:
            if target in VALID_TRANSITIONS[source] or target is S.SALVAGED:
                continue
            result = lifecycle.transition_to_state(
                tag, target, actor=ACTOR, context=CONTEXT_FOR.get(target)
            )
            assert result.status == OperationStatus.INVALID_TRANSITION, target
            assert result.error_code == "INVALID_TRANSITION"

        assert lifecycle.get_asset(tag) == before
        assert len(lifecycle.history(tag)) == events_before

    def test_unknown_asset(self, lifecycle):
        result = lifecycle.mark_salvage_pending("NOPE", actor=ACTOR)
        assert result.status == OperationStatus.NOT_FOUND
        assert result.error_code == "ASSET_NOT_FOUND"

    def test_unknown_state_name(self, lifecycle, make_asset):
        make_asset("LT-3")
        result = lifecycle.transition_to_state("LT-3", "Lost", actor=ACTOR)
        assert result.status == OperationStatus.VALIDATION_FAILED
        assert result.error_code == "UNKNOWN_LIFECYCLE_STATE"

    def test_deploy_without_context_is_validation_failure(self, lifecycle, make_asset):
        make_asset("LT-4")
        result = lifecycle.transition_to_state("LT-4", S.DEPLOYED, actor=ACTOR)
        assert result.status == OperationStatus.VALIDATION_FAILED
        assert result.error_code == "MISSING_CONTEXT"
        assert lifecycle.get_asset("LT-4").lifecycle_state == S.IN_STORAGE

    def test_deploy_with_blank_desk_rejected(self, lifecycle, make_asset):
        make_asset("LT-5")
        result = lifecycle.deploy_asset("LT-5", "  ", actor=ACTOR)
        assert result.error_code == "INVALID_CONTEXT"

    def test_wrong_context_type_rejected(self, lifecycle, make_asset):
        make_asset("LT-6")
        result = lifecycle.transition_to_state(
            "LT-6", S.DEPLOYED, actor=ACTOR, context=CONTEXT_FOR[S.DELIVERED]
        )
        assert result.error_code == "INVALID_CONTEXT"

    def test_context_on_contextless_target_rejected(self, lifecycle, make_asset):
        make_asset("LT-7")
        result = lifecycle.transition_to_state(
            "LT-7", S.SALVAGE_PENDING, actor=ACTOR, context=DeployContext(desk="x")
        )
        assert result.error_code == "INVALID_CONTEXT"

    def test_salvaged_needs_batch_seal(self, lifecycle, make_asset):
        make_asset("LT-8", S.DELIVERED, current_site="LIC")
        assert lifecycle.transition_to_state("LT-8", S.SALVAGED, actor=ACTOR).status == (
            OperationStatus.INVALID_TRANSITION
        )

        forged = SalvageSealContext(
            batch_id="5b0c7f9e-8d0a-4a8c-9a53-3f1f0e4b8d11",
            batch_code="SAL-FAKE",
            manifest_number="M-1",
        )
        result = lifecycle.transition_to_state("LT-8", S.SALVAGED, actor=ACTOR, context=forged)
        assert result.error_code == "INVALID_CONTEXT"
        assert lifecycle.get_asset("LT-8").lifecycle_state == S.DELIVERED

    def test_can_transition_is_pure_lookup(self, lifecycle):
        assert lifecycle.can_transition(S.IN_STORAGE, S.DEPLOYED)
        assert not lifecycle.can_transition(S.SALVAGED, S.IN_STORAGE)
        with pytest.raises(UnknownLifecycleStateError):
            lifecycle.can_transition("Lost", S.DEPLOYED)


class TestSideEffectsThroughEngine:

    def test_salvage_pending_clears_sensitive_fields(self, lifecycle, make_asset):
        make_asset(
            "LT-10",
            S.IN_STORAGE,
            current_site="LIC",
            serial_number="SN-10",
            manufacturer="Dell",
            model="Latitude",
            ip_address="10.0.0.5",
            mac_address="00:11:22:33:44:55",
            assigned_user_name="Jane",
            assigned_user_email="jane@example.com",
            phone_number="555-0100",
            wall_port="WP-1",
        )
        lifecycle.deploy_asset("LT-10", "4F-12", "Jane", "jane@example.com", actor=ACTOR)

        result = lifecycle.mark_salvage_pending("LT-10", actor=ACTOR)

        assert result.is_success
        info = result.value
        for name in SENSITIVE_FIELDS:
            if hasattr(info, name):
                assert getattr(info, name) is None, name
        assert (info.asset_tag, info.serial_number, info.manufacturer, info.model) == (
            "LT-10", "SN-10", "Dell", "Latitude",
        )
        assert info.current_site == "LIC"

    def test_in_storage_at_lic(self, lifecycle, make_asset):
        make_asset("LT-11", S.DEPLOYED, current_site="LIC")
        result = lifecycle.transition_to_state("LT-11", S.IN_STORAGE, actor=ACTOR)
        info = result.value
        assert info.current_storage_location == "LIC Storage"
        assert info.floor == "Storage"
        assert info.location == "LIC"

    def test_pickup_and_deliver(self, lifecycle, make_asset):
        make_asset("LT-12", S.READY_FOR_SHIPMENT, current_site="LIC")
        picked = lifecycle.pickup_asset(
            "LT-12", destination_site="BRONX", carrier="UPS", tracking_number="1Z9", actor=ACTOR
        )
        assert picked.value.lifecycle_state == S.IN_TRANSIT
        assert picked.value.carrier == "UPS"

        delivered = lifecycle.deliver_asset("LT-12", "BRONX", "Dock", "Ground", actor=ACTOR)
        assert delivered.value.lifecycle_state == S.DELIVERED
        assert delivered.value.current_site == "BRONX"

    def test_mark_ready_for_shipment(self, lifecycle, make_asset, deterministic_clock):
        make_asset("LT-13")
        result = lifecycle.mark_ready_for_shipment("LT-13", actor=ACTOR)
        assert result.value.ready_for_pickup_at == deterministic_clock.now()
        assert result.value.ready_for_pickup_by == ACTOR


class TestReplaceAsset:

    def test_replace_sends_old_to_salvage(self, lifecycle, make_asset):
        make_asset("A1", S.DEPLOYED, current_site="LIC")
        make_asset("A2", S.IN_STORAGE, current_site="LIC")

        result = lifecycle.replace_asset(
            "A1", "A2", "Desk-5", "Jane", "jane@x.com", actor=ACTOR
        )

        assert result.is_success
        assert result.value.new_asset.lifecycle_state == S.DEPLOYED
        assert result.value.new_asset.current_desk == "Desk-5"
        assert result.value.new_asset.deployed_to_user == "Jane"
        assert result.value.old_asset.lifecycle_state == S.SALVAGE_PENDING

        replaced = lifecycle.history("A2")[-1].event
        replaced_by = lifecycle.history("A1")[-1].event
        assert replaced == Replaced(
            replaced_asset_tag="A1", desk="Desk-5", user_name="Jane", user_email="jane@x.com"
        )
        assert replaced_by == ReplacedBy(replacement_asset_tag="A2", disposition="SalvagePending")

    def test_replace_can_keep_old_for_redeploy(self, lifecycle, make_asset):
        make_asset("A3", S.DEPLOYED)
        make_asset("A4")
        result = lifecycle.replace_asset(
            "A3", "A4", "Desk-6", actor=ACTOR, send_old_to_salvage=False
        )
        assert result.value.old_asset.lifecycle_state == S.REDEPLOY_PENDING

    def test_failed_old_side_rolls_back_new_deploy(self, lifecycle, make_asset):
        make_asset("A5", S.IN_TRANSIT)
        make_asset("A6")
        events_before = len(lifecycle.history("A6"))

        result = lifecycle.replace_asset("A5", "A6", "Desk-7", actor=ACTOR)

        assert result.status == OperationStatus.INVALID_TRANSITION
        assert lifecycle.get_asset("A6").lifecycle_state == S.IN_STORAGE
        assert lifecycle.get_asset("A6").current_desk is None
        assert len(lifecycle.history("A6")) == events_before

    def test_failed_new_side_leaves_old_untouched(self, lifecycle, make_asset):
        make_asset("A7", S.DEPLOYED)
        make_asset("A8", S.IN_TRANSIT)
        result = lifecycle.replace_asset("A7", "A8", "Desk-8", actor=ACTOR)
        assert not result.is_success
        assert lifecycle.get_asset("A7").lifecycle_state == S.DEPLOYED

    def test_self_replacement_rejected(self, lifecycle, make_asset):
        make_asset("A9", S.DEPLOYED)
        result = lifecycle.replace_asset("A9", "A9", "Desk-9", actor=ACTOR)
        assert result.error_code == "SELF_REPLACEMENT"


class TestRedeploy:

    def test_new_desk_keeps_user(self, lifecycle, make_asset):
        make_asset("R1")
        lifecycle.deploy_asset("R1", "4F-01", "Jane", "jane@x.com", actor=ACTOR)
        lifecycle.transition_to_state("R1", S.REDEPLOY_PENDING, actor=ACTOR)

        result = lifecycle.redeploy_asset("R1", "5F-02", actor=ACTOR)

        assert result.value.lifecycle_state == S.DEPLOYED
        assert result.value.current_desk == "5F-02"
        assert result.value.deployed_to_user == "Jane"

    def test_empty_desk_goes_to_storage(self, lifecycle, make_asset):
        make_asset("R2", S.REDEPLOY_PENDING, current_site="BROOKLYN")
        result = lifecycle.redeploy_asset("R2", "", actor=ACTOR)
        assert result.value.lifecycle_state == S.IN_STORAGE
        assert result.value.current_storage_location == "BROOKLYN Storage"


class TestReassignLocation:

    def test_reassign_delivered_asset(self, lifecycle, make_asset):
        make_asset("D1", S.DELIVERED, current_site="LIC", location="LIC", floor="Ground")
        result = lifecycle.reassign_location_after_delivery(
            "D1", "BRONX", "3", "3-12", actor=ACTOR
        )

        assert result.is_success
        assert result.value.lifecycle_state == S.DELIVERED
        assert (result.value.location, result.value.floor, result.value.desk) == (
            "BRONX", "3", "3-12",
        )
        event = lifecycle.history("D1")[-1].event
        assert event == LocationReassignedAfterDelivery(
            previous_location="LIC",
            previous_floor="Ground",
            previous_desk=None,
            location="BRONX",
            floor="3",
            desk="3-12",
        )

    def test_reassign_requires_delivered(self, lifecycle, make_asset):
        make_asset("D2", S.DEPLOYED)
        result = lifecycle.reassign_location_after_delivery("D2", "LIC", "1", actor=ACTOR)
        assert result.status == OperationStatus.INELIGIBLE
        assert result.error_code == "NOT_DELIVERED"

    def test_reassign_requires_location_and_floor(self, lifecycle, make_asset):
        make_asset("D3", S.DELIVERED)
        result = lifecycle.reassign_location_after_delivery("D3", "LIC", " ", actor=ACTOR)
        assert result.error_code == "FIELD_VALIDATION_FAILED"


class TestRegisterAsset:

    def test_register_defaults_to_storage(self, lifecycle, deterministic_clock):
        result = lifecycle.register_asset(
            "N1",
            actor=ACTOR,
            current_site="LIC",
            category="Laptop",
            purchase_price=Decimal("1299.00"),
            purchase_date=date(2023, 6, 1),
        )
        assert result.is_success
        assert result.value.lifecycle_state == S.IN_STORAGE
        assert result.value.created_at == deterministic_clock.now()
        assert lifecycle.history("N1")[0].event_type == "AssetRegistered"

    def test_duplicate_tag_is_conflict(self, lifecycle, make_asset):
        make_asset("N2")
        result = lifecycle.register_asset("N2", actor=ACTOR)
        assert result.status == OperationStatus.CONFLICT
        assert result.error_code == "DUPLICATE_ASSET_TAG"

    def test_salvaged_is_not_an_initial_state(self, lifecycle):
        result = lifecycle.register_asset("N3", actor=ACTOR, lifecycle_state=S.SALVAGED)
        assert result.error_code == "INVALID_INITIAL_STATE"
        assert lifecycle.get_asset("N3") is None

    def test_unknown_attribute_rejected(self, lifecycle):
        result = lifecycle.register_asset("N4", actor=ACTOR, lifecycle_state_note="x")
        assert result.error_code == "UNKNOWN_FIELD"

    def test_editable_attributes_validated(self, lifecycle):
        result = lifecycle.register_asset("N5", actor=ACTOR, mac_address="bogus")
        assert result.error_code == "FIELD_VALIDATION_FAILED"
        assert lifecycle.get_asset("N5") is None


class TestQueries:

    def test_listings_are_ordered_and_filtered(self, lifecycle, make_asset):
        make_asset("Q-3", S.DELIVERED, current_site="LIC")
        make_asset("Q-1", S.DELIVERED, current_site="LIC")
        make_asset("Q-2", S.DELIVERED, current_site="BRONX")
        make_asset("Q-4", S.IN_TRANSIT, current_site="LIC")

        assert [a.asset_tag for a in lifecycle.assets_delivered()] == ["Q-1", "Q-2", "Q-3"]
        assert [a.asset_tag for a in lifecycle.assets_delivered("LIC")] == ["Q-1", "Q-3"]
        assert [a.asset_tag for a in lifecycle.assets_in_transit()] == ["Q-4"]
        assert lifecycle.assets_ready_for_shipment() == ()

    def test_storage_and_salvage_pending_by_site(self, lifecycle, make_asset):
        make_asset("Q-5", S.IN_STORAGE, current_site="LIC")
        make_asset("Q-6", S.SALVAGE_PENDING, current_site="BRONX")
        assert [a.asset_tag for a in lifecycle.assets_in_storage("LIC")] == ["Q-5"]
        assert [a.asset_tag for a in lifecycle.assets_salvage_pending("BRONX")] == ["Q-6"]
        assert lifecycle.assets_salvage_pending("LIC") == ()
