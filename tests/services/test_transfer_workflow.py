"""
TransferWorkflow: Draft -> Shipped -> Received coupled to the asset lifecycle.
"""

from uuid import uuid4

import pytest

from asset_kernel.domain.events import TransferCreated, TransferReceived, TransferShipped
from asset_kernel.domain.lifecycle import LifecycleState
from asset_kernel.domain.results import OperationStatus
from asset_kernel.domain.transfer import TransferState

S = LifecycleState
ACTOR = "test-tech"


@pytest.fixture
def stored_asset(make_asset):
    return make_asset(
        "TR-1", S.IN_STORAGE, current_site="LIC", current_storage_location="LIC Storage"
    )


class TestCreateTransfer:

    def test_create_snapshots_origin(self, transfers, lifecycle, stored_asset):
        result = transfers.create_transfer(
            "TR-1", "BRONX", actor=ACTOR, to_storage_bin="BX-B4", carrier="UPS",
            tracking_number="1Z100",
        )

        assert result.is_success
        transfer = result.value
        assert transfer.state == TransferState.DRAFT
        assert transfer.from_site == "LIC"
        assert transfer.from_storage_bin == "LIC Storage"
        assert transfer.to_site == "BRONX"
        assert transfer.created_by == ACTOR

        event = lifecycle.history("TR-1")[-1].event
        assert isinstance(event, TransferCreated)
        assert event.transfer_id == str(transfer.id)
        assert lifecycle.get_asset("TR-1").lifecycle_state == S.IN_STORAGE

    def test_unknown_origin_site(self, transfers, make_asset):
        make_asset("TR-2", S.DELIVERED)
        result = transfers.create_transfer("TR-2", "LIC", actor=ACTOR)
        assert result.value.from_site == "Unknown"

    @pytest.mark.parametrize(
        "state", [S.READY_FOR_SHIPMENT, S.IN_TRANSIT, S.DEPLOYED]
    )
    def test_disallowed_states(self, transfers, make_asset, state):
        make_asset(f"TR-{state.value}", state)
        result = transfers.create_transfer(f"TR-{state.value}", "LIC", actor=ACTOR)
        assert result.status == OperationStatus.INELIGIBLE
        assert result.error_code == "TRANSFER_NOT_ALLOWED"
        assert transfers.transfers_for_asset(f"TR-{state.value}") == ()

    def test_blank_destination_rejected(self, transfers, stored_asset):
        result = transfers.create_transfer("TR-1", " ", actor=ACTOR)
        assert result.status == OperationStatus.VALIDATION_FAILED

    def test_unknown_asset(self, transfers):
        result = transfers.create_transfer("NOPE", "LIC", actor=ACTOR)
        assert result.status == OperationStatus.NOT_FOUND


class TestShipAndReceive:

    def test_round_trip(self, transfers, lifecycle, stored_asset, deterministic_clock):
        transfer = transfers.create_transfer(
            "TR-1", "BRONX", actor=ACTOR, to_storage_bin="BX-B4"
        ).value

        deterministic_clock.advance(60)
        shipped = transfers.ship_transfer(transfer.id, actor=ACTOR)
        assert shipped.is_success
        assert shipped.value.state == TransferState.SHIPPED
        assert shipped.value.shipped_at == deterministic_clock.now()
        assert lifecycle.get_asset("TR-1").lifecycle_state == S.READY_FOR_SHIPMENT

        lifecycle.pickup_asset("TR-1", actor="carrier")

        deterministic_clock.advance(3600)
        received = transfers.receive_transfer(transfer.id, "Dock Worker", actor=ACTOR)
        assert received.is_success
        assert received.value.state == TransferState.RECEIVED
        assert received.value.received_by == "Dock Worker"

        asset = lifecycle.get_asset("TR-1")
        assert asset.lifecycle_state == S.DELIVERED
        assert asset.current_site == "BRONX"
        assert asset.location == "BX-B4"
        assert asset.floor == "Ground"
        assert asset.desk is None

        types = [type(r.event) for r in lifecycle.history("TR-1")]
        assert TransferShipped in types
        assert TransferReceived in types

    def test_receive_without_bin_uses_default_area(self, transfers, lifecycle, stored_asset):
        transfer = transfers.create_transfer("TR-1", "BRONX", actor=ACTOR).value
        transfers.ship_transfer(transfer.id, actor=ACTOR)
        lifecycle.pickup_asset("TR-1", actor=ACTOR)

        received = transfers.receive_transfer(transfer.id, "", actor=ACTOR)

        assert received.value.received_by == ACTOR
        assert lifecycle.get_asset("TR-1").location == "Main Delivery Area"

    def test_ship_twice_rejected(self, transfers, stored_asset):
        transfer = transfers.create_transfer("TR-1", "BRONX", actor=ACTOR).value
        transfers.ship_transfer(transfer.id, actor=ACTOR)
        again = transfers.ship_transfer(transfer.id, actor=ACTOR)
        assert again.status == OperationStatus.INVALID_TRANSITION
        assert again.error_code == "INVALID_TRANSFER_TRANSITION"

    def test_receive_draft_rejected(self, transfers, stored_asset):
        transfer = transfers.create_transfer("TR-1", "BRONX", actor=ACTOR).value
        result = transfers.receive_transfer(transfer.id, "x", actor=ACTOR)
        assert result.error_code == "INVALID_TRANSFER_TRANSITION"

    def test_failed_lifecycle_keeps_transfer_in_draft(self, transfers, lifecycle, make_asset):
        make_asset("TR-3", S.DELIVERED, current_site="LIC")
        transfer = transfers.create_transfer("TR-3", "BRONX", actor=ACTOR).value

        # Delivered assets cannot go straight to ReadyForShipment.
        result = transfers.ship_transfer(transfer.id, actor=ACTOR)

        assert result.status == OperationStatus.INVALID_TRANSITION
        assert transfers.get_transfer(transfer.id).state == TransferState.DRAFT
        assert lifecycle.get_asset("TR-3").lifecycle_state == S.DELIVERED

    def test_receive_before_pickup_keeps_transfer_shipped(self, transfers, stored_asset):
        transfer = transfers.create_transfer("TR-1", "BRONX", actor=ACTOR).value
        transfers.ship_transfer(transfer.id, actor=ACTOR)

        result = transfers.receive_transfer(transfer.id, "x", actor=ACTOR)

        assert result.status == OperationStatus.INVALID_TRANSITION
        assert transfers.get_transfer(transfer.id).state == TransferState.SHIPPED

    def test_unknown_transfer(self, transfers):
        assert transfers.ship_transfer(uuid4(), actor=ACTOR).error_code == "TRANSFER_NOT_FOUND"
        assert transfers.ship_transfer("garbage", actor=ACTOR).error_code == "TRANSFER_NOT_FOUND"


class TestTransferQueries:

    def test_lookup_by_tag_tracking_and_pending(
        self, transfers, make_asset, deterministic_clock
    ):
        make_asset("TQ-1", S.IN_STORAGE, current_site="LIC")
        make_asset("TQ-2", S.IN_STORAGE, current_site="BROOKLYN")

        first = transfers.create_transfer(
            "TQ-1", "BRONX", actor=ACTOR, tracking_number="1Z-A"
        ).value
        deterministic_clock.advance(10)
        second = transfers.create_transfer(
            "TQ-2", "LIC", actor=ACTOR, tracking_number="1Z-A"
        ).value
        deterministic_clock.advance(10)
        transfers.ship_transfer(second.id, actor=ACTOR)

        assert [t.id for t in transfers.transfers_by_tracking_number("1Z-A")] == [
            second.id, first.id,
        ]
        assert [t.id for t in transfers.transfers_for_asset("TQ-1")] == [first.id]
        assert {t.id for t in transfers.pending_transfers()} == {first.id, second.id}
        assert [t.id for t in transfers.pending_transfers("BROOKLYN")] == [second.id]
        assert [t.id for t in transfers.pending_transfers("LIC")] == [second.id, first.id]
        assert transfers.get_transfer(first.id).asset_tag == "TQ-1"
        assert transfers.get_transfer("garbage") is None
