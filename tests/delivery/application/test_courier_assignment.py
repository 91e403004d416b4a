"""Application tests for AssignmentCoordinator: claims, declines and operator overrides."""

import threading
from datetime import timedelta

import pytest
from ordering.order.order import Order
from protean import UnitOfWork, current_domain
from shared.domain import dispatch
from shared.exceptions import AlreadyAssigned, InvalidState, InvalidTransition


class TestCourierAccept:
    def test_accept_binds_courier_and_keeps_ready(self, services, ready_order, clock, sink):
        order_id = ready_order()

        order = services.coordinator.accept(order_id, "courier-1", "Bob")

        assert order.status == "READY"
        assert order.courier_id == "courier-1"
        assert order.courier_name == "Bob"
        assert order.assigned_at == clock.now()
        assert order.pickup_time == clock.now()
        last = order.status_history[-1]
        assert last.status == "READY"
        assert last.changed_by == "COURIER_courier-1"
        assert last.notes == "Courier accepted order"
        assert sink.kinds(order_id)[-1] == "courier_accepted"

    def test_order_leaves_available_list(self, services, ready_order):
        taken = ready_order()
        free = ready_order()

        services.coordinator.accept(taken, "courier-1", "Bob")

        assert [o.id for o in services.coordinator.list_available()] == [free]
        assert [o.id for o in services.coordinator.list_for_courier("courier-1")] == [taken]

    def test_second_courier_gets_already_assigned(self, services, ready_order):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")

        with pytest.raises(AlreadyAssigned) as exc_info:
            services.coordinator.accept(order_id, "courier-2", "Carol")

        assert "Order already has a courier assigned" in str(exc_info.value)
        assert services.intake.get(order_id).courier_id == "courier-1"

    def test_order_not_ready(self, services, make_order):
        order = make_order()

        with pytest.raises(InvalidTransition) as exc_info:
            services.coordinator.accept(order.id, "courier-1", "Bob")
        assert "Order is not ready for pickup" in str(exc_info.value)
        assert services.intake.get(order.id).courier_id is None


class TestCourierDecline:
    def test_decline_releases_order(self, services, ready_order, sink):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")

        order = services.coordinator.decline(order_id, "courier-1", "Too far")

        assert order.courier_id is None
        assert order.decline_reason == "Too far"
        assert order.status == "READY"
        assert [o.id for o in services.coordinator.list_available()] == [order_id]
        assert sink.kinds(order_id)[-1] == "courier_declined"

    def test_declined_order_can_be_claimed_again(self, services, ready_order):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")
        services.coordinator.decline(order_id, "courier-1", "Flat tyre")

        order = services.coordinator.accept(order_id, "courier-2", "Carol")

        assert order.courier_id == "courier-2"
        assert order.decline_reason is None

    def test_only_bound_courier_may_decline(self, services, ready_order):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")

        with pytest.raises(InvalidState):
            services.coordinator.decline(order_id, "courier-2", "Not mine")
        assert services.intake.get(order_id).courier_id == "courier-1"


class TestOperatorAssign:
    def test_assign_overrides_existing_binding(self, services, ready_order, sink):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")

        order = services.coordinator.assign(order_id, "courier-2", "Carol")

        assert order.courier_id == "courier-2"
        assert order.status_history[-1].changed_by == "OPERATOR"
        assert order.status_history[-1].notes == "Courier manually assigned"
        assert sink.sent_messages[-1]["kind"] == "courier_assigned"
        assert sink.sent_messages[-1]["courier_id"] == "courier-2"

    def test_assign_before_ready(self, services, make_order):
        order = make_order()
        services.intake.accept_order(order.id, "manager-1")

        assigned = services.coordinator.assign(order.id, "courier-1", "Bob")

        assert assigned.status == "ACCEPTED"
        assert assigned.courier_id == "courier-1"

    def test_assign_to_placed_order_is_invalid(self, services, make_order):
        order = make_order()
        with pytest.raises(InvalidTransition):
            services.coordinator.assign(order.id, "courier-1", "Bob")


class TestClaimRace:
    def test_conditional_update_lets_only_one_claim_win(self, services, ready_order):
        order_id = ready_order()

        with UnitOfWork():
            assert current_domain.repository_for(Order).claim_courier(order_id, "courier-1") is True

        with UnitOfWork():
            assert current_domain.repository_for(Order).claim_courier(order_id, "courier-2") is False

        assert services.intake.get(order_id).courier_id == "courier-1"

    def test_claim_lost_after_load_raises_already_assigned(self, services, ready_order, monkeypatch):
        order_id = ready_order()
        repository_cls = type(current_domain.repository_for(Order))
        original_claim = repository_cls.claim_courier

        def rival_claim():
            with dispatch.domain_context(), UnitOfWork():
                original_claim(current_domain.repository_for(Order), order_id, "courier-rival")

        def claim_after_rival(self, order_id, courier_id):
            # a rival commits its claim between our load and our update
            rival = threading.Thread(target=rival_claim)
            rival.start()
            rival.join(timeout=30)
            return original_claim(self, order_id, courier_id)

        monkeypatch.setattr(repository_cls, "claim_courier", claim_after_rival)

        with pytest.raises(AlreadyAssigned):
            services.coordinator.accept(order_id, "courier-1", "Bob")

        assert services.intake.get(order_id).courier_id == "courier-rival"


class TestDeliveryFlow:
    def test_start_delivery_marks_ticket_picked_up(self, services, ready_order, clock):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")
        clock.advance(minutes=5)

        order = services.coordinator.start_delivery(order_id, "courier-1")

        assert order.status == "PICKED_UP"
        assert order.picked_up_at == clock.now()
        assert order.pickup_time == clock.now()
        assert order.estimated_delivery_time == clock.now() + timedelta(minutes=30)
        assert services.kitchen.get_for_order(order_id).status == "PICKED_UP"

    def test_start_delivery_by_other_courier(self, services, ready_order):
        order_id = ready_order()
        services.coordinator.accept(order_id, "courier-1", "Bob")

        with pytest.raises(InvalidState):
            services.coordinator.start_delivery(order_id, "courier-2")

        assert services.intake.get(order_id).status == "READY"
        assert services.kitchen.get_for_order(order_id).status == "READY"

    def test_forcing_ready_order_back_to_preparing_fails(self, services, ready_order):
        order_id = ready_order()

        with pytest.raises(InvalidTransition):
            services.intake.transition(order_id, "PREPARING", "OPERATOR")

        assert services.intake.get(order_id).status == "READY"
