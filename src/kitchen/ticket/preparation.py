"""Kitchen synchronizer: advances the preparation ticket and the order together.

Each public call runs in one unit of work covering the ticket, the order and
the order's status history, so the ticket never shows READY while the order
does not (or the other way round).
"""

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from kitchen.ticket.ticket import KitchenTicket, TicketPriority, TicketStatus
from ordering.order.order import Order
from shared.clock import SystemClock
from shared.exceptions import InvalidState

logger = structlog.get_logger(__name__)


class KitchenSynchronizer:
    def __init__(self, clock=None, default_preparation_minutes: int = 30):
        self._clock = clock or SystemClock()
        self._default_minutes = default_preparation_minutes

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def open(self, order: Order, notes: str | None = None) -> KitchenTicket:
        """Create the PENDING ticket for ``order``. Joins the caller's unit of work."""
        order_id = str(order.id)
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            if tickets.find_for_order(order_id) is not None:
                raise InvalidState({"order_id": [f"Order {order_id} already has a kitchen ticket"]})

            ticket = KitchenTicket.open(
                order_id=order_id,
                restaurant_id=order.restaurant_id,
                estimated_minutes=self._default_minutes,
                now=self._clock.now(),
                notes=notes,
            )
            tickets.add(ticket)

        logger.info("Kitchen ticket opened", ticket_id=str(ticket.id), order_id=order_id)
        return ticket

    def start_preparation(self, ticket_id: str, preparer_name: str) -> KitchenTicket:
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            orders = current_domain.repository_for(Order)
            ticket = tickets.get(ticket_id)
            order = orders.get(ticket.order_id)
            now = self._clock.now()

            ticket.start_preparation(preparer_name, now)
            order.start_preparing(preparer_name, now)
            tickets.add(ticket)
            orders.add(order)

        logger.info(
            "Preparation started",
            ticket_id=ticket_id,
            order_id=ticket.order_id,
            preparer=preparer_name,
        )
        return ticket

    def mark_ready(self, ticket_id: str) -> KitchenTicket:
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            orders = current_domain.repository_for(Order)
            ticket = tickets.get(ticket_id)
            order = orders.get(ticket.order_id)
            now = self._clock.now()

            ticket.mark_ready(now)
            order.mark_ready(now)
            tickets.add(ticket)
            orders.add(order)

        logger.info(
            "Order ready",
            ticket_id=ticket_id,
            order_id=ticket.order_id,
            actual_minutes=ticket.actual_preparation_minutes,
            estimated_minutes=ticket.estimated_preparation_minutes,
        )
        return ticket

    def mark_picked_up(self, ticket_id: str) -> KitchenTicket:
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            ticket = tickets.get(ticket_id)
            ticket.mark_picked_up(self._clock.now())
            tickets.add(ticket)

        logger.info("Kitchen ticket picked up", ticket_id=ticket_id, order_id=ticket.order_id)
        return ticket

    def mark_order_picked_up(self, order_id: str) -> KitchenTicket:
        """Same as ``mark_picked_up`` but addressed by order. Used by the delivery flow."""
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            ticket = tickets.get_for_order(order_id)
            ticket.mark_picked_up(self._clock.now())
            tickets.add(ticket)

        logger.info("Kitchen ticket picked up", ticket_id=str(ticket.id), order_id=order_id)
        return ticket

    def update_priority(self, ticket_id: str, priority: TicketPriority | str) -> KitchenTicket:
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            ticket = tickets.get(ticket_id)
            ticket.update_priority(priority, self._clock.now())
            tickets.add(ticket)
        return ticket

    def cancel_for_order(self, order_id: str) -> KitchenTicket | None:
        """Cancel the order's ticket if it has not gone past PENDING yet."""
        with UnitOfWork():
            tickets = current_domain.repository_for(KitchenTicket)
            ticket = tickets.find_for_order(order_id)
            if ticket is None or TicketStatus(ticket.status) != TicketStatus.PENDING:
                return ticket
            ticket.cancel(self._clock.now())
            tickets.add(ticket)

        logger.info("Kitchen ticket cancelled", ticket_id=str(ticket.id), order_id=order_id)
        return ticket

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, ticket_id: str) -> KitchenTicket:
        return current_domain.repository_for(KitchenTicket).get(ticket_id)

    def get_for_order(self, order_id: str) -> KitchenTicket:
        return current_domain.repository_for(KitchenTicket).get_for_order(order_id)

    def list_active(self, restaurant_id: str | None = None) -> list[KitchenTicket]:
        return current_domain.repository_for(KitchenTicket).with_statuses(
            [TicketStatus.PENDING, TicketStatus.PREPARING], restaurant_id
        )

    def list_ready(self, restaurant_id: str | None = None) -> list[KitchenTicket]:
        return current_domain.repository_for(KitchenTicket).with_statuses([TicketStatus.READY], restaurant_id)
