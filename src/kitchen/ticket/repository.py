"""Kitchen ticket queries."""

from protean.exceptions import ObjectNotFoundError

from kitchen.ticket.ticket import PRIORITY_RANK, KitchenTicket, TicketStatus
from shared.domain import dispatch


@dispatch.repository(part_of=KitchenTicket)
class TicketRepository:
    def find_for_order(self, order_id: str) -> KitchenTicket | None:
        return self.query.filter(order_id=order_id).all().first

    def get_for_order(self, order_id: str) -> KitchenTicket:
        ticket = self.find_for_order(order_id)
        if ticket is None:
            raise ObjectNotFoundError({"order_id": [f"No kitchen ticket for order {order_id}"]})
        return ticket

    def with_statuses(self, statuses: list[TicketStatus], restaurant_id: str | None = None) -> list[KitchenTicket]:
        """Tickets in any of ``statuses``, most urgent first, then oldest first."""
        query = self.query.filter(status__in=[s.value for s in statuses])
        if restaurant_id is not None:
            query = query.filter(restaurant_id=restaurant_id)
        return sorted(
            query.all().items,
            key=lambda ticket: (PRIORITY_RANK.get(ticket.priority, len(PRIORITY_RANK)), ticket.created_at),
        )
