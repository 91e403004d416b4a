"""Order queries, plus the conditional courier claim."""

from collections import Counter
from datetime import datetime

from protean.exceptions import ObjectNotFoundError
from sqlalchemy import update

from ordering.order.order import Order
from ordering.order.status import OrderStatus
from shared.domain import dispatch


@dispatch.repository(part_of=Order)
class OrderRepository:
    def get_by_number(self, order_number: str) -> Order:
        order = self.query.filter(order_number=order_number).all().first
        if order is None:
            raise ObjectNotFoundError({"order_number": [f"Order {order_number} not found"]})
        return order

    # -------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------
    def list_orders(
        self,
        status: OrderStatus | None = None,
        restaurant_id: str | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        query = self.query.order_by("-created_at")
        if status is not None:
            query = query.filter(status=status.value)
        if restaurant_id is not None:
            query = query.filter(restaurant_id=restaurant_id)
        if limit is not None:
            query = query.limit(limit)
        return query.all().items

    def available_for_pickup(self, restaurant_id: str | None = None) -> list[Order]:
        query = self.query.filter(status=OrderStatus.READY.value, courier_id__isnull=True).order_by(
            ["ready_at", "created_at"]
        )
        if restaurant_id is not None:
            query = query.filter(restaurant_id=restaurant_id)
        return query.all().items

    def for_courier(self, courier_id: str) -> list[Order]:
        return self.query.filter(courier_id=courier_id).order_by("-created_at").all().items

    def stale_ids(self, status: OrderStatus, older_than: datetime) -> list[str]:
        """Ids of orders still in ``status`` whose entry into it predates ``older_than``.

        PLACED orders age from ``placed_at``; everything else from ``created_at``.
        """
        column = "placed_at" if status == OrderStatus.PLACED else "created_at"
        orders = self.query.filter(status=status.value, **{f"{column}__lt": older_than}).order_by(column).all()
        return [str(order.id) for order in orders.items]

    def count_by_status(self, start: datetime, end: datetime) -> dict[str, int]:
        orders = self.query.filter(created_at__gte=start, created_at__lt=end).all().items
        return dict(Counter(order.status for order in orders))

    def completed_between(self, start: datetime, end: datetime) -> list[Order]:
        return (
            self.query.filter(
                status=OrderStatus.COMPLETED.value,
                completed_at__gte=start,
                completed_at__lt=end,
            )
            .all()
            .items
        )

    # -------------------------------------------------------------------
    # Courier claim
    # -------------------------------------------------------------------
    def claim_courier(self, order_id: str, courier_id: str) -> bool:
        """Bind ``courier_id`` only if no courier is bound yet.

        A single conditional UPDATE on the unit of work's connection, so of
        two concurrent claims exactly one matches a row.
        """
        table = self._dao.database_model_cls.__table__
        result = self._dao._get_session().execute(
            update(table)
            .where(table.c.id == order_id, table.c.courier_id.is_(None))
            .values(courier_id=courier_id)
        )
        return result.rowcount == 1
