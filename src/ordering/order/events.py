"""Domain events for the Order aggregate.

Every event carries the order as it stood when the event was raised, so a
handler never has to reload the order. Events are dispatched to their
handlers after the unit of work that raised them has committed.
"""

from protean.fields import DateTime, Decimal, Identifier, String, Text

from shared.domain import dispatch


@dispatch.event(part_of="Order")
class OrderPlaced:
    """Payment settled (or cash order created); the restaurant should act on it."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderAccepted:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)
    accepted_by = String(max_length=100)


@dispatch.event(part_of="Order")
class OrderPreparationStarted:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)
    preparer = String(max_length=100)


@dispatch.event(part_of="Order")
class OrderReady:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class CourierAccepted:
    """A courier claimed a READY order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class CourierAssigned:
    """An operator bound a courier, overriding any earlier claim."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class CourierDeclined:
    """The bound courier gave the order back; ``courier_id`` is the courier who declined."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)
    reason = Text()


@dispatch.event(part_of="Order")
class OrderOutForDelivery:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)
    reason = Text()
    cancelled_by = String(max_length=100)


@dispatch.event(part_of="Order")
class OrderRejected:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, max_length=20)
    restaurant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Decimal(precision=12, scale=2)
    courier_id = Identifier()
    courier_name = String(max_length=200)
    occurred_at = DateTime(required=True)
    reason = Text()
    rejected_by = String(max_length=100)
