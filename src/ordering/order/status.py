"""Order states and the table of legal transitions between them.

    PENDING → PLACED → ACCEPTED → PREPARING → READY → PICKED_UP → COMPLETED
    PENDING, PLACED, ACCEPTED → CANCELLED
    PLACED → REJECTED
    READY → COMPLETED

COMPLETED, CANCELLED and REJECTED are terminal. The deprecated names NEW,
COURIER_ASSIGNED, ON_DELIVERY and DELIVERED are still accepted as input and
resolve to PLACED, READY, PICKED_UP and COMPLETED.

Everything here is pure: no I/O, no clock, no mutable state.
"""

from enum import Enum
from types import MappingProxyType

from shared.exceptions import InvalidTransition


class OrderStatus(Enum):
    PENDING = "PENDING"
    PLACED = "PLACED"
    ACCEPTED = "ACCEPTED"
    PREPARING = "PREPARING"
    READY = "READY"
    PICKED_UP = "PICKED_UP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            upper = value.upper()
            if upper in LEGACY_ALIASES:
                return cls(LEGACY_ALIASES[upper])
            if upper in cls.__members__:
                return cls[upper]
        return None


LEGACY_ALIASES = MappingProxyType(
    {
        "NEW": "PLACED",
        "COURIER_ASSIGNED": "READY",
        "ON_DELIVERY": "PICKED_UP",
        "DELIVERED": "COMPLETED",
    }
)

_VALID_TRANSITIONS = MappingProxyType(
    {
        OrderStatus.PENDING: frozenset({OrderStatus.PLACED, OrderStatus.CANCELLED}),
        OrderStatus.PLACED: frozenset({OrderStatus.ACCEPTED, OrderStatus.REJECTED, OrderStatus.CANCELLED}),
        OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
        OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
        OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.COMPLETED}),
        OrderStatus.PICKED_UP: frozenset({OrderStatus.COMPLETED}),
        OrderStatus.COMPLETED: frozenset(),  # terminal
        OrderStatus.CANCELLED: frozenset(),  # terminal
        OrderStatus.REJECTED: frozenset(),  # terminal
    }
)


def coerce(status: "OrderStatus | str") -> OrderStatus:
    """Resolve a status value or name (including legacy aliases) to an OrderStatus."""
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        raise InvalidTransition({"status": [f"Unknown order status: {status}"]}) from None


def allowed_next(current: "OrderStatus | str") -> frozenset[OrderStatus]:
    return _VALID_TRANSITIONS[coerce(current)]


def is_terminal(status: "OrderStatus | str") -> bool:
    return not _VALID_TRANSITIONS[coerce(status)]


def can_cancel(status: "OrderStatus | str") -> bool:
    return OrderStatus.CANCELLED in _VALID_TRANSITIONS[coerce(status)]


def is_valid(current: "OrderStatus | str", target: "OrderStatus | str") -> bool:
    current, target = coerce(current), coerce(target)
    return current != target and target in _VALID_TRANSITIONS[current]


def validate(current: "OrderStatus | str", target: "OrderStatus | str") -> None:
    """Raise InvalidTransition unless ``current → target`` is a legal edge."""
    current, target = coerce(current), coerce(target)

    if current == target:
        raise InvalidTransition({"status": [f"Order is already in status: {current.value}"]})

    allowed = _VALID_TRANSITIONS[current]
    if target not in allowed:
        allowed_names = ", ".join(sorted(s.value for s in allowed)) or "none"
        raise InvalidTransition(
            {
                "status": [
                    f"Invalid status transition: {current.value} → {target.value}. "
                    f"Allowed transitions from {current.value}: [{allowed_names}]"
                ]
            }
        )


def transitions() -> dict[OrderStatus, frozenset[OrderStatus]]:
    """Return a copy of the whole table."""
    return dict(_VALID_TRANSITIONS)
