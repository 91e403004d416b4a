"""Error taxonomy shared by every bounded context, built on Protean's exceptions.

Protean's own ``ValidationError`` (malformed input) and ``ObjectNotFoundError``
(missing order, ticket or wallet) are used as they are. The errors below add
the conflicts specific to dispatching. Each carries a ``messages`` dict keyed
by the offending field, in the shape the API layer returns to callers:

    raise InvalidState({"status": ["Ticket is not PENDING"]})
"""

from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    InvalidStateError,
    ProteanException,
)


class _FieldMessages:
    def __init__(self, messages: dict | str, **kwargs):
        if isinstance(messages, str):
            messages = {"_entity": [messages]}
        self.messages = messages
        super().__init__(messages, **kwargs)

    def __str__(self) -> str:
        return "; ".join(msg for msgs in self.messages.values() for msg in msgs)


class InvalidTransition(_FieldMessages, InvalidOperationError):
    """Attempted order-status edge is not in the transition table."""


class InvalidState(_FieldMessages, InvalidStateError):
    """Precondition on a sub-entity state was not met."""


class AlreadyAssigned(InvalidState):
    """Courier claim lost: another courier is already bound to the order."""


class StatusChanged(InvalidState):
    """The order left the status a job selected it in before the job got to it."""


class ConcurrentModification(_FieldMessages, ExpectedVersionError):
    """Aggregate changed underneath the caller between load and commit."""


class LedgerInconsistency(_FieldMessages, ProteanException):
    """Wallet balance and ledger chain disagree. Never auto-corrected."""


class NotificationDeliveryFailure(_FieldMessages, ProteanException):
    """A notification adapter failed. Logged by the notification handler, never propagated."""
