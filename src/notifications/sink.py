"""Notification sink port: where order state changes are announced.

Adapters implement every method. Each receives the domain event that announced
the change, which carries the order id, number, status and courier binding as
they stood at that moment. Calls are fire-and-forget from the core's point of
view; an adapter signals failure by raising ``NotificationDeliveryFailure`` (or
anything else) and the notification handler logs it.
"""

from abc import ABC, abstractmethod

from protean.core.event import BaseEvent


class NotificationSink(ABC):
    @abstractmethod
    def notify_new_order(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_accepted(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_preparing(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_ready(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_courier_assigned(self, order: BaseEvent, courier_id: str, courier_name: str | None) -> None: ...

    @abstractmethod
    def notify_order_on_delivery(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_delivered(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_cancelled(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_order_rejected(self, order: BaseEvent) -> None: ...

    @abstractmethod
    def notify_courier_accepted(self, order: BaseEvent, courier_name: str | None) -> None: ...

    @abstractmethod
    def notify_courier_declined(self, order: BaseEvent, courier_name: str | None, reason: str | None) -> None: ...
