"""
Domain events for CompuCar Platform.

A mutation publishes one event; the durable inbox, the live stream and the
Telegram bots subscribe to it independently. Handlers never see each other's
failures.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


# ===============================================================================
# EVENTS
# ===============================================================================

@dataclass(frozen=True)
class DomainEvent:
    occurred_at: datetime = field(default_factory=timezone.now, kw_only=True)

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class FileUploaded(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    file_size: int
    owner_email: str = ""
    modifications: tuple[str, ...] = ()


@dataclass(frozen=True)
class FileStatusChanged(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    old_status: str
    new_status: str
    actor_id: int | None = None
    source: str = "web"


@dataclass(frozen=True)
class EstimatedTimeSet(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    minutes: int
    time_text: str
    actor_id: int | None = None


@dataclass(frozen=True)
class FilePriceSet(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    price: Decimal
    actor_id: int | None = None


@dataclass(frozen=True)
class FilePaymentConfirmed(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    payment_status: str
    actor_id: int | None = None


@dataclass(frozen=True)
class AdminCommentAdded(DomainEvent):
    file_id: str
    owner_id: int
    file_name: str
    note: str
    actor_id: int | None = None


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    order_id: str
    order_number: str
    user_id: int | None
    customer_name: str
    total_cents: int
    wilaya_name: str = ""


@dataclass(frozen=True)
class ShipmentUpdated(DomainEvent):
    order_id: str
    order_number: str
    user_id: int | None
    tracking_number: str
    carrier_status: str
    order_status: str


# ===============================================================================
# EVENT BUS
# ===============================================================================

EventHandler = Callable[[Any], None]


class EventBus:
    """
    In-process publish/subscribe.

    Handlers are matched on the event's class hierarchy, so subscribing to
    DomainEvent receives everything. Handlers for the most specific class run
    first, then those of its bases, each in subscription order. Each handler
    runs in isolation: an exception is logged and the next handler still runs.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)

    def handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        handlers: list[EventHandler] = []
        for klass in type(event).__mro__:
            for handler in self._handlers.get(klass, []):
                if handler not in handlers:
                    handlers.append(handler)
        return handlers

    def publish(self, event: DomainEvent) -> dict[str, bool]:
        """Deliver to every subscriber; returns handler name -> succeeded"""
        results: dict[str, bool] = {}
        for handler in self.handlers_for(event):
            handler_name = getattr(handler, "__qualname__", repr(handler))
            try:
                handler(event)
                results[handler_name] = True
            except Exception as e:
                logger.exception(f"🔥 [Events] Handler {handler_name} failed for {event.name}: {e}")
                results[handler_name] = False

        logger.debug(f"📣 [Events] {event.name} delivered to {len(results)} handler(s)")
        return results

    def publish_on_commit(self, event: DomainEvent) -> None:
        """Publish once the surrounding transaction commits; dropped on rollback"""
        transaction.on_commit(lambda: self.publish(event))

    def clear(self) -> None:
        self._handlers.clear()


event_bus = EventBus()
