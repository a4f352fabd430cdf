"""
Event consumers for CompuCar Platform.

Three independent subscribers per event:
- persist_notifications: durable inbox rows (always written)
- push_live_update: best-effort push to open SSE streams
- forward_to_telegram: queued bot messages for admins and linked customers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from django.contrib.auth import get_user_model

from apps.integrations import telegram
from apps.integrations.tasks import queue_telegram_message

from . import realtime
from .events import (
    AdminCommentAdded,
    DomainEvent,
    EstimatedTimeSet,
    EventBus,
    FilePaymentConfirmed,
    FilePriceSet,
    FileStatusChanged,
    FileUploaded,
    OrderPlaced,
    ShipmentUpdated,
    event_bus,
)
from .models import Notification
from .services import NotificationService

logger = logging.getLogger(__name__)

ADMIN_ALERT_SHIPMENT_STATUSES = frozenset({"DELIVERED", "RETURNED", "FAILED"})


@dataclass(frozen=True)
class NotificationSpec:
    recipient_id: int
    notification_type: str
    title: str
    message: str
    category: str = "system"
    priority: str = "medium"
    tuning_file_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


def _staff_ids(file_event: bool = False) -> list[int]:
    """Tuning-file events go to file admins; orders and shipments to all active staff"""
    users = get_user_model().objects
    staff = users.file_admins() if file_event else users.filter(is_staff=True, is_active=True)
    return list(staff.values_list("pk", flat=True))


def _actor_name(actor_id: int | None) -> str:
    actor = get_user_model().objects.filter(pk=actor_id).first() if actor_id else None
    return actor.display_name if actor else "An admin"


def _format_dzd(cents: int) -> str:
    return f"{cents / 100:,.2f} DZD"


# ===============================================================================
# PAYLOADS
# ===============================================================================

def live_payload(event: DomainEvent) -> dict[str, Any] | None:
    """Message pushed to the customer's open streams"""
    match event:
        case FileStatusChanged():
            return {
                "type": "file_status_update",
                "fileId": event.file_id,
                "fileName": event.file_name,
                "oldStatus": event.old_status,
                "newStatus": event.new_status,
                "message": f"File status updated to {event.new_status}",
            }
        case EstimatedTimeSet():
            return {
                "type": "estimated_time_update",
                "fileId": event.file_id,
                "fileName": event.file_name,
                "estimatedTime": event.minutes,
                "timeText": event.time_text,
                "status": "PENDING",
                "message": f"Estimated processing time set to {event.time_text}",
            }
        case FilePriceSet() | FilePaymentConfirmed() | AdminCommentAdded():
            spec = _customer_spec(event)
            return {
                "type": "notification",
                "notificationType": spec.notification_type,
                "fileId": event.file_id,
                "title": spec.title,
                "message": spec.message,
            }
        case OrderPlaced() | ShipmentUpdated():
            spec = _customer_spec(event)
            return {
                "type": "notification",
                "notificationType": spec.notification_type,
                "orderId": event.order_id,
                "title": spec.title,
                "message": spec.message,
            }
    return None


def _customer_spec(event: DomainEvent) -> NotificationSpec:  # noqa: PLR0911
    """Inbox entry for the customer the event concerns"""
    match event:
        case FileStatusChanged():
            ready = event.new_status == "READY"
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_FILE_STATUS,
                title="Your file is ready" if ready else "File status updated",
                message=f'"{event.file_name}" is now {event.new_status}',
                category="file_status",
                priority="high" if ready else "medium",
                tuning_file_id=event.file_id,
                data={"oldStatus": event.old_status, "newStatus": event.new_status},
            )
        case EstimatedTimeSet():
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_ESTIMATED_TIME,
                title="Processing started",
                message=f'"{event.file_name}" will be ready in about {event.time_text}',
                category="file_status",
                tuning_file_id=event.file_id,
                data={"estimatedTime": event.minutes, "timeText": event.time_text},
            )
        case FilePriceSet():
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_FILE_PRICE,
                title="Price set for your file",
                message=f'"{event.file_name}" costs {event.price} DZD',
                category="payment",
                tuning_file_id=event.file_id,
                data={"price": str(event.price)},
            )
        case FilePaymentConfirmed():
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_PAYMENT_CONFIRMED,
                title="Payment confirmed",
                message=f'Payment received for "{event.file_name}"',
                category="payment",
                priority="high",
                tuning_file_id=event.file_id,
            )
        case AdminCommentAdded():
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_ADMIN_COMMENT,
                title="New comment on your file",
                message=event.note,
                category="file_status",
                tuning_file_id=event.file_id,
            )
        case FileUploaded():
            return NotificationSpec(
                recipient_id=event.owner_id,
                notification_type=Notification.TYPE_FILE_UPLOADED,
                title="File received",
                message=f'We received "{event.file_name}" and will review it shortly',
                category="file_status",
                priority="low",
                tuning_file_id=event.file_id,
            )
        case OrderPlaced():
            return NotificationSpec(
                recipient_id=event.user_id or 0,
                notification_type=Notification.TYPE_ORDER_PLACED,
                title=f"Order {event.order_number} placed",
                message=f"Total {_format_dzd(event.total_cents)}, cash on delivery",
                category="order",
                data={"orderId": event.order_id, "orderNumber": event.order_number},
            )
        case ShipmentUpdated():
            return NotificationSpec(
                recipient_id=event.user_id or 0,
                notification_type=Notification.TYPE_SHIPMENT_UPDATE,
                title=f"Order {event.order_number}: {event.order_status.lower()}",
                message=f"Parcel {event.tracking_number} is now {event.carrier_status.replace('_', ' ')}",
                category="shipping",
                priority="high" if event.order_status in ADMIN_ALERT_SHIPMENT_STATUSES else "medium",
                data={"orderId": event.order_id, "trackingNumber": event.tracking_number},
            )
    raise ValueError(f"No customer notification for {event.name}")


def _staff_specs(event: DomainEvent) -> list[NotificationSpec]:
    """Back-office inbox entries; recipient_id is filled per staff user"""
    match event:
        case FileUploaded():
            template = NotificationSpec(
                recipient_id=0,
                notification_type=Notification.TYPE_FILE_UPLOADED,
                title="New file uploaded",
                message=f'{event.owner_email} uploaded "{event.file_name}"',
                category="file_status",
                priority="high",
                tuning_file_id=event.file_id,
            )
        case FileStatusChanged():
            template = NotificationSpec(
                recipient_id=0,
                notification_type=Notification.TYPE_FILE_UPDATE_BY_ADMIN,
                title="File updated by admin",
                message=f'{_actor_name(event.actor_id)} updated file "{event.file_name}": status changed to {event.new_status}',
                category="file_status",
                tuning_file_id=event.file_id,
                data={"updateType": "status", "newStatus": event.new_status, "source": event.source},
            )
        case AdminCommentAdded():
            template = NotificationSpec(
                recipient_id=0,
                notification_type=Notification.TYPE_FILE_UPDATE_BY_ADMIN,
                title="File updated by admin",
                message=f'{_actor_name(event.actor_id)} updated file "{event.file_name}": admin notes updated',
                category="file_status",
                tuning_file_id=event.file_id,
                data={"updateType": "note"},
            )
        case OrderPlaced():
            template = NotificationSpec(
                recipient_id=0,
                notification_type=Notification.TYPE_ORDER_PLACED,
                title=f"New order {event.order_number}",
                message=f"{event.customer_name}, {event.wilaya_name}: {_format_dzd(event.total_cents)}",
                category="order",
                priority="high",
            )
        case ShipmentUpdated() if event.order_status in ADMIN_ALERT_SHIPMENT_STATUSES:
            template = NotificationSpec(
                recipient_id=0,
                notification_type=Notification.TYPE_SHIPMENT_UPDATE,
                title=f"Order {event.order_number} {event.order_status.lower()}",
                message=f"Parcel {event.tracking_number}: {event.carrier_status}",
                category="shipping",
                priority="high",
            )
        case _:
            return []

    file_event = template.tuning_file_id is not None
    return [replace(template, recipient_id=staff_id) for staff_id in _staff_ids(file_event)]


def notification_specs(event: DomainEvent) -> list[NotificationSpec]:
    specs = [*_staff_specs(event)]
    customer = _customer_spec(event)
    if customer.recipient_id:
        specs.insert(0, customer)
    return specs


# ===============================================================================
# SUBSCRIBERS
# ===============================================================================

def persist_notifications(event: DomainEvent) -> None:
    for spec in notification_specs(event):
        NotificationService.create(
            spec.recipient_id,
            spec.notification_type,
            spec.title,
            spec.message,
            category=spec.category,
            priority=spec.priority,
            tuning_file_id=spec.tuning_file_id,
            data=spec.data,
        )


def push_live_update(event: DomainEvent) -> None:
    payload = live_payload(event)
    recipient = getattr(event, "owner_id", None) or getattr(event, "user_id", None)
    if payload is None or not recipient:
        return
    if not realtime.send_update_to_user(recipient, payload):
        logger.debug(f"📡 [Realtime] User {recipient} offline; {payload['type']} kept in inbox only")


def forward_to_telegram(event: DomainEvent) -> None:
    """Admin bots get every event that needs action; customers get their own updates"""
    match event:
        case FileUploaded():
            text = telegram.new_upload_message(event.file_name, event.owner_email, event.file_size, event.modifications)
            queue_telegram_message(telegram.BOT_FILE_ADMIN, text, reply_markup=telegram.file_actions_keyboard(event.file_id))
            queue_telegram_message(telegram.BOT_SUPER_ADMIN, text, reply_markup=telegram.file_actions_keyboard(event.file_id))
        case FileStatusChanged():
            queue_telegram_message(
                telegram.BOT_SUPER_ADMIN,
                telegram.admin_event_message(
                    "File Status Updated",
                    f"{_actor_name(event.actor_id)} changed file status to {event.new_status}",
                    details=f"File: {event.file_name}",
                ),
            )
        case OrderPlaced():
            spec = _staff_specs(event)
            message = spec[0].message if spec else f"{event.customer_name}: {_format_dzd(event.total_cents)}"
            queue_telegram_message(
                telegram.BOT_SUPER_ADMIN, telegram.admin_event_message(f"🛒 New order {event.order_number}", message)
            )
        case ShipmentUpdated() if event.order_status in ADMIN_ALERT_SHIPMENT_STATUSES:
            queue_telegram_message(
                telegram.BOT_SUPER_ADMIN,
                telegram.admin_event_message(
                    f"🚚 Order {event.order_number} {event.order_status.lower()}",
                    f"Parcel {event.tracking_number}: {event.carrier_status}",
                ),
            )

    _forward_to_customer(event)


def _forward_to_customer(event: DomainEvent) -> None:
    recipient = getattr(event, "owner_id", None) or getattr(event, "user_id", None)
    if not recipient or isinstance(event, FileUploaded):
        return

    chat_id = get_user_model().objects.filter(pk=recipient).values_list("telegram_chat_id", flat=True).first()
    if not chat_id:
        return

    match event:
        case FileStatusChanged():
            text = telegram.file_status_message(event.file_name, event.old_status, event.new_status)
        case EstimatedTimeSet():
            text = telegram.file_status_message(event.file_name, "PENDING", "PENDING", time_text=event.time_text)
        case _:
            spec = _customer_spec(event)
            text = telegram.admin_event_message(spec.title, spec.message)
    queue_telegram_message(telegram.BOT_CUSTOMER, text, chat_id=chat_id)


def register_handlers(bus: EventBus = event_bus) -> None:
    """Wire the three consumers to every domain event"""
    for handler in (persist_notifications, push_live_update, forward_to_telegram):
        bus.subscribe(DomainEvent, handler)
    logger.debug("📣 [Events] Notification handlers registered")
