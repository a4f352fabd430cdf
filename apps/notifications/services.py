"""
Notification Services for CompuCar Platform
Inbox persistence and read-state management.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet
from django.utils import timezone

from .models import Notification

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)


class NotificationService:
    """🔔 In-app notification inbox"""

    @staticmethod
    def create(  # noqa: PLR0913
        recipient_id: int,
        notification_type: str,
        title: str,
        message: str,
        *,
        category: str = "system",
        priority: str = "medium",
        tuning_file_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        notification = Notification.objects.create(
            recipient_id=recipient_id,
            notification_type=notification_type,
            category=category,
            priority=priority,
            title=title[:200],
            message=message,
            tuning_file_id=tuning_file_id,
            data=data or {},
        )
        logger.info(f"🔔 [Notifications] {notification_type} stored for user {recipient_id}")
        return notification

    @staticmethod
    def list_for_user(user: User, is_read: bool | None = None) -> QuerySet[Notification]:
        queryset = Notification.objects.filter(recipient=user)
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read)
        return queryset

    @staticmethod
    def mark_read(user: User, notification_id: Any) -> bool:
        """False when the notification does not exist or belongs to someone else"""
        updated = Notification.objects.filter(pk=notification_id, recipient=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        if updated:
            return True
        return Notification.objects.filter(pk=notification_id, recipient=user).exists()

    @staticmethod
    def delete(user: User, notification_id: Any) -> bool:
        """False when the notification does not exist or belongs to someone else"""
        deleted, _details = Notification.objects.filter(pk=notification_id, recipient=user).delete()
        if deleted:
            logger.info(f"🗑️ [Notifications] {notification_id} deleted by user {user.pk}")
        return bool(deleted)

    @staticmethod
    def mark_all_read(user: User) -> int:
        count = Notification.objects.filter(recipient=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        logger.info(f"🔔 [Notifications] {count} notification(s) marked read for user {user.pk}")
        return count

    @staticmethod
    def unread_count(user: User) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).count()
