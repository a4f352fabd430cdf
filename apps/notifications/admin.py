"""
Django admin for notifications app.
"""

from typing import ClassVar

from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display: ClassVar[list[str]] = (
        'title', 'recipient', 'notification_type', 'category', 'priority', 'is_read', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('notification_type', 'category', 'priority', 'is_read', 'created_at')
    search_fields: ClassVar[list[str]] = ('title', 'message', 'recipient__email')
    readonly_fields: ClassVar[list[str]] = ('created_at', 'read_at', 'data')
    raw_id_fields: ClassVar[list[str]] = ('recipient', 'tuning_file')
