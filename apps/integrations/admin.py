import json

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import WebhookEvent

# ===============================================================================
# WEBHOOK EVENT ADMINISTRATION
# ===============================================================================

SOURCE_ICONS = {
    'telegram_super_admin': '🤖',
    'telegram_file_admin': '🤖',
    'telegram_customer': '🤖',
    'yalidine': '🚚',
    'other': '🔌',
}

STATUS_STYLES = {
    'pending': ('#fbbf24', '⏳'),
    'processed': ('#10b981', '✅'),
    'failed': ('#ef4444', '❌'),
    'skipped': ('#6b7280', '⏭️'),
}


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """🔄 Inbound webhook log with deduplication tracking"""

    list_display = [
        'received_at',
        'source_display',
        'event_type',
        'event_id',
        'status_display',
        'retry_count',
        'processing_time',
        'payload_size',
    ]
    list_filter = ['source', 'status', 'event_type', 'received_at']
    search_fields = ['event_id', 'event_type', 'error_message', 'ip_address']
    readonly_fields = ['id', 'signature_hash', 'processing_duration', 'created_at', 'updated_at']
    date_hierarchy = 'received_at'

    fieldsets = (
        (_('🔍 Event Information'), {
            'fields': ('id', 'source', 'event_id', 'event_type', 'status', 'received_at', 'processed_at')
        }),
        (_('📋 Processing Details'), {
            'fields': ('retry_count', 'error_message', 'processing_duration'),
            'classes': ('collapse',),
        }),
        (_('🌐 Request Information'), {
            'fields': ('ip_address', 'user_agent', 'signature_hash', 'headers'),
            'classes': ('collapse',),
        }),
        (_('📦 Payload Data'), {
            'fields': ('payload',),
            'classes': ('collapse',),
        }),
        (_('📅 Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description=_('Source'))
    def source_display(self, obj):
        return f"{SOURCE_ICONS.get(obj.source, '🔌')} {obj.get_source_display()}"

    @admin.display(description=_('Status'))
    def status_display(self, obj):
        color, icon = STATUS_STYLES.get(obj.status, ('#6b7280', '❓'))
        return format_html('<span style="color: {};">{} {}</span>', color, icon, obj.get_status_display())

    @admin.display(description=_('Duration'))
    def processing_time(self, obj):
        if obj.processing_duration:
            seconds = obj.processing_duration.total_seconds()
            return f"{int(seconds * 1000)}ms" if seconds < 1 else f"{seconds:.1f}s"
        return "-"

    @admin.display(description=_('Size'))
    def payload_size(self, obj):
        size_bytes = len(json.dumps(obj.payload).encode('utf-8'))
        return f"{size_bytes}B" if size_bytes < 1024 else f"{size_bytes / 1024:.1f}KB"
