"""
Django admin configuration for tuning app.
Read-mostly: workflow changes go through the API so they are audited and notified.
"""

from typing import ClassVar

from django.contrib import admin

from .models import TuningAuditEntry, TuningFile, TuningModification


@admin.register(TuningModification)
class TuningModificationAdmin(admin.ModelAdmin):
    list_display: ClassVar[list[str]] = ('code', 'name', 'category', 'is_active', 'sort_order')
    list_filter: ClassVar[list[str]] = ('category', 'is_active')
    search_fields: ClassVar[list[str]] = ('code', 'name')
    ordering: ClassVar[list[str]] = ('sort_order', 'name')


class TuningAuditEntryInline(admin.TabularInline):
    model = TuningAuditEntry
    extra = 0
    can_delete = False
    readonly_fields: ClassVar[list[str]] = ('action', 'old_value', 'new_value', 'actor', 'source', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(TuningFile)
class TuningFileAdmin(admin.ModelAdmin):
    """Admin interface for tuning files."""

    list_display: ClassVar[list[str]] = (
        'original_filename', 'owner', 'status', 'price', 'payment_status', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('status', 'payment_status', 'created_at')
    search_fields: ClassVar[list[str]] = ('original_filename', 'modified_filename', 'owner__email')
    readonly_fields: ClassVar[list[str]] = (
        'id', 'status', 'version', 'estimated_processing_time_set_at', 'modified_upload_date',
        'created_at', 'updated_at',
    )
    filter_horizontal: ClassVar[list[str]] = ('modifications',)
    inlines: ClassVar[list] = [TuningAuditEntryInline]

    fieldsets: ClassVar[tuple] = (
        ('File', {
            'fields': ('id', 'owner', 'original_filename', 'original_file', 'file_size', 'file_type', 'modifications')
        }),
        ('Workflow', {
            'fields': ('status', 'estimated_processing_time_minutes', 'estimated_processing_time_set_at', 'version')
        }),
        ('Commercial', {
            'fields': ('price', 'payment_status')
        }),
        ('Communication', {
            'fields': ('admin_notes', 'customer_comment')
        }),
        ('Delivered File', {
            'fields': ('modified_filename', 'modified_file', 'modified_file_size', 'modified_upload_date'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
