"""
Django admin configuration for orders app.
Status changes made here skip history and notifications; use the order API for those.
"""

from typing import ClassVar

from django.contrib import admin

from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields: ClassVar[list[str]] = (
        'product', 'product_name', 'product_sku', 'quantity', 'unit_price_cents', 'line_total_cents', 'weight_gr'
    )


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    can_delete = False
    readonly_fields: ClassVar[list[str]] = (
        'old_status', 'new_status', 'changed_by', 'reason', 'is_automatic', 'created_at'
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Admin interface for orders."""

    list_display: ClassVar[list[str]] = (
        'order_number', 'customer_name', 'customer_phone', 'wilaya_name', 'status',
        'total_cents', 'tracking_number', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('status', 'is_stopdesk', 'shipping_quote_source', 'created_at')
    search_fields: ClassVar[list[str]] = (
        'order_number', 'customer_name', 'customer_phone', 'customer_email', 'tracking_number'
    )
    readonly_fields: ClassVar[list[str]] = (
        'order_number', 'subtotal_cents', 'shipping_cents', 'total_cents', 'shipping_quote_source',
        'carrier_status', 'created_at', 'updated_at', 'shipped_at', 'delivered_at',
    )
    inlines: ClassVar[list] = [OrderItemInline, OrderStatusHistoryInline]

    fieldsets: ClassVar[tuple] = (
        ('Order Information', {
            'fields': ('order_number', 'user', 'status', 'notes')
        }),
        ('Customer', {
            'fields': ('customer_name', 'customer_phone', 'customer_email')
        }),
        ('Destination', {
            'fields': ('wilaya_id', 'wilaya_name', 'commune_name', 'address', 'is_stopdesk', 'stopdesk_id')
        }),
        ('Amounts', {
            'fields': ('currency', 'subtotal_cents', 'shipping_cents', 'total_cents', 'shipping_quote_source')
        }),
        ('Parcel', {
            'fields': ('parcel_weight_gr', 'parcel_length_cm', 'parcel_width_cm', 'parcel_height_cm'),
            'classes': ('collapse',)
        }),
        ('Carrier', {
            'fields': ('tracking_number', 'label_url', 'carrier_status', 'shipped_at', 'delivered_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )
