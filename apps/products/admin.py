"""
Django admin configuration for products app.
Catalogue prices and parcel dimensions feed checkout totals and shipping quotes.
"""

from typing import ClassVar

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for products."""

    list_display: ClassVar[list[str]] = (
        'name', 'sku', 'category', 'price_cents', 'weight_gr', 'stock_quantity', 'is_active', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('is_active', 'category', 'created_at')
    search_fields: ClassVar[list[str]] = ('name', 'slug', 'description', 'sku')
    prepopulated_fields: ClassVar[dict[str, tuple[str, ...]]] = {'slug': ('name',)}
    list_editable: ClassVar[list[str]] = ('stock_quantity', 'is_active')

    fieldsets: ClassVar[tuple] = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'sku', 'description', 'category')
        }),
        ('Pricing & Stock', {
            'fields': ('price_cents', 'stock_quantity', 'is_active')
        }),
        ('Parcel Dimensions', {
            'fields': ('weight_gr', 'length_cm', 'width_cm', 'height_cm'),
            'description': 'Used to pack carts into a single parcel for Yalidine quotes.',
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    readonly_fields: ClassVar[list[str]] = ('created_at', 'updated_at')
