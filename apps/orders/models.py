"""
Order models for CompuCar Platform
Cash-on-delivery orders shipped through Yalidine, with an item snapshot and status history.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

ORDER_NUMBER_PREFIX = "COD"

# ===============================================================================
# ORDER
# ===============================================================================

class Order(models.Model):
    """
    Customer COD order.
    The shipping cost is always the server-side quote, never the figure the browser showed.
    """

    STATUS_PENDING = "PENDING"
    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_SHIPPED = "SHIPPED"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_RETURNED = "RETURNED"
    STATUS_FAILED = "FAILED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (STATUS_PENDING, _("Pending")),          # Placed, awaiting phone confirmation
        (STATUS_CONFIRMED, _("Confirmed")),      # Confirmed, parcel not yet handed over
        (STATUS_SHIPPED, _("Shipped")),          # With the carrier
        (STATUS_DELIVERED, _("Delivered")),      # Delivered and cash collected
        (STATUS_RETURNED, _("Returned")),        # Came back to the shop
        (STATUS_FAILED, _("Failed")),            # Delivery attempts exhausted
        (STATUS_CANCELLED, _("Cancelled")),
    )

    TERMINAL_STATUSES: ClassVar[frozenset[str]] = frozenset(
        {STATUS_DELIVERED, STATUS_RETURNED, STATUS_CANCELLED}
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=20, unique=True, help_text=_("Human-readable order number"))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        help_text=_("Account that placed the order; empty for guest checkout"),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Customer contact snapshot
    customer_name = models.CharField(max_length=150)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True)

    # Destination
    wilaya_id = models.PositiveSmallIntegerField()
    wilaya_name = models.CharField(max_length=100)
    commune_name = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=255, blank=True)
    is_stopdesk = models.BooleanField(default=False)
    stopdesk_id = models.PositiveIntegerField(null=True, blank=True)

    # Amounts in centimes
    subtotal_cents = models.PositiveBigIntegerField(default=0)
    shipping_cents = models.PositiveBigIntegerField(default=0, help_text=_("Server-verified shipping cost"))
    total_cents = models.PositiveBigIntegerField(default=0)
    currency = models.CharField(max_length=3, default="DZD")
    shipping_quote_source = models.CharField(
        max_length=10, blank=True, help_text=_("'carrier' or 'fallback' quote used at checkout")
    )

    # Packed parcel
    parcel_weight_gr = models.PositiveIntegerField(default=0)
    parcel_length_cm = models.PositiveIntegerField(default=0)
    parcel_width_cm = models.PositiveIntegerField(default=0)
    parcel_height_cm = models.PositiveIntegerField(default=0)

    # Carrier
    tracking_number = models.CharField(max_length=64, blank=True, db_index=True)
    label_url = models.URLField(max_length=500, blank=True)
    carrier_status = models.CharField(max_length=50, blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
            models.Index(fields=["status", "-created_at"], name="orders_status_created_idx"),
        )

    def __str__(self) -> str:
        return f"Order {self.order_number} - {self.customer_name}"

    def save(self, *args, **kwargs) -> None:
        """Auto-generate order number before saving"""
        if not self.order_number:
            self.generate_order_number()
        super().save(*args, **kwargs)

    def generate_order_number(self) -> None:
        """COD-000001, COD-000002, ..."""
        last = (
            Order.objects.filter(order_number__startswith=f"{ORDER_NUMBER_PREFIX}-")
            .order_by("-order_number")
            .values_list("order_number", flat=True)
            .first()
        )
        sequence = int(last.split("-")[1]) + 1 if last else 1
        self.order_number = f"{ORDER_NUMBER_PREFIX}-{sequence:06d}"

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.subtotal_cents) / 100

    @property
    def shipping_cost(self) -> Decimal:
        return Decimal(self.shipping_cents) / 100

    @property
    def total(self) -> Decimal:
        return Decimal(self.total_cents) / 100

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def can_ship(self) -> bool:
        return self.status in (self.STATUS_PENDING, self.STATUS_CONFIRMED) and not self.tracking_number


class OrderItem(models.Model):
    """Line item with a product snapshot so later catalog edits do not rewrite history"""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "products.Product", on_delete=models.SET_NULL, null=True, blank=True, related_name="order_items"
    )

    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=64, blank=True)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price_cents = models.PositiveBigIntegerField()
    line_total_cents = models.PositiveBigIntegerField()
    weight_gr = models.PositiveIntegerField(help_text=_("Unit weight at the time of the order"))

    class Meta:
        db_table = "order_items"
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.order.order_number})"

    def save(self, *args, **kwargs) -> None:
        self.line_total_cents = self.unit_price_cents * self.quantity
        super().save(*args, **kwargs)


class OrderStatusHistory(models.Model):
    """
    Track order status changes for audit trail and customer notifications.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_history")

    old_status = models.CharField(max_length=20, blank=True, help_text=_("Previous status"))
    new_status = models.CharField(max_length=20, help_text=_("New status"))

    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text=_("User who made the change"),
    )
    reason = models.CharField(max_length=255, blank=True, help_text=_("Reason for status change"))
    is_automatic = models.BooleanField(default=False, help_text=_("Whether this was a carrier/system change"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_status_history"
        verbose_name = _("Order Status History")
        verbose_name_plural = _("Order Status Histories")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["order", "-created_at"], name="order_history_created_idx"),
        )

    def __str__(self) -> str:
        return f"{self.order.order_number}: {self.old_status} → {self.new_status}"
