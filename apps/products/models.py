"""
Product Catalog models for CompuCar Platform
Physical catalog items (diagnostic tools, cables, ECU accessories) sold with cash on delivery.
Stored dimensions and weight feed the parcel packing engine at checkout.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

MAX_PRICE_CENTS = 100_000_000  # 1M DZD
MAX_ITEM_WEIGHT_GR = 50_000  # carrier limit per item
MAX_DIMENSION_CM = 200

# Packing defaults when the catalog has no measured dimensions
DEFAULT_LENGTH_CM = 20
DEFAULT_WIDTH_CM = 15
DEFAULT_HEIGHT_CM = 3


class Product(models.Model):
    """
    Sellable physical product.
    Prices are stored in centimes (1/100 DZD) like every other amount in the platform.
    """

    CATEGORY_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("diagnostic", _("Diagnostic Tools")),
        ("programmer", _("ECU Programmers")),
        ("cable", _("Cables & Adapters")),
        ("accessory", _("Accessories")),
        ("other", _("Other")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    slug = models.SlugField(unique=True, max_length=100, help_text=_("URL-friendly identifier"))
    name = models.CharField(max_length=200, help_text=_("Display name for customers"))
    sku = models.CharField(max_length=64, blank=True, help_text=_("Stock keeping unit shown on parcel labels"))
    description = models.TextField(blank=True)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default="other")

    price_cents = models.PositiveIntegerField(
        validators=[MaxValueValidator(MAX_PRICE_CENTS)],
        help_text=_("Unit price in centimes (DZD × 100)"),
    )

    # Physical properties used for parcel packing
    weight_gr = models.PositiveIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(MAX_ITEM_WEIGHT_GR)],
        help_text=_("Shipping weight in grams"),
    )
    length_cm = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(MAX_DIMENSION_CM)]
    )
    width_cm = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(MAX_DIMENSION_CM)]
    )
    height_cm = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(MAX_DIMENSION_CM)]
    )

    is_active = models.BooleanField(default=True, help_text=_("Whether product is available for purchase"))
    stock_quantity = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering: ClassVar[tuple[str, ...]] = ("name",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["category", "is_active"], name="products_category_active_idx"),
        )

    def __str__(self) -> str:
        return self.name

    @property
    def price(self) -> Decimal:
        return Decimal(self.price_cents) / 100

    @property
    def packing_dimensions(self) -> tuple[int, int, int]:
        """(length, width, height) with catalog defaults for unmeasured products"""
        return (
            self.length_cm or DEFAULT_LENGTH_CM,
            self.width_cm or DEFAULT_WIDTH_CM,
            self.height_cm or DEFAULT_HEIGHT_CM,
        )
