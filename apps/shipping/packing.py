"""
Parcel packing engine for CompuCar checkout.

Turns the cart's line items into one aggregate parcel descriptor that is used
for carrier rate lookups and for the carrier's parcel creation payload.

Packing policy: "shelf-stacking bounding box". Every item is assumed to be
stacked flat on top of the previous one inside a single box, so the box takes
the largest footprint (max length, max width) and the sum of item heights
scaled by quantity. This is an approximate heuristic for a checkout estimate,
not an optimal 3-D bin-packing solver. Max and sum are commutative, so the
result does not depend on line-item order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from apps.common.types import ParcelValidationError

# ===============================================================================
# PACKING CONSTANTS
# ===============================================================================

DEFAULT_LENGTH_CM = 20
DEFAULT_WIDTH_CM = 15
DEFAULT_HEIGHT_CM = 3

MAX_ITEM_WEIGHT_GR = 50_000
MAX_DIMENSION_CM = 200

# Carrier convention: volumetric kg = cm³ / 5000
VOLUMETRIC_DIVISOR = 5000
# Weight included in the base fee; every extra kg is charged at the oversize rate
FREE_WEIGHT_KG = 5

PRODUCT_LIST_MAX_LENGTH = 240


# ===============================================================================
# DATA TYPES
# ===============================================================================

@dataclass(frozen=True)
class CartLineItem:
    """One cart line as seen by the packer"""

    name: str
    quantity: int
    weight_gr: int
    length_cm: int = DEFAULT_LENGTH_CM
    width_cm: int = DEFAULT_WIDTH_CM
    height_cm: int = DEFAULT_HEIGHT_CM
    sku: str = ""
    product_id: str | None = None
    unit_price_cents: int = 0

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class Parcel:
    """Aggregate package descriptor derived from a cart"""

    total_weight_gr: int
    length_cm: int
    width_cm: int
    height_cm: int

    @property
    def weight_kg(self) -> int:
        """Actual weight rounded up to whole kilograms, never below 1 kg"""
        return max(1, math.ceil(self.total_weight_gr / 1000))

    @property
    def volume_cm3(self) -> int:
        return self.length_cm * self.width_cm * self.height_cm

    @property
    def volumetric_weight_kg(self) -> Decimal:
        return Decimal(self.volume_cm3) / VOLUMETRIC_DIVISOR

    @property
    def billable_weight_kg(self) -> Decimal:
        """Greater of actual and volumetric weight"""
        return max(Decimal(self.weight_kg), self.volumetric_weight_kg)

    def as_dict(self) -> dict[str, object]:
        return {
            'totalWeightGr': self.total_weight_gr,
            'lengthCm': self.length_cm,
            'widthCm': self.width_cm,
            'heightCm': self.height_cm,
            'weightKg': self.weight_kg,
            'billableWeightKg': float(self.billable_weight_kg),
        }


# ===============================================================================
# VALIDATION
# ===============================================================================

def validate_item(item: CartLineItem) -> list[str]:
    """Return human-readable problems with one line item (empty when valid)"""
    errors: list[str] = []
    label = item.name or item.sku or "item"

    if item.quantity < 1:
        errors.append(f"{label}: quantity must be at least 1")
    if item.weight_gr <= 0:
        errors.append(f"{label}: weight must be greater than 0")
    elif item.weight_gr > MAX_ITEM_WEIGHT_GR:
        errors.append(f"{label}: weight exceeds {MAX_ITEM_WEIGHT_GR // 1000} kg")

    for axis, value in (("length", item.length_cm), ("width", item.width_cm), ("height", item.height_cm)):
        if value <= 0:
            errors.append(f"{label}: {axis} must be greater than 0")
        elif value > MAX_DIMENSION_CM:
            errors.append(f"{label}: {axis} exceeds {MAX_DIMENSION_CM} cm")

    return errors


def validate_items(items: Sequence[CartLineItem]) -> list[str]:
    errors: list[str] = []
    for item in items:
        errors.extend(validate_item(item))
    return errors


# ===============================================================================
# PACKING
# ===============================================================================

def compute_parcel(items: Sequence[CartLineItem]) -> Parcel:
    """
    Pack cart items into one bounding parcel.

    Raises ParcelValidationError for an empty cart or any invalid line.
    """
    if not items:
        raise ParcelValidationError('items', "Cart is empty")

    errors = validate_items(items)
    if errors:
        raise ParcelValidationError('items', "; ".join(errors))

    return Parcel(
        total_weight_gr=sum(item.weight_gr * item.quantity for item in items),
        length_cm=max(item.length_cm for item in items),
        width_cm=max(item.width_cm for item in items),
        height_cm=sum(item.height_cm * item.quantity for item in items),
    )


def apply_parcel_overrides(
    parcel: Parcel,
    length_cm: int | None = None,
    width_cm: int | None = None,
    height_cm: int | None = None,
    weight_gr: int | None = None,
) -> Parcel:
    """Replace computed values with staff-measured ones where given"""
    overrides = {
        'length_cm': length_cm,
        'width_cm': width_cm,
        'height_cm': height_cm,
        'total_weight_gr': weight_gr,
    }
    for field, value in overrides.items():
        if value is not None and value <= 0:
            raise ParcelValidationError(field, "Override must be greater than 0")

    return replace(parcel, **{field: value for field, value in overrides.items() if value is not None})


def summarize_items(items: Iterable[CartLineItem], max_length: int = PRODUCT_LIST_MAX_LENGTH) -> str:
    """'Name (SKU) xN, ...' trimmed to the carrier's product_list limit; single units carry no count"""
    parts = []
    for item in items:
        label = f"{item.name} ({item.sku})" if item.sku else item.name
        parts.append(f"{label} x{item.quantity}" if item.quantity > 1 else label)

    summary = ", ".join(parts)
    if len(summary) > max_length:
        summary = summary[: max_length - 3] + "..."
    return summary


def calculate_overweight_fee(billable_weight_kg: Decimal | float, oversize_fee: Decimal | float) -> int:
    """Extra charge for every kilogram above the free allowance"""
    billable = Decimal(str(billable_weight_kg))
    if billable <= FREE_WEIGHT_KG:
        return 0
    return math.ceil((billable - FREE_WEIGHT_KG) * Decimal(str(oversize_fee)))
