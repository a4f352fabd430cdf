"""
🚚 Parcel packing engine tests
"""

from decimal import Decimal

from django.test import SimpleTestCase

from apps.common.types import ParcelValidationError
from apps.shipping.packing import (
    CartLineItem,
    Parcel,
    apply_parcel_overrides,
    calculate_overweight_fee,
    compute_parcel,
    summarize_items,
    validate_item,
)


def _item(name="Cable", quantity=1, weight_gr=500, length=20, width=15, height=3, sku=""):
    return CartLineItem(
        name=name, quantity=quantity, weight_gr=weight_gr,
        length_cm=length, width_cm=width, height_cm=height, sku=sku,
    )


class ComputeParcelTests(SimpleTestCase):
    def test_single_item(self):
        parcel = compute_parcel([_item(weight_gr=800, length=25, width=18, height=6)])
        self.assertEqual(parcel, Parcel(total_weight_gr=800, length_cm=25, width_cm=18, height_cm=6))

    def test_bounding_box_stacks_heights(self):
        parcel = compute_parcel([
            _item(quantity=2, weight_gr=300, length=30, width=10, height=4),
            _item(quantity=1, weight_gr=1200, length=20, width=25, height=10),
        ])
        self.assertEqual(parcel.total_weight_gr, 1800)
        self.assertEqual(parcel.length_cm, 30)
        self.assertEqual(parcel.width_cm, 25)
        self.assertEqual(parcel.height_cm, 18)

    def test_order_of_lines_does_not_matter(self):
        items = [_item(weight_gr=100, height=2), _item(weight_gr=2000, length=40, height=9), _item(quantity=3)]
        self.assertEqual(compute_parcel(items), compute_parcel(list(reversed(items))))

    def test_empty_cart_rejected(self):
        with self.assertRaises(ParcelValidationError) as ctx:
            compute_parcel([])
        self.assertEqual(ctx.exception.field, 'items')

    def test_invalid_line_rejected(self):
        for item in [_item(quantity=0), _item(weight_gr=0), _item(weight_gr=60_000), _item(height=0), _item(length=250)]:
            with self.subTest(item=item), self.assertRaises(ParcelValidationError):
                compute_parcel([item])

    def test_validate_item_lists_every_problem(self):
        errors = validate_item(_item(name="Sensor", quantity=0, weight_gr=0))
        self.assertEqual(len(errors), 2)
        self.assertTrue(all(error.startswith("Sensor:") for error in errors))


class ParcelWeightTests(SimpleTestCase):
    def test_weight_rounds_up_with_one_kg_minimum(self):
        self.assertEqual(Parcel(200, 10, 10, 10).weight_kg, 1)
        self.assertEqual(Parcel(1001, 10, 10, 10).weight_kg, 2)

    def test_billable_weight_uses_volumetric_when_larger(self):
        parcel = Parcel(total_weight_gr=1000, length_cm=50, width_cm=40, height_cm=30)
        self.assertEqual(parcel.volumetric_weight_kg, Decimal(12))
        self.assertEqual(parcel.billable_weight_kg, Decimal(12))

    def test_billable_weight_uses_actual_when_larger(self):
        parcel = Parcel(total_weight_gr=4500, length_cm=20, width_cm=15, height_cm=3)
        self.assertEqual(parcel.billable_weight_kg, Decimal(5))

    def test_overweight_fee(self):
        self.assertEqual(calculate_overweight_fee(Decimal(5), 50), 0)
        self.assertEqual(calculate_overweight_fee(Decimal(8), 50), 150)
        self.assertEqual(calculate_overweight_fee(Decimal("5.5"), 50), 25)


class OverridesAndSummaryTests(SimpleTestCase):
    def test_overrides_replace_only_given_values(self):
        parcel = Parcel(total_weight_gr=900, length_cm=30, width_cm=20, height_cm=10)
        updated = apply_parcel_overrides(parcel, height_cm=12, weight_gr=1100)
        self.assertEqual(updated, Parcel(total_weight_gr=1100, length_cm=30, width_cm=20, height_cm=12))

    def test_non_positive_override_rejected(self):
        with self.assertRaises(ParcelValidationError):
            apply_parcel_overrides(Parcel(100, 10, 10, 10), width_cm=0)

    def test_summary_lists_items(self):
        summary = summarize_items([_item(name="Scanner", sku="OBD-01", quantity=2), _item(name="Cable")])
        self.assertEqual(summary, "Scanner (OBD-01) x2, Cable")

    def test_single_units_have_no_count(self):
        summary = summarize_items(
            [_item(name="T-Shirt", sku="TS-1", quantity=2), _item(name="Cap", sku="CP-3", quantity=1)]
        )
        self.assertEqual(summary, "T-Shirt (TS-1) x2, Cap (CP-3)")

    def test_summary_is_trimmed(self):
        summary = summarize_items([_item(name="X" * 100, quantity=1)] * 5, max_length=50)
        self.assertEqual(len(summary), 50)
        self.assertTrue(summary.endswith("..."))
