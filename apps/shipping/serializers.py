"""
Shipping API Serializers for CompuCar Platform
Input validation for quote requests; field names follow the storefront's camelCase JSON.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from .packing import (
    DEFAULT_HEIGHT_CM,
    DEFAULT_LENGTH_CM,
    DEFAULT_WIDTH_CM,
    MAX_DIMENSION_CM,
    CartLineItem,
    Parcel,
)


class CartItemInputSerializer(serializers.Serializer):
    """One line of a cart as posted by the storefront"""

    productId = serializers.CharField(required=False, allow_blank=True)
    name = serializers.CharField(max_length=200)
    sku = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    weightGr = serializers.IntegerField(min_value=1)
    lengthCm = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=MAX_DIMENSION_CM)
    widthCm = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=MAX_DIMENSION_CM)
    heightCm = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=MAX_DIMENSION_CM)


def line_item_from_data(data: dict[str, Any]) -> CartLineItem:
    return CartLineItem(
        name=data['name'],
        sku=data.get('sku') or "",
        quantity=data['quantity'],
        weight_gr=data['weightGr'],
        length_cm=data.get('lengthCm') or DEFAULT_LENGTH_CM,
        width_cm=data.get('widthCm') or DEFAULT_WIDTH_CM,
        height_cm=data.get('heightCm') or DEFAULT_HEIGHT_CM,
        product_id=data.get('productId') or None,
    )


class ShippingCalculateInputSerializer(serializers.Serializer):
    """
    Quote request.
    Either a full cart (`items`) or a bare `weight` in kg with optional dimensions.
    """

    wilaya = serializers.CharField()
    commune = serializers.CharField(required=False, allow_blank=True, default="")
    isStopdesk = serializers.BooleanField(default=False)
    stopdeskId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    items = CartItemInputSerializer(many=True, required=False)
    weight = serializers.DecimalField(max_digits=6, decimal_places=3, required=False, min_value=0)
    length = serializers.IntegerField(required=False, min_value=1, max_value=MAX_DIMENSION_CM)
    width = serializers.IntegerField(required=False, min_value=1, max_value=MAX_DIMENSION_CM)
    height = serializers.IntegerField(required=False, min_value=1, max_value=MAX_DIMENSION_CM)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if 'items' not in attrs and attrs.get('weight') is None:
            raise serializers.ValidationError({'items': "Provide cart items or a parcel weight"})
        if 'weight' in attrs and attrs['weight'] is not None and attrs['weight'] <= 0:
            raise serializers.ValidationError({'weight': "Weight must be greater than 0"})
        return attrs

    def weight_only_parcel(self) -> Parcel:
        data = self.validated_data
        return Parcel(
            total_weight_gr=int(data['weight'] * 1000),
            length_cm=data.get('length') or DEFAULT_LENGTH_CM,
            width_cm=data.get('width') or DEFAULT_WIDTH_CM,
            height_cm=data.get('height') or DEFAULT_HEIGHT_CM,
        )
