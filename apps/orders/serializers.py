"""
Order API Serializers for CompuCar Platform
Checkout input in the storefront's camelCase JSON and order output for the account pages.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from .models import Order, OrderItem, OrderStatusHistory
from .services import MAX_LINE_QUANTITY, MAX_NOTES_LENGTH, CheckoutLine, CheckoutRequest, ShipmentOverrides


class CheckoutLineSerializer(serializers.Serializer):
    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_LINE_QUANTITY)


class CheckoutSerializer(serializers.Serializer):
    """
    COD checkout form.
    Prices and weights come from the catalog; only product ids and quantities are trusted.
    """

    customerName = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    wilaya = serializers.CharField()
    commune = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)
    isStopdesk = serializers.BooleanField(default=False)
    stopdeskId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    calculatedShipping = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=MAX_NOTES_LENGTH)
    items = CheckoutLineSerializer(many=True, allow_empty=False)

    def to_checkout_request(self, user: Any = None) -> CheckoutRequest:
        data = self.validated_data
        return CheckoutRequest(
            customer_name=data['customerName'],
            phone=data['phone'],
            email=data.get('email') or '',
            wilaya=data['wilaya'],
            commune=data.get('commune') or '',
            address=data.get('address') or '',
            is_stopdesk=data['isStopdesk'],
            stopdesk_id=data.get('stopdeskId'),
            calculated_shipping=data.get('calculatedShipping'),
            notes=data.get('notes') or '',
            lines=[CheckoutLine(line['productId'], line['quantity']) for line in data['items']],
            user=user,
        )


class ShipmentSerializer(serializers.Serializer):
    """Optional staff-measured parcel values for the carrier"""

    lengthCm = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    widthCm = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    heightCm = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    weightGr = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def to_overrides(self) -> ShipmentOverrides:
        data = self.validated_data
        return ShipmentOverrides(
            length_cm=data.get('lengthCm'),
            width_cm=data.get('widthCm'),
            height_cm=data.get('heightCm'),
            weight_gr=data.get('weightGr'),
        )


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['product_id', 'product_name', 'product_sku', 'quantity', 'unit_price_cents', 'line_total_cents']


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ['old_status', 'new_status', 'reason', 'is_automatic', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'status_display', 'total_cents', 'currency',
            'tracking_number', 'created_at',
        ]


class OrderDetailSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'status_display',
            'customer_name', 'customer_phone', 'customer_email',
            'wilaya_id', 'wilaya_name', 'commune_name', 'address', 'is_stopdesk', 'stopdesk_id',
            'subtotal_cents', 'shipping_cents', 'total_cents', 'currency', 'shipping_quote_source',
            'tracking_number', 'carrier_status', 'items', 'status_history',
            'created_at', 'shipped_at', 'delivered_at',
        ]
