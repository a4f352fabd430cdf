"""
Order API Views for CompuCar Platform
COD checkout, the customer's order history and staff shipping actions.
"""

from __future__ import annotations

import logging
from uuid import UUID

from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.common.pagination import StandardResultsSetPagination
from apps.common.utils import get_client_ip
from apps.common.validators import log_security_event

from .models import Order
from .serializers import CheckoutSerializer, OrderDetailSerializer, OrderListSerializer, ShipmentSerializer
from .services import CheckoutError, CheckoutService, OrderQueryService, OrderService

logger = logging.getLogger(__name__)

ORDER_NOT_FOUND = "Order not found"

CHECKOUT_ERROR_STATUS = {
    CheckoutError.INVALID: status.HTTP_400_BAD_REQUEST,
    CheckoutError.SHIPPING_CHANGED: status.HTTP_409_CONFLICT,
    CheckoutError.UNDELIVERABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CheckoutError.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class CheckoutThrottle(ScopedRateThrottle):
    """Throttling for order placement (each checkout re-prices with the carrier)"""
    scope = 'checkout'


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED])
    reason = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)


def _not_found() -> Response:
    return Response({'success': False, 'error': ORDER_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)


# ===============================================================================
# CHECKOUT
# ===============================================================================

@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([CheckoutThrottle])
def checkout(request: Request) -> Response:
    """
    Place a cash-on-delivery order.

    409 means the shipping price changed since the customer saw it; the body
    carries the server quote so the storefront can ask them to confirm.
    """
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    result = CheckoutService.place_order(serializer.to_checkout_request(request.user))
    if result.is_ok():
        order = result.unwrap()
        return Response(
            {'success': True, 'data': OrderDetailSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    error = result.error
    body = {'success': False, 'error': error.message, 'code': error.code}
    if error.field:
        body['field'] = error.field
    if error.quote is not None:
        body['shipping'] = error.quote.as_dict()
    if error.code == CheckoutError.SHIPPING_CHANGED:
        logger.info(f"ℹ️ [Checkout API] Shipping re-confirmation needed from {get_client_ip(request)}")
    return Response(body, status=CHECKOUT_ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST))


# ===============================================================================
# CUSTOMER ORDERS
# ===============================================================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request: Request) -> Response:
    queryset = OrderQueryService.orders_for_user(request.user, status=request.query_params.get('status'))
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(OrderListSerializer(page, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request: Request, order_id: UUID) -> Response:
    order = OrderQueryService.get_order_for_user(request.user, order_id)
    if order is None:
        if Order.objects.filter(id=order_id).exists():
            log_security_event(
                'order_access_denied',
                {'order_id': str(order_id), 'user_id': str(request.user.id)},
                get_client_ip(request),
            )
        return _not_found()
    return Response({'success': True, 'data': OrderDetailSerializer(order).data})


# ===============================================================================
# STAFF ACTIONS
# ===============================================================================

@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_update_status(request: Request, order_id: UUID) -> Response:
    """Phone confirmation or cancellation before the parcel leaves"""
    order = Order.objects.filter(id=order_id).first()
    if order is None:
        return _not_found()

    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    result = OrderService.update_status(
        order, serializer.validated_data['status'], changed_by=request.user,
        reason=serializer.validated_data['reason'],
    )
    if result.is_err():
        return Response({'success': False, 'error': result.error}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'success': True, 'data': OrderDetailSerializer(result.unwrap()).data})


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_create_shipment(request: Request, order_id: UUID) -> Response:
    """Register the parcel with Yalidine, optionally with measured dimensions"""
    order = Order.objects.prefetch_related('items').filter(id=order_id).first()
    if order is None:
        return _not_found()
    if not order.can_ship:
        return Response(
            {'success': False, 'error': f"Order {order.order_number} cannot be shipped in status {order.status}"},
            status=status.HTTP_409_CONFLICT,
        )

    serializer = ShipmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    result = OrderService.create_shipment(order, actor=request.user, overrides=serializer.to_overrides())
    if result.is_err():
        return Response({'success': False, 'error': result.error}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'success': True, 'data': OrderDetailSerializer(result.unwrap()).data})


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_refresh_tracking(request: Request, order_id: UUID) -> Response:
    """Pull the latest parcel status from Yalidine"""
    order = Order.objects.filter(id=order_id).first()
    if order is None:
        return _not_found()
    if not order.tracking_number:
        return Response(
            {'success': False, 'error': f"Order {order.order_number} has not been shipped"},
            status=status.HTTP_409_CONFLICT,
        )

    result = OrderService.refresh_carrier_status(order)
    if result.is_err():
        return Response({'success': False, 'error': result.error}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'success': True, 'data': OrderDetailSerializer(result.unwrap()).data})
