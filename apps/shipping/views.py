"""
Shipping API Views for CompuCar Platform
Public destination lookups and shipping quotes for the checkout page.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.common.types import ValidationError

from .packing import compute_parcel
from .serializers import ShippingCalculateInputSerializer, line_item_from_data
from .services import ShippingDestination, ShippingService
from .wilayas import resolve_wilaya_id

logger = logging.getLogger(__name__)


class ShippingLookupThrottle(ScopedRateThrottle):
    """Throttling for wilaya/commune/stop desk lookups"""
    scope = 'shipping_lookup'


class ShippingCalculateThrottle(ScopedRateThrottle):
    """Throttling for quote calculations (each may hit the carrier)"""
    scope = 'shipping_calculate'


def _wilaya_param(request: Request) -> int | None:
    return resolve_wilaya_id(request.query_params.get('wilaya_id') or request.query_params.get('wilaya'))


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([ShippingLookupThrottle])
def wilaya_list(request: Request) -> Response:
    """All deliverable wilayas"""
    wilayas = ShippingService.list_wilayas()
    return Response({'success': True, 'data': wilayas, 'count': len(wilayas)})


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([ShippingLookupThrottle])
def commune_list(request: Request) -> Response:
    """Communes of one wilaya (?wilaya_id=16 or ?wilaya=Alger)"""
    wilaya_id = _wilaya_param(request)
    if wilaya_id is None:
        return Response({'success': False, 'error': 'A valid wilaya is required'}, status=status.HTTP_400_BAD_REQUEST)

    result = ShippingService.list_communes(wilaya_id)
    if result.is_err():
        logger.warning(f"⚠️ [Shipping API] Communes unavailable for wilaya {wilaya_id}: {result.error}")
        return Response(
            {'success': False, 'error': 'Communes are temporarily unavailable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'success': True, 'data': result.unwrap()})


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([ShippingLookupThrottle])
def stopdesk_list(request: Request) -> Response:
    """Carrier pickup points of one wilaya"""
    wilaya_id = _wilaya_param(request)
    if wilaya_id is None:
        return Response({'success': False, 'error': 'A valid wilaya is required'}, status=status.HTTP_400_BAD_REQUEST)

    result = ShippingService.list_stopdesks(wilaya_id)
    if result.is_err():
        logger.warning(f"⚠️ [Shipping API] Stop desks unavailable for wilaya {wilaya_id}: {result.error}")
        return Response(
            {'success': False, 'error': 'Stop desks are temporarily unavailable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'success': True, 'data': result.unwrap()})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ShippingCalculateThrottle])
def calculate_shipping(request: Request) -> Response:
    """
    Quote a cart (or a bare weight) for a destination.
    A quote with isConfirmed=false is an estimate; checkout re-prices on the server.
    """
    serializer = ShippingCalculateInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        destination = ShippingDestination.build(
            wilaya=data['wilaya'],
            commune=data.get('commune'),
            is_stopdesk=data['isStopdesk'],
            stopdesk_id=data.get('stopdeskId'),
        )
        if 'items' in data:
            parcel = compute_parcel([line_item_from_data(item) for item in data['items']])
        else:
            parcel = serializer.weight_only_parcel()
    except ValidationError as e:
        return Response(
            {'success': False, 'error': e.message, 'field': e.field}, status=status.HTTP_400_BAD_REQUEST
        )

    result = ShippingService.estimate_shipping_cost(parcel, destination)
    if result.is_err():
        return Response({'success': False, 'error': result.error}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    return Response({'success': True, 'data': {**result.unwrap().as_dict(), 'parcel': parcel.as_dict()}})
