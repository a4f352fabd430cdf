"""
Notification API Views for CompuCar Platform
Inbox endpoints and the Server-Sent Events stream.
"""

from __future__ import annotations

import logging
from uuid import UUID

from django.http import HttpRequest, HttpResponse, JsonResponse, StreamingHttpResponse
from django.views.decorators.http import require_GET
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.pagination import StandardResultsSetPagination
from apps.common.utils import parse_bool

from . import realtime
from .serializers import NotificationSerializer
from .services import NotificationService

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request: Request) -> Response:
    """Inbox, newest first (?is_read=false for unread only)"""
    queryset = NotificationService.list_for_user(request.user, is_read=parse_bool(request.query_params.get('is_read')))

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    response = paginator.get_paginated_response(NotificationSerializer(page, many=True).data)
    response.data['unread_count'] = NotificationService.unread_count(request.user)
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request: Request, notification_id: UUID) -> Response:
    if not NotificationService.mark_read(request.user, notification_id):
        return Response({'success': False, 'error': 'Notification not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'success': True, 'unread_count': NotificationService.unread_count(request.user)})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_notification(request: Request, notification_id: UUID) -> Response:
    if not NotificationService.delete(request.user, notification_id):
        return Response({'success': False, 'error': 'Notification not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'success': True, 'unread_count': NotificationService.unread_count(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request: Request) -> Response:
    updated = NotificationService.mark_all_read(request.user)
    return Response({'success': True, 'updated': updated, 'unread_count': 0})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request: Request) -> Response:
    return Response({'success': True, 'unread_count': NotificationService.unread_count(request.user)})


@require_GET
def notification_stream(request: HttpRequest) -> HttpResponse:
    """
    📡 Server-Sent Events stream for the signed-in user.
    Plain Django view: DRF content negotiation does not apply to event streams.
    """
    if not request.user.is_authenticated:
        return JsonResponse({'success': False, 'error': 'Authentication required'}, status=401)

    response = StreamingHttpResponse(realtime.event_stream(request.user.pk), content_type='text/event-stream')
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response
