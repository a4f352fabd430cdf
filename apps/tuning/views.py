"""
Tuning API Views for CompuCar Platform
Customer file uploads and tracking, plus the back-office workflow endpoints.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from django.http import FileResponse, HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes, throttle_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.common.pagination import StandardResultsSetPagination
from apps.common.types import Result
from apps.common.utils import get_client_ip
from apps.common.validators import log_security_event

from .models import TuningFile, TuningModification
from .serializers import (
    AdminNoteSerializer,
    AdminTuningFileSerializer,
    CustomerCommentSerializer,
    ModifiedFileUploadSerializer,
    PaymentStatusSerializer,
    PriceUpdateSerializer,
    StatusUpdateSerializer,
    TuningFileDetailSerializer,
    TuningFileListSerializer,
    TuningModificationSerializer,
    TuningUploadSerializer,
)
from .services import FILE_NOT_FOUND, PERSISTENCE_ERROR, STALE_VERSION, TuningFileService

logger = logging.getLogger(__name__)


class TuningUploadThrottle(ScopedRateThrottle):
    """Throttling for file uploads; listing is not limited"""
    scope = 'tuning_upload'

    def allow_request(self, request: Request, view: Any) -> bool:
        if request.method != 'POST':
            return True
        return super().allow_request(request, view)


def _not_found() -> Response:
    return Response({'success': False, 'error': FILE_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)


def _result_response(result: Result[TuningFile, str], serializer_class: type = AdminTuningFileSerializer) -> Response:
    """Translate a service Result into the API envelope"""
    if result.is_ok():
        return Response({'success': True, 'data': serializer_class(result.unwrap()).data})

    error = result.error
    if error == FILE_NOT_FOUND:
        return _not_found()
    if error == STALE_VERSION:
        return Response(
            {'success': False, 'error': 'File was changed by someone else; reload and try again', 'code': error},
            status=status.HTTP_409_CONFLICT,
        )
    if error == PERSISTENCE_ERROR:
        return Response({'success': False, 'error': error}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'success': False, 'error': error}, status=status.HTTP_400_BAD_REQUEST)


def _invalid(serializer: Any) -> Response:
    return Response({'success': False, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)


def _file_download(field: Any, filename: str) -> HttpResponse:
    return FileResponse(field.open('rb'), as_attachment=True, filename=filename)


# ===============================================================================
# CUSTOMER ENDPOINTS
# ===============================================================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([TuningUploadThrottle])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def file_list(request: Request) -> Response:
    """
    GET: the customer's files (?status=PENDING&search=golf&page=2) with paid/unpaid totals.
    POST: upload a new ECU file (multipart: file, modifications[], comment).
    """
    if request.method == 'POST':
        return _upload_file(request)

    queryset = TuningFileService.list_customer_files(
        request.user,
        status=request.query_params.get('status'),
        search=request.query_params.get('search'),
    )
    summary = TuningFileService.payment_summary(queryset)

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    response = paginator.get_paginated_response(TuningFileListSerializer(page, many=True).data)
    response.data['summary'] = summary
    return response


def _upload_file(request: Request) -> Response:
    serializer = TuningUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.create_upload(
        owner=request.user,
        upload=data['file'],
        modification_codes=data['modifications'],
        comment=data['comment'],
    )
    if result.is_err():
        logger.warning(f"⚠️ [Tuning API] Upload rejected for {request.user.email}: {result.error}")
        return _result_response(result)

    return Response(
        {'success': True, 'data': TuningFileDetailSerializer(result.unwrap()).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def file_detail(request: Request, file_id: UUID) -> Response:
    tuning_file = TuningFileService.get_customer_file(request.user, file_id)
    if tuning_file is None:
        return _not_found()
    return Response({'success': True, 'data': TuningFileDetailSerializer(tuning_file).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def file_comment(request: Request, file_id: UUID) -> Response:
    serializer = CustomerCommentSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = TuningFileService.add_customer_comment(file_id, serializer.validated_data['comment'], request.user)
    return _result_response(result, TuningFileDetailSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def file_download(request: Request, file_id: UUID) -> HttpResponse:
    """Original upload, or the processed file with ?modified=1"""
    tuning_file = TuningFileService.get_customer_file(request.user, file_id)
    if tuning_file is None:
        log_security_event(
            'tuning_download_denied', {'file_id': str(file_id), 'user_id': request.user.pk}, get_client_ip(request)
        )
        return _not_found()

    if request.query_params.get('modified') in ('1', 'true'):
        if not tuning_file.has_modified_file:
            return Response(
                {'success': False, 'error': 'Modified file is not available yet'}, status=status.HTTP_404_NOT_FOUND
            )
        return _file_download(tuning_file.modified_file, tuning_file.modified_filename)

    return _file_download(tuning_file.original_file, tuning_file.original_filename)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def modification_list(request: Request) -> Response:
    """Active modifications a customer can request"""
    queryset = TuningModification.objects.filter(is_active=True)
    return Response({'success': True, 'data': TuningModificationSerializer(queryset, many=True).data})


# ===============================================================================
# ADMIN ENDPOINTS
# ===============================================================================

@api_view(['GET'])
@permission_classes([IsAdminUser])
def admin_file_list(request: Request) -> Response:
    queryset = TuningFileService.filter_files(
        TuningFile.objects.select_related('owner').prefetch_related('modifications'),
        status=request.query_params.get('status'),
        search=request.query_params.get('search'),
    )
    payment = request.query_params.get('payment_status')
    if payment:
        queryset = queryset.filter(payment_status=payment.upper())

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    response = paginator.get_paginated_response(TuningFileListSerializer(page, many=True).data)
    response.data['summary'] = TuningFileService.payment_summary(queryset)
    return response


@api_view(['GET'])
@permission_classes([IsAdminUser])
def admin_file_detail(request: Request, file_id: UUID) -> Response:
    try:
        tuning_file = (
            TuningFile.objects.select_related('owner')
            .prefetch_related('modifications', 'audit_entries__actor')
            .get(pk=file_id)
        )
    except TuningFile.DoesNotExist:
        return _not_found()
    return Response({'success': True, 'data': AdminTuningFileSerializer(tuning_file).data})


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_update_status(request: Request, file_id: UUID) -> Response:
    """{status, override?, estimated_minutes?, version?}"""
    serializer = StatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.update_status(
        file_id,
        data['status'],
        request.user,
        override=data['override'],
        estimated_minutes=data.get('estimated_minutes'),
        expected_version=data.get('version'),
    )
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_set_price(request: Request, file_id: UUID) -> Response:
    serializer = PriceUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.set_price(file_id, data['price'], request.user, expected_version=data.get('version'))
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_set_payment(request: Request, file_id: UUID) -> Response:
    serializer = PaymentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.set_payment_status(
        file_id, data['payment_status'], request.user, expected_version=data.get('version')
    )
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
def admin_add_note(request: Request, file_id: UUID) -> Response:
    serializer = AdminNoteSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.add_admin_note(file_id, data['note'], request.user, expected_version=data.get('version'))
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
@parser_classes([MultiPartParser, FormParser])
def admin_upload_modified(request: Request, file_id: UUID) -> Response:
    serializer = ModifiedFileUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = TuningFileService.upload_modified_file(
        file_id, data['file'], request.user, expected_version=data.get('version')
    )
    return _result_response(result)
