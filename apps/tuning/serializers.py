"""
Tuning API Serializers for CompuCar Platform
Customer and back-office views of tuning files plus admin action inputs.
"""

from __future__ import annotations

from typing import Any

from django.utils import timezone
from rest_framework import serializers

from apps.common.validators import MAX_ADMIN_NOTE_LENGTH, MAX_CUSTOMER_COMMENT_LENGTH

from .models import TuningAuditEntry, TuningFile, TuningModification
from .workflow import MAX_ESTIMATED_MINUTES, STATUSES, compute_countdown, format_time_text


class TuningModificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = TuningModification
        fields = ['code', 'name', 'description', 'category']


class TuningFileListSerializer(serializers.ModelSerializer):
    """Slim row for the customer's file list"""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    has_modified_file = serializers.BooleanField(read_only=True)

    class Meta:
        model = TuningFile
        fields = [
            'id', 'original_filename', 'file_size', 'status', 'status_display',
            'price', 'payment_status', 'has_modified_file', 'created_at', 'updated_at',
        ]


class TuningFileDetailSerializer(serializers.ModelSerializer):
    """Full customer view, including the live countdown while PENDING"""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    modifications = TuningModificationSerializer(many=True, read_only=True)
    has_modified_file = serializers.BooleanField(read_only=True)
    estimated_time_text = serializers.SerializerMethodField()
    countdown = serializers.SerializerMethodField()

    class Meta:
        model = TuningFile
        fields = [
            'id', 'original_filename', 'file_size', 'file_type',
            'status', 'status_display',
            'estimated_processing_time_minutes', 'estimated_processing_time_set_at',
            'estimated_time_text', 'countdown',
            'price', 'payment_status', 'admin_notes', 'customer_comment', 'modifications',
            'has_modified_file', 'modified_filename', 'modified_file_size', 'modified_upload_date',
            'version', 'created_at', 'updated_at',
        ]

    def get_estimated_time_text(self, obj: TuningFile) -> str | None:
        minutes = obj.estimated_processing_time_minutes
        return format_time_text(minutes) if minutes else None

    def get_countdown(self, obj: TuningFile) -> dict[str, Any] | None:
        if obj.status != TuningFile.STATUS_PENDING:
            return None
        countdown = compute_countdown(
            obj.estimated_processing_time_set_at, obj.estimated_processing_time_minutes, timezone.now()
        )
        return countdown.as_dict() if countdown else None


class TuningAuditEntrySerializer(serializers.ModelSerializer):
    actor_email = serializers.EmailField(source='actor.email', read_only=True, default=None)

    class Meta:
        model = TuningAuditEntry
        fields = ['action', 'old_value', 'new_value', 'actor_email', 'source', 'created_at']


class AdminTuningFileSerializer(TuningFileDetailSerializer):
    """Back-office view with owner and audit trail"""

    owner_email = serializers.EmailField(source='owner.email', read_only=True)
    audit_entries = TuningAuditEntrySerializer(many=True, read_only=True)

    class Meta(TuningFileDetailSerializer.Meta):
        fields = [*TuningFileDetailSerializer.Meta.fields, 'owner_email', 'audit_entries']


# ===============================================================================
# INPUT SERIALIZERS
# ===============================================================================

class TuningUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    modifications = serializers.ListField(child=serializers.SlugField(), required=False, default=list)
    comment = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=MAX_CUSTOMER_COMMENT_LENGTH
    )


class CustomerCommentSerializer(serializers.Serializer):
    comment = serializers.CharField(allow_blank=True, max_length=MAX_CUSTOMER_COMMENT_LENGTH)


class VersionedActionSerializer(serializers.Serializer):
    """Optional optimistic-lock version shared by all admin actions"""

    version = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class StatusUpdateSerializer(VersionedActionSerializer):
    status = serializers.ChoiceField(choices=STATUSES)
    override = serializers.BooleanField(default=False)
    estimated_minutes = serializers.IntegerField(
        required=False, allow_null=True, min_value=1, max_value=MAX_ESTIMATED_MINUTES
    )


class PriceUpdateSerializer(VersionedActionSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class PaymentStatusSerializer(VersionedActionSerializer):
    payment_status = serializers.ChoiceField(choices=TuningFile.PAYMENT_STATUS_CHOICES)


class AdminNoteSerializer(VersionedActionSerializer):
    note = serializers.CharField(max_length=MAX_ADMIN_NOTE_LENGTH)


class ModifiedFileUploadSerializer(VersionedActionSerializer):
    file = serializers.FileField()
