"""
Notification API Serializers for CompuCar Platform
"""

from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='notification_type', read_only=True)
    tuning_file_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'category', 'priority', 'title', 'message',
            'tuning_file_id', 'data', 'is_read', 'read_at', 'created_at',
        ]
        read_only_fields = fields
