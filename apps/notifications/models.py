"""
Notifications models for CompuCar Platform
Durable in-app inbox; the live stream is best-effort on top of it.
"""

import uuid
from typing import ClassVar

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# IN-APP NOTIFICATIONS
# ===============================================================================

class Notification(models.Model):
    """
    One inbox entry for one user.
    Written for every domain event that concerns the user, whether or not
    they were connected when it happened.
    """

    TYPE_FILE_UPLOADED = "file_uploaded"
    TYPE_FILE_STATUS = "file_status_update"
    TYPE_ESTIMATED_TIME = "estimated_time_update"
    TYPE_FILE_PRICE = "file_price_update"
    TYPE_PAYMENT_CONFIRMED = "payment_confirmed"
    TYPE_ADMIN_COMMENT = "admin_comment"
    TYPE_ORDER_PLACED = "order_placed"
    TYPE_SHIPMENT_UPDATE = "shipment_update"
    TYPE_FILE_UPDATE_BY_ADMIN = "file_update_by_admin"

    TYPE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (TYPE_FILE_UPLOADED, _("File uploaded")),
        (TYPE_FILE_STATUS, _("File status update")),
        (TYPE_ESTIMATED_TIME, _("Estimated time update")),
        (TYPE_FILE_PRICE, _("File price update")),
        (TYPE_PAYMENT_CONFIRMED, _("Payment confirmed")),
        (TYPE_ADMIN_COMMENT, _("Admin comment")),
        (TYPE_ORDER_PLACED, _("Order placed")),
        (TYPE_SHIPMENT_UPDATE, _("Shipment update")),
        (TYPE_FILE_UPDATE_BY_ADMIN, _("File updated by admin")),
    )

    CATEGORY_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("order", _("Order")),
        ("payment", _("Payment")),
        ("security", _("Security")),
        ("file_status", _("File status")),
        ("shipping", _("Shipping")),
        ("system", _("System")),
    )

    PRIORITY_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("low", _("Low")),
        ("medium", _("Medium")),
        ("high", _("High")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    notification_type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="system")
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default="medium")
    title = models.CharField(max_length=200)
    message = models.TextField()

    tuning_file = models.ForeignKey(
        "tuning.TuningFile",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    data = models.JSONField(default=dict, blank=True, help_text=_("Payload sent to the live stream"))

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "notifications"
        verbose_name = _("Notification")
        verbose_name_plural = _("Notifications")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
            models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
        )

    def __str__(self) -> str:
        return f"{self.title} → {self.recipient_id}"
