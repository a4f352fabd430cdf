"""
Tuning file models for CompuCar Platform
Customer-submitted ECU files, requested modifications and the per-file audit trail.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from pathlib import PurePath
from typing import ClassVar

from django.conf import settings
from django.core.validators import MaxLengthValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

MAX_ADMIN_NOTES_LENGTH = 2000


def original_upload_path(instance: TuningFile, filename: str) -> str:
    """tuning/<owner>/<file-id>/original<ext>"""
    return f"tuning/{instance.owner_id}/{instance.id}/original{PurePath(filename).suffix.lower()}"


def modified_upload_path(instance: TuningFile, filename: str) -> str:
    return f"tuning/{instance.owner_id}/{instance.id}/modified{PurePath(filename).suffix.lower()}"


# ===============================================================================
# MODIFICATION CATALOGUE
# ===============================================================================

class TuningModification(models.Model):
    """
    A service a customer can request on an ECU file (Stage 1, DPF delete, EGR delete...).
    """

    CATEGORY_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("performance", _("Performance")),
        ("emissions", _("Emissions")),
        ("diagnostics", _("Diagnostics")),
        ("other", _("Other")),
    )

    code = models.SlugField(max_length=50, unique=True, help_text=_("Stable identifier, e.g. 'STAGE_1'"))
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="performance")
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "tuning_modifications"
        verbose_name = _("Tuning Modification")
        verbose_name_plural = _("Tuning Modifications")
        ordering: ClassVar[tuple[str, ...]] = ("sort_order", "name")

    def __str__(self) -> str:
        return self.name


# ===============================================================================
# TUNING FILE
# ===============================================================================

class TuningFile(models.Model):
    """
    One uploaded ECU file and its processing state.

    Status and payment are independent axes: price and payment status can change
    at any time without moving the file through the workflow.
    """

    STATUS_RECEIVED = "RECEIVED"
    STATUS_PENDING = "PENDING"
    STATUS_READY = "READY"

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (STATUS_RECEIVED, _("📥 Received")),
        (STATUS_PENDING, _("⏳ In progress")),
        (STATUS_READY, _("✅ Ready")),
    )

    PAYMENT_NOT_PAID = "NOT_PAID"
    PAYMENT_PAID = "PAID"

    PAYMENT_STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (PAYMENT_NOT_PAID, _("Not paid")),
        (PAYMENT_PAID, _("Paid")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tuning_files",
        help_text=_("Customer who uploaded the file"),
    )

    # Original upload
    original_filename = models.CharField(max_length=255)
    original_file = models.FileField(upload_to=original_upload_path, max_length=500)
    file_size = models.PositiveBigIntegerField(help_text=_("Size in bytes"))
    file_type = models.CharField(max_length=100, blank=True, help_text=_("MIME type reported at upload"))

    # Workflow
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_RECEIVED)
    estimated_processing_time_minutes = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1)]
    )
    estimated_processing_time_set_at = models.DateTimeField(null=True, blank=True)

    # Commercial
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Price in DZD"),
    )
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_NOT_PAID)

    # Communication
    admin_notes = models.TextField(blank=True, default="", validators=[MaxLengthValidator(MAX_ADMIN_NOTES_LENGTH)])
    customer_comment = models.TextField(blank=True, default="")
    modifications = models.ManyToManyField(TuningModification, blank=True, related_name="files")

    # Delivered output
    modified_filename = models.CharField(max_length=255, blank=True, default="")
    modified_file = models.FileField(upload_to=modified_upload_path, max_length=500, blank=True)
    modified_file_size = models.PositiveBigIntegerField(null=True, blank=True)
    modified_file_type = models.CharField(max_length=100, blank=True, default="")
    modified_upload_date = models.DateTimeField(null=True, blank=True)

    # Bumped on every admin mutation so stale edits can be refused
    version = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tuning_files"
        verbose_name = _("Tuning File")
        verbose_name_plural = _("Tuning Files")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["owner", "status"], name="tuning_owner_status_idx"),
            models.Index(fields=["status", "created_at"], name="tuning_status_created_idx"),
            models.Index(fields=["payment_status"], name="tuning_payment_idx"),
        )

    def __str__(self) -> str:
        return f"{self.original_filename} ({self.status})"

    @property
    def short_id(self) -> str:
        """Prefix used in bot callback data"""
        return str(self.id)[:8]

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PAYMENT_PAID

    @property
    def has_modified_file(self) -> bool:
        return bool(self.modified_filename)


# ===============================================================================
# AUDIT TRAIL
# ===============================================================================

class TuningAuditEntry(models.Model):
    """📋 Append-only record of one mutating action on a tuning file"""

    ACTION_STATUS_CHANGE = "STATUS_CHANGE"
    ACTION_PRICE_SET = "PRICE_SET"
    ACTION_PAYMENT_STATUS_CHANGE = "PAYMENT_STATUS_CHANGE"
    ACTION_NOTE_ADDED = "NOTE_ADDED"
    ACTION_MODIFIED_FILE_UPLOADED = "MODIFIED_FILE_UPLOADED"
    ACTION_ESTIMATED_TIME_SET = "ESTIMATED_TIME_SET"
    ACTION_CUSTOMER_COMMENT = "CUSTOMER_COMMENT"

    ACTION_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (ACTION_STATUS_CHANGE, _("Status change")),
        (ACTION_PRICE_SET, _("Price set")),
        (ACTION_PAYMENT_STATUS_CHANGE, _("Payment status change")),
        (ACTION_NOTE_ADDED, _("Admin note")),
        (ACTION_MODIFIED_FILE_UPLOADED, _("Modified file uploaded")),
        (ACTION_ESTIMATED_TIME_SET, _("Estimated time set")),
        (ACTION_CUSTOMER_COMMENT, _("Customer comment")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    file = models.ForeignKey(TuningFile, on_delete=models.CASCADE, related_name="audit_entries")
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    old_value = models.TextField(blank=True, null=True)
    new_value = models.TextField(blank=True, null=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tuning_audit_entries",
    )
    source = models.CharField(max_length=20, default="web", help_text=_("web, telegram or system"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "tuning_audit_entries"
        verbose_name = _("Tuning Audit Entry")
        verbose_name_plural = _("Tuning Audit Entries")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["file", "created_at"], name="tuning_audit_file_idx"),
        )

    def __str__(self) -> str:
        return f"{self.action}: {self.old_value} → {self.new_value}"
