import hashlib
import uuid
from typing import Any, ClassVar

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# INBOUND WEBHOOK LOG
# ===============================================================================


class WebhookEvent(models.Model):
    """
    🔄 Inbound webhook record, one per (source, event id)

    Telegram retries an update until it gets a 200 and Yalidine may resend a
    status change; the unique pair makes each delivery take effect once.
    """

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("pending", _("⏳ Pending")),
        ("processed", _("✅ Processed")),
        ("failed", _("❌ Failed")),
        ("skipped", _("⏭️ Skipped")),  # Duplicate or irrelevant
    )

    SOURCE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("telegram_super_admin", _("🤖 Telegram: super admin bot")),
        ("telegram_file_admin", _("🤖 Telegram: file admin bot")),
        ("telegram_customer", _("🤖 Telegram: customer bot")),
        ("yalidine", _("🚚 Yalidine")),
        ("other", _("🔌 Other")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source = models.CharField(
        max_length=50, choices=SOURCE_CHOICES, help_text=_("External service that sent the webhook")
    )
    event_id = models.CharField(max_length=255, help_text=_("Telegram update_id or carrier event id"))
    event_type = models.CharField(
        max_length=100, help_text=_("Type of event (e.g., 'callback_query', 'parcel.delivered')")
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    received_at = models.DateTimeField(default=timezone.now, help_text=_("When webhook was received by our system"))
    processed_at = models.DateTimeField(null=True, blank=True, help_text=_("When webhook processing completed"))

    payload = models.JSONField(help_text=_("Complete webhook payload from external service"))
    signature_hash = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text=_("SHA-256 hash of webhook signature for verification tracking"),
    )

    error_message = models.TextField(blank=True, help_text=_("Error details if processing failed"))
    retry_count = models.PositiveIntegerField(default=0, help_text=_("Number of processing attempts"))

    ip_address = models.GenericIPAddressField(
        null=True, blank=True, help_text=_("IP address webhook was received from")
    )
    user_agent = models.TextField(blank=True, help_text=_("User agent of webhook sender"))
    headers = models.JSONField(default=dict, blank=True, help_text=_("HTTP headers from webhook request"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "webhook_events"
        verbose_name = _("🔄 Webhook Event")
        verbose_name_plural = _("🔄 Webhook Events")

        # Prevent duplicate processing
        unique_together: ClassVar[tuple[tuple[str, ...], ...]] = (("source", "event_id"),)

        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["source", "event_type", "received_at"], name="webhook_source_type_idx"),
            models.Index(fields=["status", "received_at"], name="webhook_status_idx"),
        )

        ordering: ClassVar[tuple[str, ...]] = ("-received_at",)

    def __str__(self) -> str:
        return f"🔄 {self.get_source_display()} | {self.event_type} | {self.status}"

    @property
    def processing_duration(self) -> Any | None:
        """⏱️ Time taken to process webhook"""
        if self.processed_at and self.received_at:
            return self.processed_at - self.received_at
        return None

    def set_signature(self, signature: str | None) -> None:
        """Store only a hash of the signature; empty/None -> empty string."""
        self.signature_hash = hashlib.sha256(signature.encode()).hexdigest() if signature else ""

    def mark_processed(self, save: bool = True) -> None:
        """✅ Mark webhook as successfully processed"""
        self.status = "processed"
        self.processed_at = timezone.now()
        if save:
            self.save(update_fields=["status", "processed_at", "updated_at"])

    def mark_failed(self, error_message: str, save: bool = True) -> None:
        """❌ Mark webhook as failed with error details"""
        self.status = "failed"
        self.error_message = error_message
        self.retry_count += 1
        self.processed_at = timezone.now()
        if save:
            self.save(update_fields=["status", "error_message", "retry_count", "processed_at", "updated_at"])

    @classmethod
    def is_duplicate(cls, source: str, event_id: str) -> bool:
        """🔍 Check if webhook has already been received"""
        return cls.objects.filter(source=source, event_id=event_id).exists()

