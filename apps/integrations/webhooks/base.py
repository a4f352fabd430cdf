import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import Any

from django.db import IntegrityError, transaction

from apps.common.types import Err, Ok, Result
from apps.integrations.models import WebhookEvent

logger = logging.getLogger(__name__)

DUPLICATE_PREFIX = "DUPLICATE:"


# ===============================================================================
# WEBHOOK PROCESSING RESULT TYPES
# ===============================================================================


@dataclass(frozen=True)
class WebhookProcessingResult:
    """Result of webhook processing with success flag, message, and optional event."""

    success: bool
    message: str
    webhook_event: WebhookEvent | None = None

    def to_tuple(self) -> tuple[bool, str, WebhookEvent | None]:
        return (self.success, self.message, self.webhook_event)

    @classmethod
    def success_result(cls, message: str, event: WebhookEvent) -> "WebhookProcessingResult":
        return cls(success=True, message=message, webhook_event=event)

    @classmethod
    def error_result(cls, message: str, event: WebhookEvent | None = None) -> "WebhookProcessingResult":
        return cls(success=False, message=message, webhook_event=event)


@dataclass(frozen=True)
class WebhookRequestMetadata:
    """Metadata extracted from webhook request."""

    signature: str
    headers: dict[str, str]
    ip_address: str | None
    user_agent: str | None
    raw_body: bytes = b""


@dataclass(frozen=True)
class WebhookContext:
    """Context for webhook event processing."""

    payload: dict[str, Any]
    metadata: WebhookRequestMetadata
    event_info: dict[str, str] = field(default_factory=dict)


# ===============================================================================
# BASE WEBHOOK PROCESSING
# ===============================================================================


class BaseWebhookProcessor:
    """
    🔧 Base class for webhook processing with deduplication

    Pipeline: extract ids -> skip duplicates -> verify signature ->
    record the event and hand it to the subclass, all as one Result chain.
    """

    source_name: str | None = None  # Override in subclasses

    def __init__(self) -> None:
        if not self.source_name:
            raise ValueError("source_name must be defined in subclass")

    def process_webhook(  # noqa: PLR0913
        self,
        payload: dict[str, Any],
        signature: str = "",
        headers: dict[str, str] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        raw_body: bytes = b"",
    ) -> tuple[bool, str, WebhookEvent | None]:
        """
        🔄 Main webhook processing pipeline

        Returns:
            (success: bool, message: str, webhook_event: WebhookEvent)
        """
        metadata = WebhookRequestMetadata(signature, headers or {}, ip_address, user_agent, raw_body)

        try:
            result = (
                self._validate_payload(payload)
                .and_then(self._check_duplicates)
                .and_then(lambda event_info: Ok(WebhookContext(payload, metadata, event_info)))
                .and_then(self._verify_signature_with_context)
                .and_then(self._create_and_process_event)
            )
        except Exception as e:
            logger.exception(f"💥 [Webhook] Critical error processing {self.source_name} webhook")
            return WebhookProcessingResult.error_result(f"Critical error: {e!s}").to_tuple()

        match result:
            case Ok(processing_result):
                return processing_result.to_tuple()
            case Err(error_message) if error_message.startswith(DUPLICATE_PREFIX):
                event_id = error_message[len(DUPLICATE_PREFIX):]
                existing = WebhookEvent.objects.filter(source=self.source_name, event_id=event_id).first()
                return (True, f"⏭️ Duplicate webhook skipped: {event_id}", existing)
            case Err(error_message):
                return WebhookProcessingResult.error_result(error_message).to_tuple()
            case _:
                return WebhookProcessingResult.error_result("Unknown result type").to_tuple()

    def _validate_payload(self, payload: dict[str, Any]) -> Result[dict[str, str], str]:
        """Step 1: Validate payload and extract event information."""
        event_id = self.extract_event_id(payload)
        event_type = self.extract_event_type(payload)

        if not event_id:
            return Err("❌ Missing event ID in payload")
        if not event_type:
            return Err("❌ Missing event type in payload")

        return Ok({"event_id": str(event_id), "event_type": event_type})

    def _check_duplicates(self, event_info: dict[str, str]) -> Result[dict[str, str], str]:
        """Step 2: Skip events we have already recorded."""
        event_id = event_info["event_id"]
        if WebhookEvent.is_duplicate(self.source_name, event_id):
            logger.info(f"🔄 [Webhook] Duplicate {self.source_name}:{event_id} - skipping")
            return Err(f"{DUPLICATE_PREFIX}{event_id}")
        return Ok(event_info)

    def _verify_signature_with_context(self, context: WebhookContext) -> Result[WebhookContext, str]:
        """Step 3: Verify webhook signature using context."""
        if not self.verify_signature(context.payload, context.metadata):
            return Err("❌ Invalid webhook signature")
        return Ok(context)

    def _create_and_process_event(self, context: WebhookContext) -> Result[WebhookProcessingResult, str]:
        """Step 4: Create webhook event record and process it."""
        event_id = context.event_info["event_id"]
        event_type = context.event_info["event_type"]
        metadata = context.metadata

        try:
            with transaction.atomic():
                webhook_event = WebhookEvent.objects.create(
                    source=self.source_name,
                    event_id=event_id,
                    event_type=event_type,
                    payload=context.payload,
                    ip_address=metadata.ip_address,
                    user_agent=metadata.user_agent or "",
                    headers=metadata.headers,
                    status="pending",
                )
        except IntegrityError:
            # Lost a race with a concurrent delivery of the same event
            return Err(f"{DUPLICATE_PREFIX}{event_id}")

        webhook_event.set_signature(metadata.signature)
        webhook_event.save(update_fields=["signature_hash", "updated_at"])

        try:
            with transaction.atomic():
                success, message = self.handle_event(webhook_event)
        except Exception as e:
            error_msg = f"Processing error: {e!s}"
            webhook_event.mark_failed(error_msg)
            logger.exception(f"💥 [Webhook] Exception processing {self.source_name} webhook {event_id}")
            return Ok(WebhookProcessingResult.error_result(error_msg, webhook_event))

        if success:
            webhook_event.mark_processed()
            logger.info(f"✅ [Webhook] Processed {self.source_name} webhook {event_id}: {message}")
            return Ok(WebhookProcessingResult.success_result(message, webhook_event))

        webhook_event.mark_failed(message)
        logger.error(f"❌ [Webhook] Failed {self.source_name} webhook {event_id}: {message}")
        return Ok(WebhookProcessingResult.error_result(message, webhook_event))

    def extract_event_id(self, payload: dict[str, Any]) -> str | None:
        """🔍 Extract unique event ID from payload - override in subclasses"""
        return payload.get("id")

    def extract_event_type(self, payload: dict[str, Any]) -> str | None:
        """🏷️ Extract event type from payload - override in subclasses"""
        return payload.get("type")

    def verify_signature(self, payload: dict[str, Any], metadata: WebhookRequestMetadata) -> bool:
        """🔐 Secure default: refuse. Subclasses implement real verification."""
        logger.error(f"🔥 [Webhook] Signature verification not implemented for {self.source_name}")
        return False

    def handle_event(self, webhook_event: WebhookEvent) -> tuple[bool, str]:
        """
        🎯 Handle specific webhook event - override in subclasses

        Returns:
            (success: bool, message: str)
        """
        raise NotImplementedError("Subclasses must implement handle_event")


# ===============================================================================
# WEBHOOK SIGNATURE VERIFICATION UTILITIES
# ===============================================================================


def verify_hmac_signature(payload_body: bytes, signature: str, secret: str, algorithm: str = "sha256") -> bool:
    """
    🔐 Verify HMAC signature for webhook authenticity (hex digest, timing-safe)
    """
    if not signature or not secret:
        return False

    try:
        mac = hmac.new(secret.encode("utf-8"), payload_body, getattr(hashlib, algorithm))
        return hmac.compare_digest(signature.strip().lower(), mac.hexdigest())
    except (AttributeError, TypeError, ValueError) as e:
        logger.error(f"❌ [Webhook] Signature verification error: {e}")
        return False


def verify_shared_secret(provided: str, expected: str) -> bool:
    """🔐 Constant-time comparison for header secret tokens"""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


# ===============================================================================
# PROCESSOR FACTORY
# ===============================================================================


def get_webhook_processor(source: str) -> BaseWebhookProcessor | None:
    """
    🏭 Factory function to get appropriate webhook processor
    """
    # Import here to avoid circular imports
    from .telegram import TelegramWebhookProcessor  # noqa: PLC0415
    from .yalidine import YalidineWebhookProcessor  # noqa: PLC0415

    if source == YalidineWebhookProcessor.source_name:
        return YalidineWebhookProcessor()

    bot_type = source.removeprefix("telegram_")
    if source.startswith("telegram_") and bot_type in TelegramWebhookProcessor.BOT_TYPES:
        return TelegramWebhookProcessor(bot_type)

    return None
