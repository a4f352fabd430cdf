import json
import logging
from typing import Any
from uuid import UUID

from django.db import transaction
from django.http import HttpRequest, HttpResponse, HttpResponseBadRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods
from django_ratelimit.decorators import ratelimit

from apps.common.types import Err, Ok, Result
from apps.common.utils import get_client_ip
from apps.common.validators import log_security_event

from .models import WebhookEvent
from .webhooks.base import BaseWebhookProcessor, get_webhook_processor

logger = logging.getLogger(__name__)

INVALID_SIGNATURE = "❌ Invalid webhook signature"


# ===============================================================================
# WEBHOOK ENDPOINT VIEWS
# ===============================================================================

@method_decorator(csrf_exempt, name='dispatch')
@method_decorator(ratelimit(key='ip', rate='120/m', method='POST', block=True), name='dispatch')
class WebhookView(View):
    """
    🔄 Generic webhook endpoint with deduplication

    - POST /integrations/webhooks/telegram/<bot_type>/ → bot updates
    - POST /integrations/webhooks/yalidine/ → parcel status changes
    """

    source_name: str | None = None  # Override in subclasses
    signature_header = 'HTTP_X_SIGNATURE'

    def post(self, request: HttpRequest, **kwargs: Any) -> Any:
        """📨 Process incoming webhook using result pipeline"""
        source = self.get_source_name(**kwargs)
        if not source:
            return HttpResponseBadRequest("Webhook source not configured")

        result = (self._parse_request(request)
                  .and_then(lambda payload: self._extract_metadata(request, payload))
                  .and_then(lambda context: self._get_processor(source, context))
                  .and_then(self._process_webhook))

        if result.is_ok():
            return result.value
        return self._create_error_response(result.error)

    def get_source_name(self, **kwargs: Any) -> str | None:
        return self.source_name

    def _parse_request(self, request: HttpRequest) -> Result[dict[str, Any], str]:
        """Parse and validate the incoming request payload."""
        if request.content_type != 'application/json':
            return Err("Content-Type must be application/json")

        try:
            payload = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return Err("Invalid JSON payload")
        if not isinstance(payload, dict):
            return Err("Invalid JSON payload")
        return Ok(payload)

    def _extract_metadata(self, request: HttpRequest, payload: dict[str, Any]) -> Result[dict[str, Any], str]:
        """Extract webhook metadata from the request."""
        return Ok({
            'payload': payload,
            'signature': request.META.get(self.signature_header, ''),
            'ip_address': get_client_ip(request),
            'user_agent': request.META.get('HTTP_USER_AGENT', ''),
            'headers': self.safe_headers(request),
            'raw_body': request.body,
        })

    def _get_processor(self, source: str, context: dict[str, Any]) -> Result[dict[str, Any], str]:
        """Get the appropriate webhook processor for this source."""
        processor = get_webhook_processor(source)
        if not processor:
            return Err(f"No processor found for source: {source}")

        context['processor'] = processor
        return Ok(context)

    def _process_webhook(self, context: dict[str, Any]) -> Result[JsonResponse, str]:
        """Process the webhook and create the appropriate response."""
        processor: BaseWebhookProcessor = context['processor']
        success, message, webhook_event = processor.process_webhook(
            payload=context['payload'],
            signature=context['signature'],
            headers=context['headers'],
            ip_address=context['ip_address'],
            user_agent=context['user_agent'],
            raw_body=context['raw_body'],
        )

        webhook_id = str(webhook_event.id) if webhook_event else None

        if success:
            return Ok(JsonResponse({'status': 'success', 'message': message, 'webhook_id': webhook_id}))

        if message == INVALID_SIGNATURE:
            log_security_event(
                'webhook_invalid_signature',
                {'source': processor.source_name, 'user_agent': context['user_agent']},
                context['ip_address'],
            )
            return Ok(JsonResponse({'status': 'error', 'message': message}, status=403))

        logger.error(f"❌ [Webhook] {processor.source_name} webhook failed: {message}")
        return Ok(JsonResponse(
            {'status': 'error', 'message': message, 'webhook_id': webhook_id},
            status=self.failure_status(webhook_event),
        ))

    def failure_status(self, webhook_event: WebhookEvent | None) -> int:
        """HTTP status for a delivery that was received but not applied"""
        return 400

    def _create_error_response(self, error_message: str) -> JsonResponse:
        """Create a standardized error response."""
        return JsonResponse({'status': 'error', 'message': error_message}, status=400)

    @staticmethod
    def safe_headers(request: HttpRequest) -> dict[str, str]:
        """Request headers minus anything that carries a secret"""
        hidden = {'authorization', 'cookie', 'x-telegram-bot-api-secret-token'}
        return {key: value for key, value in request.headers.items() if key.lower() not in hidden}


class TelegramWebhookView(WebhookView):
    """🤖 Telegram bot webhook endpoint, one URL per bot"""

    signature_header = 'HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN'

    def get_source_name(self, **kwargs: Any) -> str | None:
        return f"telegram_{kwargs.get('bot_type', '')}"

    def failure_status(self, webhook_event: WebhookEvent | None) -> int:
        # A recorded update that failed must not be redelivered forever
        return 200 if webhook_event is not None else 400


class YalidineWebhookView(WebhookView):
    """🚚 Yalidine parcel status webhook endpoint"""

    source_name = 'yalidine'
    signature_header = 'HTTP_X_YALIDINE_SIGNATURE'

    def get(self, request: HttpRequest, **kwargs: Any) -> Any:
        """Subscription check: echo the crc_token Yalidine sends when the webhook is registered"""
        crc_token = request.GET.get('crc_token', '')
        subscribe = request.GET.get('subscribe', '')
        if not crc_token:
            return HttpResponseBadRequest("Missing crc_token")
        logger.info(f"🚚 [Yalidine] Webhook subscription check ({subscribe or 'unknown'})")
        return HttpResponse(crc_token, content_type='text/plain')


# ===============================================================================
# WEBHOOK MANAGEMENT API
# ===============================================================================

@require_GET
def webhook_status(request: HttpRequest) -> JsonResponse:
    """📊 Webhook processing status and statistics"""
    if not request.user.is_staff:
        return JsonResponse({'error': 'Unauthorized'}, status=403)

    statuses = [status for status, _label in WebhookEvent.STATUS_CHOICES]
    stats = {'total_webhooks': WebhookEvent.objects.count()}
    stats.update({status: WebhookEvent.objects.filter(status=status).count() for status in statuses})

    by_source = {}
    for source, _label in WebhookEvent.SOURCE_CHOICES:
        source_events = WebhookEvent.objects.filter(source=source)
        total = source_events.count()
        if total > 0:
            by_source[source] = {
                'total': total,
                **{status: source_events.filter(status=status).count() for status in statuses},
            }

    recent_data = [
        {
            'id': str(webhook.id),
            'source': webhook.source,
            'event_type': webhook.event_type,
            'status': webhook.status,
            'received_at': webhook.received_at.isoformat(),
            'processed_at': webhook.processed_at.isoformat() if webhook.processed_at else None,
        }
        for webhook in WebhookEvent.objects.order_by('-received_at')[:10]
    ]

    return JsonResponse({'stats': stats, 'by_source': by_source, 'recent_webhooks': recent_data})


@require_http_methods(["POST"])
def retry_webhook(request: HttpRequest, webhook_id: UUID) -> JsonResponse:
    """🔄 Manually retry a failed webhook using result pipeline"""
    if not request.user.is_staff:
        return JsonResponse({'error': 'Unauthorized'}, status=403)

    result = (_get_webhook_event(webhook_id)
              .and_then(_validate_webhook_status)
              .and_then(_get_webhook_processor)
              .and_then(_process_webhook_retry))

    if result.is_ok():
        return result.value
    return _create_retry_error_response(result.error)


def _get_webhook_event(webhook_id: UUID) -> Result[WebhookEvent, str]:
    """Get the webhook event by ID."""
    webhook_event = WebhookEvent.objects.filter(id=webhook_id).first()
    if webhook_event is None:
        return Err("Webhook not found")
    return Ok(webhook_event)


def _validate_webhook_status(webhook_event: WebhookEvent) -> Result[WebhookEvent, str]:
    """Validate that the webhook can be retried."""
    if webhook_event.status != 'failed':
        return Err(f'Cannot retry webhook with status: {webhook_event.status}')
    return Ok(webhook_event)


def _get_webhook_processor(webhook_event: WebhookEvent) -> Result[tuple[WebhookEvent, BaseWebhookProcessor], str]:
    """Get the processor for the webhook event."""
    processor = get_webhook_processor(webhook_event.source)
    if not processor:
        return Err(f'No processor found for source: {webhook_event.source}')
    return Ok((webhook_event, processor))


def _process_webhook_retry(context: tuple[WebhookEvent, BaseWebhookProcessor]) -> Result[JsonResponse, str]:
    """Process the webhook retry and update status."""
    webhook_event, processor = context

    try:
        with transaction.atomic():
            success, message = processor.handle_event(webhook_event)
    except Exception as e:
        logger.exception(f"💥 [Webhook] Retry of {webhook_event.source}:{webhook_event.event_id} raised")
        webhook_event.mark_failed(f"Processing error: {e!s}")
        return Err(f"Webhook retry failed: {e!s}")

    if success:
        webhook_event.mark_processed()
        logger.info(f"✅ [Webhook] Retried {webhook_event.source}:{webhook_event.event_id}: {message}")
        return Ok(JsonResponse({'status': 'success', 'message': f'Webhook retried successfully: {message}'}))

    webhook_event.mark_failed(message)
    return Ok(JsonResponse({'status': 'error', 'message': f'Webhook retry failed: {message}'}, status=400))


def _create_retry_error_response(error_message: str) -> JsonResponse:
    """Create appropriate error response for webhook retry failures."""
    if error_message == "Webhook not found":
        return JsonResponse({'error': error_message}, status=404)
    return JsonResponse({'error': error_message}, status=400)
