"""
🚚 Yalidine delivery status webhooks

Yalidine posts parcel status changes as a batch:
    {"type": "parcel_status_updated",
     "events": [{"event_id": "...", "occurred_at": "...",
                 "data": {"tracking": "yal-ABC123", "status": "Livré"}}]}
signed with HMAC-SHA256 of the raw body in the X-Yalidine-Signature header.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from django.conf import settings

from apps.integrations.models import WebhookEvent
from apps.orders.services import OrderQueryService, OrderService

from .base import BaseWebhookProcessor, WebhookRequestMetadata, verify_hmac_signature

logger = logging.getLogger(__name__)


def _events(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Batch form or a single bare event"""
    events = payload.get("events")
    if isinstance(events, list):
        return [event for event in events if isinstance(event, dict)]
    return [payload]


def _event_data(event: dict[str, Any]) -> dict[str, Any]:
    data = event.get("data")
    return data if isinstance(data, dict) else event


class YalidineWebhookProcessor(BaseWebhookProcessor):
    """🚚 Parcel status changes → order status"""

    source_name = "yalidine"

    def extract_event_id(self, payload: dict[str, Any]) -> str | None:
        explicit = payload.get("event_id") or payload.get("id")
        if explicit:
            return str(explicit)

        events = _events(payload)
        ids = [str(event["event_id"]) for event in events if event.get("event_id")]
        if ids:
            return ids[0] if len(ids) == 1 else hashlib.sha256("|".join(ids).encode()).hexdigest()

        # No ids at all: the same tracking/status/time triple is the same delivery
        fingerprint = [
            (_event_data(event).get("tracking"), _event_data(event).get("status"), event.get("occurred_at"))
            for event in events
        ]
        if not any(tracking for tracking, _status, _at in fingerprint):
            return None
        return hashlib.sha256(json.dumps(fingerprint, sort_keys=True, default=str).encode()).hexdigest()

    def extract_event_type(self, payload: dict[str, Any]) -> str | None:
        return payload.get("type") or "parcel_status_updated"

    def verify_signature(self, payload: dict[str, Any], metadata: WebhookRequestMetadata) -> bool:
        secret = getattr(settings, "YALIDINE_WEBHOOK_SECRET", "")
        return verify_hmac_signature(metadata.raw_body, metadata.signature, secret)

    def handle_event(self, webhook_event: WebhookEvent) -> tuple[bool, str]:
        if webhook_event.event_type != "parcel_status_updated":
            return True, f"Ignored {webhook_event.event_type}"

        applied, unknown = [], []
        for event in _events(webhook_event.payload):
            data = _event_data(event)
            tracking = str(data.get("tracking") or data.get("tracking_code") or "")
            carrier_status = str(data.get("status") or data.get("parcel_status") or "").strip()
            if not tracking or not carrier_status:
                continue

            order = OrderQueryService.get_by_tracking(tracking)
            if order is None:
                unknown.append(tracking)
                continue

            result = OrderService.apply_carrier_status(order, carrier_status)
            if result.is_err():
                return False, f"{tracking}: {result.error}"
            applied.append(f"{order.order_number}={result.unwrap().status}")

        if unknown:
            logger.warning(f"⚠️ [Yalidine] Status for unknown parcel(s): {', '.join(unknown)}")
        if not applied:
            return True, "No matching orders"
        return True, f"Updated {', '.join(applied)}"
