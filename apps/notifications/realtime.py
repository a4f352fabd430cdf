"""
Live updates for connected browsers (Server-Sent Events).

Each open stream holds a Subscription with its own bounded queue; the registry
maps user ids to their subscriptions. Delivery is best-effort: nothing here
raises into the caller, and users without an open stream simply miss the push
(the inbox row is the durable copy).
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections.abc import Iterator
from typing import Any

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

logger = logging.getLogger(__name__)

SUBSCRIPTION_QUEUE_SIZE = 100
DEFAULT_KEEPALIVE_SECONDS = 30


class Subscription:
    """One open stream for one user"""

    def __init__(self, user_id: int, maxsize: int = SUBSCRIPTION_QUEUE_SIZE) -> None:
        self.user_id = user_id
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=maxsize)

    def offer(self, payload: dict[str, Any]) -> bool:
        try:
            self._queue.put_nowait(payload)
        except queue.Full:
            logger.warning(f"⚠️ [Realtime] Queue full for user {self.user_id}; update dropped")
            return False
        return True

    def get(self, timeout: float) -> dict[str, Any] | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class ConnectionRegistry:
    """Thread-safe user id -> open subscriptions"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[int, list[Subscription]] = {}

    def subscribe(self, user_id: int) -> Subscription:
        subscription = Subscription(user_id)
        with self._lock:
            self._subscriptions.setdefault(user_id, []).append(subscription)
        logger.info(f"📡 [Realtime] Stream opened for user {user_id}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.user_id, [])
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.user_id, None)
        logger.info(f"📡 [Realtime] Stream closed for user {subscription.user_id}")

    def send_update_to_user(self, user_id: int, payload: dict[str, Any]) -> bool:
        """True when at least one open stream accepted the update"""
        with self._lock:
            subscriptions = list(self._subscriptions.get(user_id, []))
        if not subscriptions:
            return False

        message = {**payload, 'timestamp': timezone.now().isoformat()}
        delivered = [subscription.offer(message) for subscription in subscriptions]
        if any(delivered):
            logger.debug(f"📡 [Realtime] Sent {payload.get('type')} to user {user_id}")
        return any(delivered)

    def is_user_connected(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._subscriptions.get(user_id))

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()


registry = ConnectionRegistry()


def send_update_to_user(user_id: int, payload: dict[str, Any]) -> bool:
    try:
        return registry.send_update_to_user(user_id, payload)
    except Exception as e:
        logger.exception(f"🔥 [Realtime] Live update to user {user_id} failed: {e}")
        return False


# ===============================================================================
# SSE STREAM
# ===============================================================================

def format_sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, cls=DjangoJSONEncoder)}\n\n"


def event_stream(user_id: int, keepalive_seconds: float | None = None) -> Iterator[str]:
    """
    Connection event first, then queued updates; a comment line keeps idle
    proxies from closing the stream.

    The subscription is opened on the first iteration and released when the
    generator is closed, so a response dropped before streaming starts never
    registers at all.
    """
    if keepalive_seconds is None:
        keepalive_seconds = getattr(settings, 'REALTIME_KEEPALIVE_SECONDS', DEFAULT_KEEPALIVE_SECONDS)

    subscription = registry.subscribe(user_id)
    try:
        yield format_sse(
            {
                'type': 'connection',
                'message': 'Connected to real-time updates',
                'timestamp': timezone.now().isoformat(),
            }
        )
        while True:
            payload = subscription.get(timeout=keepalive_seconds)
            yield format_sse(payload) if payload is not None else ": keep-alive\n\n"
    finally:
        registry.unsubscribe(subscription)
