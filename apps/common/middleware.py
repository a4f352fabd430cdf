"""
Common middleware for CompuCar Platform
Request tracing and timing for API logs.
"""

import logging
import time
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD_SECONDS = 2.0

# ===============================================================================
# REQUEST ID MIDDLEWARE
# ===============================================================================

class RequestIDMiddleware:
    """Add unique request ID for tracing and audit logs"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Honour an upstream ID so proxy and app logs line up
        request_id = request.META.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        request.META['REQUEST_ID'] = request_id

        started = time.monotonic()
        response = self.get_response(request)
        elapsed = time.monotonic() - started

        if elapsed > SLOW_REQUEST_THRESHOLD_SECONDS:
            logger.warning(f"🐢 [Request] {request.method} {request.path} took {elapsed:.2f}s (id={request_id})")

        response['X-Request-ID'] = request_id
        return response
