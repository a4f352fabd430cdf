"""
Common utilities for CompuCar Platform
Shared helper functions for views and services.
"""

from __future__ import annotations

from typing import Any

from django.http import HttpRequest

# ===============================================================================
# REQUEST HELPERS
# ===============================================================================


def get_client_ip(request: HttpRequest) -> str | None:
    """🌐 Get client IP address (first hop of X-Forwarded-For when present)"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def parse_bool(value: Any) -> bool | None:
    """Interpret query-string booleans ('true', '1', 'false', '0'); None when absent"""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def short_id(value: Any, length: int = 8) -> str:
    """Compact identifier used in bot callback data and log lines"""
    return str(value)[:length]

