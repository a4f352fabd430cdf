"""
Input validation helpers - CompuCar Platform
Free-text sanitization, upload checks and security event logging.
"""

import logging
import re
from typing import Any

from django.conf import settings
from django.utils.translation import gettext_lazy as _

from apps.common.types import ValidationError

logger = logging.getLogger(__name__)

# ===============================================================================
# SECURITY CONSTANTS
# ===============================================================================

# Input size limits (DoS prevention)
MAX_ADMIN_NOTE_LENGTH = 2000
MAX_CUSTOMER_COMMENT_LENGTH = 2000
MAX_FILENAME_LENGTH = 255
DEFAULT_MAX_UPLOAD_SIZE = 50 * 1024 * 1024  # 50MB ECU dumps

# Suspicious input patterns (injection attempts)
SUSPICIOUS_PATTERNS = [
    r'<script[^>]*>.*?</script>',  # XSS
    r'javascript:',  # XSS
    r'on\w+\s*=',  # Event handlers
]

# Characters that break file paths or headers
UNSAFE_FILENAME_CHARS = re.compile(r'[\\/\x00-\x1f<>:"|?*]')


# ===============================================================================
# INPUT SANITIZATION & VALIDATION
# ===============================================================================

class SecureInputValidator:
    """Input validation with security focus"""

    @staticmethod
    def validate_free_text(value: str | None, field: str, max_length: int) -> str:
        """Strip and bound a free-text field (notes, comments)"""
        text = (value or '').strip()

        if len(text) > max_length:
            raise ValidationError(field, str(_("Must be at most %(max)d characters") % {'max': max_length}))

        for pattern in SUSPICIOUS_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE | re.DOTALL):
                log_security_event('suspicious_input', {'field': field})
                raise ValidationError(field, str(_("Contains disallowed content")))

        return text

    @staticmethod
    def validate_filename(filename: str | None) -> str:
        """Return a display-safe file name or raise"""
        name = (filename or '').strip()
        if not name:
            raise ValidationError('file', str(_("File name is required")))

        name = UNSAFE_FILENAME_CHARS.sub('_', name)
        if len(name) > MAX_FILENAME_LENGTH:
            stem, dot, ext = name.rpartition('.')
            keep = MAX_FILENAME_LENGTH - len(ext) - 1
            name = f"{stem[:keep]}.{ext}" if dot else name[:MAX_FILENAME_LENGTH]
        return name

    @staticmethod
    def validate_upload_size(size: int) -> int:
        """Reject empty and oversized uploads"""
        max_size = getattr(settings, 'TUNING_MAX_UPLOAD_SIZE', DEFAULT_MAX_UPLOAD_SIZE)
        if size <= 0:
            raise ValidationError('file', str(_("File is empty")))
        if size > max_size:
            raise ValidationError('file', str(_("File exceeds the maximum size of %(mb)d MB") % {'mb': max_size // (1024 * 1024)}))
        return size


# ===============================================================================
# AUDIT LOGGING INTEGRATION
# ===============================================================================

def log_security_event(event_type: str, details: dict[str, Any], request_ip: str | None = None) -> None:
    """
    Log security events for monitoring and forensics
    """
    logger.warning(f"🚨 [Security] {event_type}: {details} from IP: {request_ip}")
