"""Output sanitization for data leaving the API."""

import logging
import re
from typing import Any

from strandly.models import Booking

logger = logging.getLogger(__name__)

# Patterns that might indicate sensitive information
SENSITIVE_PATTERNS = [
    (re.compile(r"users API-Key \S+", re.IGNORECASE), "users API-Key ***REDACTED***"),
    (re.compile(r"(JWT|Bearer) [A-Za-z0-9\-_.]+"), r"\1 ***REDACTED***"),
    (re.compile(r"\b[A-Za-z0-9]{32,}\b"), "***REDACTED***"),
]


class OutputValidator:
    """Strips customer and credential data from outbound payloads."""

    @staticmethod
    def sanitize_message(text: str) -> str:
        """Mask API keys and tokens in text shown to clients."""
        sanitized = text
        for pattern, replacement in SENSITIVE_PATTERNS:
            sanitized = pattern.sub(replacement, sanitized)
        if sanitized != text:
            logger.warning("Sensitive token masked in outbound message")
        return sanitized

    @staticmethod
    def redact_booking(booking: Booking) -> dict[str, Any]:
        """Public view of a booking without customer contact details."""
        return {
            "id": booking.id,
            "stylist": booking.stylist,
            "service": booking.service,
            "start": booking.start.isoformat(),
            "end": booking.end.isoformat(),
            "status": booking.status.value,
        }
