"""Input validation for customer-submitted data."""

import logging
import re

from strandly.models import BookingRequest

logger = logging.getLogger(__name__)

# Patterns that indicate potential abuse or injected markup
BLOCKED_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onclick\s*=",
    r"onerror\s*=",
    r"onload\s*=",
    r"eval\(",
]

MAX_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 500

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_SEPARATORS_RE = re.compile(r"[\s\-().]")


class InputValidator:
    """Validates free-form customer input before it reaches the CMS.

    Each check returns ``(is_valid, error_message)``.
    """

    @staticmethod
    def validate_text(
        text: str | None, max_length: int = 1000, allow_empty: bool = False
    ) -> tuple[bool, str | None]:
        """Validate a free-text field for length and suspicious content."""
        if not text or not text.strip():
            if allow_empty:
                return True, None
            return False, "Input cannot be empty."

        if len(text) > max_length:
            logger.warning(f"Rejected input: too long ({len(text)} > {max_length})")
            return False, f"Input too long (max {max_length} characters)."

        lowered = text.lower()
        for pattern in BLOCKED_PATTERNS:
            if re.search(pattern, lowered):
                logger.warning(f"Rejected input: suspicious pattern ({pattern})")
                return False, "Input contains suspicious content."

        return True, None

    @staticmethod
    def validate_phone_number(phone_number: str | None) -> tuple[bool, str | None]:
        """Accept 7-15 digits with an optional leading '+' and common separators."""
        if not phone_number:
            return False, "Phone number cannot be empty."

        normalized = _PHONE_SEPARATORS_RE.sub("", phone_number)
        digits = normalized[1:] if normalized.startswith("+") else normalized

        if not digits.isdigit():
            return False, "Phone number may only contain digits and separators."
        if not 7 <= len(digits) <= 15:
            return False, "Phone number must have between 7 and 15 digits."
        return True, None

    @staticmethod
    def validate_email(email: str | None) -> tuple[bool, str | None]:
        if not email or not _EMAIL_RE.match(email.strip()):
            return False, "A valid email address is required."
        return True, None

    @classmethod
    def validate_booking_request(
        cls, request: BookingRequest
    ) -> tuple[bool, str | None]:
        """Run every field check on a booking request."""
        checks = [
            cls.validate_text(request.customer_name, max_length=MAX_NAME_LENGTH),
            cls.validate_email(request.customer_email),
            cls.validate_text(
                request.notes, max_length=MAX_NOTES_LENGTH, allow_empty=True
            ),
        ]
        if request.customer_phone:
            checks.append(cls.validate_phone_number(request.customer_phone))

        for is_valid, error in checks:
            if not is_valid:
                return False, error
        return True, None
