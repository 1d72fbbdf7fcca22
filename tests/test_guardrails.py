"""Tests for guardrail modules."""

from datetime import datetime, timedelta, timezone

import pytest

from strandly.errors import RateLimitExceededError
from strandly.guardrails import InputValidator, OutputValidator, RateLimiter
from strandly.models import Booking, BookingRequest


def _request(**overrides) -> BookingRequest:
    data = {
        "stylist_id": "10",
        "service_id": "1",
        "start": datetime(2026, 3, 2, 9, tzinfo=timezone.utc),
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
    }
    data.update(overrides)
    return BookingRequest(**data)


class TestInputValidator:
    """Tests for the InputValidator."""

    def test_validate_empty_input(self):
        is_valid, error = InputValidator.validate_text("")
        assert is_valid is False
        assert "empty" in error.lower()

    def test_empty_allowed_for_optional_fields(self):
        assert InputValidator.validate_text(None, allow_empty=True) == (True, None)

    def test_validate_too_long_input(self):
        is_valid, error = InputValidator.validate_text("x" * 2000)
        assert is_valid is False
        assert "too long" in error.lower()

    def test_validate_suspicious_patterns(self):
        suspicious_inputs = [
            "<script>alert('xss')</script>",
            "javascript:void(0)",
            "<img onerror='malicious()'>",
        ]

        for user_input in suspicious_inputs:
            is_valid, error = InputValidator.validate_text(user_input)
            assert is_valid is False
            assert "suspicious" in error.lower()

    def test_validate_normal_input(self):
        is_valid, error = InputValidator.validate_text("Please use the quiet chair")
        assert is_valid is True
        assert error is None

    def test_validate_phone_number_valid(self):
        valid_numbers = [
            "+1234567890",
            "+441234567890",
            "1234567890",
            "(123) 456-7890",
            "123-456-7890",
            "+44 20 7946 0000",
        ]

        for number in valid_numbers:
            is_valid, error = InputValidator.validate_phone_number(number)
            assert is_valid is True, f"Failed for {number}: {error}"

    def test_validate_phone_number_invalid(self):
        invalid_numbers = [
            "123",  # Too short
            "+123abc456",  # Contains letters
            "",  # Empty
            "1" * 16,  # Too long
        ]

        for number in invalid_numbers:
            is_valid, _error = InputValidator.validate_phone_number(number)
            assert is_valid is False, f"Should have failed for {number}"

    def test_validate_email(self):
        assert InputValidator.validate_email("ada@example.com")[0] is True
        for email in ["", "ada", "ada@", "a@b@c.com", "ada @example.com"]:
            assert InputValidator.validate_email(email)[0] is False, email

    def test_validate_booking_request(self):
        assert InputValidator.validate_booking_request(_request()) == (True, None)

    def test_booking_request_bad_email(self):
        is_valid, error = InputValidator.validate_booking_request(
            _request(customer_email="not-an-email")
        )
        assert is_valid is False
        assert "email" in error.lower()

    def test_booking_request_bad_phone(self):
        is_valid, _error = InputValidator.validate_booking_request(
            _request(customer_phone="call me")
        )
        assert is_valid is False

    def test_booking_request_script_in_notes(self):
        is_valid, error = InputValidator.validate_booking_request(
            _request(notes="<script>steal()</script>")
        )
        assert is_valid is False
        assert "suspicious" in error.lower()


class TestOutputValidator:
    """Tests for the OutputValidator."""

    def test_sanitize_safe_message(self):
        text = "That time has just been booked."
        assert OutputValidator.sanitize_message(text) == text

    def test_sanitize_api_key(self):
        text = "Rejected header: users API-Key abcdef123456"
        sanitized = OutputValidator.sanitize_message(text)
        assert "abcdef123456" not in sanitized
        assert "***REDACTED***" in sanitized

    def test_sanitize_bearer_token(self):
        sanitized = OutputValidator.sanitize_message("Bad token JWT eyJhbGci.payload.sig")
        assert "eyJhbGci" not in sanitized

    def test_sanitize_long_token(self):
        sanitized = OutputValidator.sanitize_message("Token: " + "A1" * 20)
        assert sanitized == "Token: ***REDACTED***"

    def test_redact_booking(self):
        booking = Booking.model_validate(
            {
                "id": "b1",
                "stylist": "10",
                "service": "1",
                "start": "2026-03-02T10:00:00Z",
                "end": "2026-03-02T11:00:00Z",
                "customerName": "Ada",
                "customerEmail": "ada@example.com",
                "customerPhone": "+441234567890",
            }
        )

        public = OutputValidator.redact_booking(booking)

        assert public["id"] == "b1"
        assert public["status"] == "pending"
        assert "customerEmail" not in public
        assert "ada@example.com" not in str(public)


class TestRateLimiter:
    """Tests for the sqlite-backed RateLimiter."""

    @pytest.fixture
    def clock(self):
        class Clock:
            now = datetime(2026, 3, 2, 12, 0)

            def __call__(self):
                return self.now

        return Clock()

    @pytest.fixture
    def limiter(self, clock):
        limiter = RateLimiter(":memory:", hourly_limit=2, daily_limit=3, clock=clock)
        yield limiter
        limiter.close()

    def test_allows_under_limit(self, limiter):
        limiter.check("client-a")
        limiter.check("client-a")
        assert limiter.count("client-a", hours=1) == 2

    def test_hourly_limit(self, limiter):
        limiter.check("client-a")
        limiter.check("client-a")

        with pytest.raises(RateLimitExceededError, match="last hour"):
            limiter.check("client-a")

    def test_keys_are_independent(self, limiter):
        limiter.check("client-a")
        limiter.check("client-a")
        limiter.check("client-b")

        assert limiter.count("client-b", hours=1) == 1

    def test_daily_limit(self, limiter, clock):
        limiter.check("client-a")
        limiter.check("client-a")
        clock.now += timedelta(hours=2)
        limiter.check("client-a")
        clock.now += timedelta(hours=2)

        with pytest.raises(RateLimitExceededError, match="today"):
            limiter.check("client-a")

    def test_cleanup_old_records(self, limiter, clock):
        limiter.record("client-a")
        clock.now += timedelta(hours=25)

        assert limiter.cleanup_old_records() == 1
        assert limiter.count("client-a", hours=48) == 0
