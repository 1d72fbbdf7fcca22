"""Request guardrails: validation, rate limiting and output sanitization."""

from strandly.guardrails.input_validator import InputValidator
from strandly.guardrails.output_validator import OutputValidator
from strandly.guardrails.rate_limiter import RateLimiter

__all__ = ["InputValidator", "OutputValidator", "RateLimiter"]
