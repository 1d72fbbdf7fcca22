"""FastAPI dependencies resolving shared services from app state."""

from collections.abc import Collection
from typing import Any

from fastapi import Request

from strandly.config import Config
from strandly.errors import ServiceUnavailableError
from strandly.guardrails import RateLimiter
from strandly.services import BookingService, CartManager, CartService, ContentService


def _state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        msg = "Service not initialized yet"
        raise ServiceUnavailableError(msg)
    return value


def get_app_config(request: Request) -> Config:
    return _state(request, "config")


def get_locale(request: Request) -> str:
    """Locale resolved by the LocaleMiddleware, or the configured default."""
    locale = getattr(request.state, "locale", None)
    return locale or get_app_config(request).default_locale


def get_content_service(request: Request) -> ContentService:
    return _state(request, "content")


def get_booking_service(request: Request) -> BookingService:
    return _state(request, "bookings")


def get_carts(request: Request) -> CartManager:
    return _state(request, "carts")


def get_cart_service(request: Request) -> CartService:
    return _state(request, "cart_service")


def get_rate_limiter(request: Request) -> RateLimiter:
    return _state(request, "rate_limiter")


def client_key(request: Request, trusted_proxies: Collection[str] = ()) -> str:
    """Identify the caller for rate limiting.

    ``X-Forwarded-For`` is only read when the direct peer is a trusted proxy.
    The header is then walked from the right, skipping further trusted hops,
    so a client cannot choose its own key by prepending addresses.

    Args:
        request: Incoming request
        trusted_proxies: Addresses of proxies allowed to set the header

    Returns:
        Client address used as the rate limit key
    """
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if peer not in trusted_proxies or not forwarded:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return peer
