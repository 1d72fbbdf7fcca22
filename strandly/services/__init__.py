"""Services backing the Strandly API."""

from strandly.services.booking_service import BookingService
from strandly.services.cache import ResponseCache, get_response_cache
from strandly.services.cart_manager import CartManager, get_cart_manager
from strandly.services.cart_service import CartService
from strandly.services.content_service import ContentService

__all__ = [
    "BookingService",
    "CartManager",
    "CartService",
    "ContentService",
    "ResponseCache",
    "get_cart_manager",
    "get_response_cache",
]
