"""HTTP routers."""

from strandly.api.bookings import router as bookings_router
from strandly.api.cart import router as cart_router
from strandly.api.content import router as content_router
from strandly.api.publishing import router as publishing_router

__all__ = ["bookings_router", "cart_router", "content_router", "publishing_router"]
