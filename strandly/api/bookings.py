"""Booking endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request

from strandly.api.deps import (
    client_key,
    get_app_config,
    get_booking_service,
    get_locale,
    get_rate_limiter,
)
from strandly.auth import get_current_user, require_user
from strandly.config import Config
from strandly.guardrails import OutputValidator, RateLimiter
from strandly.models import Booking, BookingRequest, User
from strandly.services import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post("", status_code=201)
async def create_booking(
    booking_request: BookingRequest,
    request: Request,
    user: User | None = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    locale: str = Depends(get_locale),
    cfg: Config = Depends(get_app_config),
) -> Booking:
    """Book a service with a stylist.

    Request body:
        {
            "stylistId": "12",
            "serviceId": "3",
            "start": "2026-11-02T10:30:00+00:00",
            "customerName": "Ada Lovelace",
            "customerEmail": "ada@example.com",
            "customerPhone": "+44 20 7946 0000",
            "notes": "First visit"
        }
    """
    limiter.check(f"booking:{client_key(request, cfg.trusted_proxies)}")
    return await bookings.create_booking(booking_request, user=user, locale=locale)


@router.get("")
async def list_bookings(
    stylist: str | None = Query(None, description="Stylist id (staff only)"),
    upcoming: bool = Query(True, description="Hide bookings that have ended"),
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
):
    """List the caller's bookings, or a stylist's bookings for staff.

    Stylists see full details for their own chair only; other stylists'
    bookings come back without customer contact details.
    """
    results = await bookings.list_bookings(
        user, stylist_id=stylist, upcoming_only=upcoming
    )
    if stylist and "admin" not in user.roles and user.stylist != stylist:
        return {"docs": [OutputValidator.redact_booking(b) for b in results]}
    return {"docs": results}


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Booking:
    return await bookings.cancel_booking(booking_id, user)
