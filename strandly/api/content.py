"""Content endpoints: services, stylists, products and blog posts."""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from strandly.api.deps import get_booking_service, get_content_service, get_locale
from strandly.models import Page, Post, Product, Stylist
from strandly.services import BookingService, ContentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Content"])


@router.get("/content/{collection}")
async def proxy_collection(
    collection: str,
    request: Request,
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Any:
    """Forward a query to a public CMS collection and return the CMS JSON as-is.

    Query parameters use the CMS bracket syntax, e.g.
    ``/api/content/products?where[category][equals]=hair-care&limit=4``.
    """
    params = list(request.query_params.multi_items())
    return await content.proxy(collection, params, locale=locale)


@router.get("/services")
async def list_services(
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
):
    return {"docs": await content.list_services(locale)}


@router.get("/stylists")
async def list_stylists(
    service: str | None = Query(None, description="Only stylists offering this service"),
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
):
    return {"docs": await content.list_stylists(locale, service_id=service)}


@router.get("/stylists/{slug}")
async def get_stylist(
    slug: str,
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Stylist:
    return await content.get_stylist(slug, locale)


@router.get("/stylists/{slug}/availability")
async def stylist_availability(
    slug: str,
    service: str = Query(..., description="Service id"),
    day: date = Query(..., alias="date", description="Day to check (YYYY-MM-DD)"),
    content: ContentService = Depends(get_content_service),
    bookings: BookingService = Depends(get_booking_service),
    locale: str = Depends(get_locale),
):
    """Open start times for a service with this stylist on one day."""
    stylist = await content.get_stylist(slug, locale)
    slots = await bookings.available_slots(stylist.id, service, day)
    return {
        "stylist": stylist.id,
        "service": service,
        "date": day.isoformat(),
        "slots": slots,
    }


@router.get("/products")
async def list_products(
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort: str = Query("name", pattern=r"^-?(name|price|createdAt)$"),
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Page[Product]:
    return await content.list_products(
        locale, category=category, page=page, limit=limit, sort=sort
    )


@router.get("/products/{slug}")
async def get_product(
    slug: str,
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Product:
    return await content.get_product(slug, locale)


@router.get("/posts")
async def list_posts(
    tag: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Page[Post]:
    return await content.list_posts(locale, tag=tag, page=page, limit=limit)


@router.get("/posts/{slug}")
async def get_post(
    slug: str,
    content: ContentService = Depends(get_content_service),
    locale: str = Depends(get_locale),
) -> Post:
    return await content.get_post(slug, locale)
