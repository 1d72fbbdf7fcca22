"""Publishing hooks: cache revalidation and the sitemap."""

import logging
import secrets
from datetime import datetime
from xml.sax.saxutils import escape

from fastapi import APIRouter, Body, Depends, Header, Response
from pydantic import BaseModel

from strandly.api.deps import get_app_config, get_content_service
from strandly.config import Config
from strandly.errors import AuthenticationError, NotFoundError
from strandly.services import ContentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Publishing"])


class RevalidateRequest(BaseModel):
    collection: str | None = None


@router.post("/api/revalidate")
async def revalidate(
    payload: RevalidateRequest | None = Body(None),
    x_revalidate_secret: str | None = Header(None),
    cfg: Config = Depends(get_app_config),
    content: ContentService = Depends(get_content_service),
):
    """CMS webhook: drop cached reads after content is published.

    Request body:
        {"collection": "products"}   # omit to revalidate everything
    """
    if not cfg.revalidate_secret:
        msg = "Not found"
        raise NotFoundError(msg)

    if not x_revalidate_secret or not secrets.compare_digest(
        x_revalidate_secret.encode(), cfg.revalidate_secret.encode()
    ):
        logger.warning("Revalidation attempted with an invalid secret")
        msg = "Invalid revalidation secret"
        raise AuthenticationError(msg)

    collection = payload.collection if payload else None
    removed = content.revalidate(collection)
    return {"success": True, "revalidated": collection or "all", "removed": removed}


def render_sitemap(
    entries: list[tuple[str, datetime | None]], site_url: str, locales: list[str]
) -> str:
    """Render a sitemap with one URL per page and locale."""
    base = site_url.rstrip("/")
    urls = []
    for path, updated_at in entries:
        suffix = "" if path == "/" else path
        for locale in locales:
            lastmod = (
                f"<lastmod>{updated_at.date().isoformat()}</lastmod>"
                if updated_at
                else ""
            )
            urls.append(
                f"  <url><loc>{escape(f'{base}/{locale}{suffix}')}</loc>{lastmod}</url>"
            )

    body = "\n".join(urls)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
{body}
</urlset>"""


@router.get("/sitemap.xml")
async def sitemap(
    cfg: Config = Depends(get_app_config),
    content: ContentService = Depends(get_content_service),
):
    entries = await content.sitemap_entries()
    xml = render_sitemap(entries, cfg.site_url, cfg.supported_locales)
    return Response(content=xml, media_type="application/xml")
