"""Read access to CMS content with response caching."""

import logging
from datetime import datetime
from typing import Any

from strandly.cms import CMSClient
from strandly.errors import InvalidRequestError, NotFoundError
from strandly.models import Page, Post, PostStatus, Product, Service, Stylist
from strandly.services.cache import ResponseCache

logger = logging.getLogger(__name__)

# Collections readable through the raw proxy, with the filters always applied
PUBLIC_COLLECTIONS: dict[str, dict[str, str]] = {
    "products": {"where[active][equals]": "true"},
    "stylists": {"where[active][equals]": "true"},
    "services": {},
    "posts": {"where[status][equals]": PostStatus.PUBLISHED.value},
}

STATIC_PAGES = ["/", "/services", "/stylists", "/shop", "/blog"]

SITEMAP_LIMIT = 1000

# Allowed ranges for paging and relationship depth on proxied queries;
# the CMS treats limit=0 as "no limit"
PROXY_LIMITS: dict[str, tuple[int, int]] = {"limit": (1, 100), "depth": (0, 2)}

# Set by the server, or able to switch off paging altogether
UNFORWARDED_PARAMS = ("locale", "pagination")


def _clamp(key: str, value: str) -> str:
    """Cap numeric query parameters that make CMS queries expensive."""
    bounds = PROXY_LIMITS.get(key)
    if bounds is None:
        return value
    try:
        number = int(value)
    except ValueError:
        msg = f"Query parameter '{key}' must be an integer"
        raise InvalidRequestError(msg) from None
    low, high = bounds
    return str(max(low, min(number, high)))


class ContentService:
    """Service for reading salon, shop and blog content from the CMS.

    Every read goes through the response cache, keyed by collection, query
    and locale.
    """

    def __init__(self, cms: CMSClient, cache: ResponseCache) -> None:
        """Initialize the content service.

        Args:
            cms: CMS client
            cache: Response cache shared by all reads
        """
        self.cms = cms
        self.cache = cache

    async def _find(
        self, collection: str, locale: str | None = None, **query: Any
    ) -> dict[str, Any]:
        key = self.cache.make_key(collection, {"locale": locale, **query})
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.cms.find(collection, locale=locale, **query)
        self.cache.set(collection, key, result)
        return result

    async def _find_by_id(
        self, collection: str, doc_id: str, locale: str | None = None
    ) -> dict[str, Any]:
        key = self.cache.make_key(collection, {"id": doc_id, "locale": locale})
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.cms.find_by_id(collection, doc_id, depth=0, locale=locale)
        self.cache.set(collection, key, result)
        return result

    async def _find_by_slug(
        self, collection: str, slug: str, locale: str | None, **filters: Any
    ) -> dict[str, Any]:
        where = {"slug": {"equals": slug}}
        for field, value in filters.items():
            where[field] = {"equals": value}
        result = await self._find(
            collection, locale=locale, where=where, limit=1, depth=0
        )
        docs = result.get("docs") or []
        if not docs:
            msg = f"No {collection} entry with slug '{slug}'"
            raise NotFoundError(msg)
        return docs[0]

    async def list_services(self, locale: str | None = None) -> list[Service]:
        result = await self._find("services", locale=locale, limit=100, sort="name")
        return [Service.model_validate(doc) for doc in result.get("docs", [])]

    async def get_service_by_id(
        self, service_id: str, locale: str | None = None
    ) -> Service:
        doc = await self._find_by_id("services", service_id, locale=locale)
        return Service.model_validate(doc)

    async def list_stylists(
        self, locale: str | None = None, service_id: str | None = None
    ) -> list[Stylist]:
        """List active stylists, optionally only those offering a service."""
        where: dict[str, Any] = {"active": {"equals": True}}
        if service_id:
            where["services"] = {"in": [service_id]}
        result = await self._find(
            "stylists", locale=locale, where=where, limit=100, sort="name", depth=0
        )
        return [Stylist.model_validate(doc) for doc in result.get("docs", [])]

    async def get_stylist(self, slug: str, locale: str | None = None) -> Stylist:
        doc = await self._find_by_slug("stylists", slug, locale, active=True)
        return Stylist.model_validate(doc)

    async def get_stylist_by_id(
        self, stylist_id: str, locale: str | None = None
    ) -> Stylist:
        doc = await self._find_by_id("stylists", stylist_id, locale=locale)
        return Stylist.model_validate(doc)

    async def list_products(
        self,
        locale: str | None = None,
        category: str | None = None,
        page: int = 1,
        limit: int = 12,
        sort: str = "name",
    ) -> Page[Product]:
        where: dict[str, Any] = {"active": {"equals": True}}
        if category:
            where["category"] = {"equals": category}
        result = await self._find(
            "products", locale=locale, where=where, page=page, limit=limit, sort=sort
        )
        return Page[Product].model_validate(result)

    async def get_product(self, slug: str, locale: str | None = None) -> Product:
        doc = await self._find_by_slug("products", slug, locale, active=True)
        return Product.model_validate(doc)

    async def get_products_by_ids(
        self, product_ids: list[str], locale: str | None = None
    ) -> dict[str, Product]:
        """Fetch several products at once, keyed by id.

        Missing ids are simply absent from the result.
        """
        if not product_ids:
            return {}
        result = await self._find(
            "products",
            locale=locale,
            where={"id": {"in": sorted(product_ids)}},
            limit=len(product_ids),
            depth=0,
        )
        products = [Product.model_validate(doc) for doc in result.get("docs", [])]
        return {p.id: p for p in products}

    async def list_posts(
        self,
        locale: str | None = None,
        tag: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Post]:
        where: dict[str, Any] = {"status": {"equals": PostStatus.PUBLISHED}}
        if tag:
            where["tags"] = {"contains": tag}
        result = await self._find(
            "posts",
            locale=locale,
            where=where,
            page=page,
            limit=limit,
            sort="-publishedAt",
        )
        return Page[Post].model_validate(result)

    async def get_post(self, slug: str, locale: str | None = None) -> Post:
        doc = await self._find_by_slug(
            "posts", slug, locale, status=PostStatus.PUBLISHED
        )
        return Post.model_validate(doc)

    async def proxy(
        self,
        collection: str,
        params: list[tuple[str, str]],
        locale: str | None = None,
    ) -> Any:
        """Pass a query straight through to the CMS and return its JSON as-is.

        Only public collections are reachable. Their visibility filters
        replace any client-supplied filter on the same field.
        Page size and relationship depth are clamped to PROXY_LIMITS.
        """
        enforced = PUBLIC_COLLECTIONS.get(collection)
        if enforced is None:
            msg = f"Unknown collection '{collection}'"
            raise NotFoundError(msg)

        guarded_prefixes = tuple(key.rsplit("[", 1)[0] for key in enforced)
        forwarded = [
            (k, _clamp(k, v))
            for k, v in params
            if k not in UNFORWARDED_PARAMS
            and not (guarded_prefixes and k.startswith(guarded_prefixes))
        ]
        forwarded.extend(enforced.items())
        if locale:
            forwarded.append(("locale", locale))

        key = self.cache.make_key(f"raw:{collection}", {"q": sorted(forwarded)})
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.cms.query(f"/api/{collection}", params=forwarded)
        self.cache.set(collection, key, result)
        return result

    def revalidate(self, collection: str | None = None) -> int:
        """Drop cached reads for one collection, or for everything."""
        if collection is None:
            removed = self.cache.clear()
            logger.info(f"Revalidated all content ({removed} entries)")
            return removed
        return self.cache.invalidate(collection)

    async def sitemap_entries(self) -> list[tuple[str, datetime | None]]:
        """List public page paths with their last modification time."""
        entries: list[tuple[str, datetime | None]] = [
            (path, None) for path in STATIC_PAGES
        ]

        stylists = await self.list_stylists()
        entries.extend((f"/stylists/{s.slug}", s.updated_at) for s in stylists)

        products = await self.list_products(limit=SITEMAP_LIMIT)
        entries.extend((f"/shop/{p.slug}", p.updated_at) for p in products.docs)

        posts = await self.list_posts(limit=SITEMAP_LIMIT)
        entries.extend(
            (f"/blog/{p.slug}", p.updated_at or p.published_at) for p in posts.docs
        )
        return entries
