"""Shared fixtures: an in-memory fake of the CMS REST API."""

import copy
import itertools
import json
import re
from datetime import datetime

import httpx
import pytest

from strandly.cms import CMSClient
from strandly.config import Config
from strandly.services import cache as cache_module
from strandly.services.cart_manager import CartManager

CMS_URL = "http://cms.test"

_WHERE_RE = re.compile(r"^where\[(\w+)\]\[(\w+)\]$")
_DOC_RE = re.compile(r"^/api/([a-z0-9-]+)(?:/([^/]+))?$")

ALL_WEEK_MORNINGS = [
    {"weekday": day, "start": "09:00", "end": "12:00"} for day in range(7)
]


def seed_data() -> dict[str, list[dict]]:
    return {
        "services": [
            {
                "id": 1,
                "name": "Cut & Style",
                "slug": "cut-and-style",
                "durationMinutes": 60,
                "price": 45,
                "category": "hair",
            },
            {
                "id": 2,
                "name": "Colour",
                "slug": "colour",
                "durationMinutes": 90,
                "price": "120.00",
                "category": "colour",
            },
            {
                "id": 3,
                "name": "Beard Trim",
                "slug": "beard-trim",
                "durationMinutes": 30,
                "price": 20,
            },
        ],
        "stylists": [
            {
                "id": 10,
                "name": "Mara Quinn",
                "slug": "mara-quinn",
                "specialties": ["balayage", "curls"],
                "services": [{"id": 1, "name": "Cut & Style"}, 2],
                "workingHours": ALL_WEEK_MORNINGS,
                "active": True,
                "updatedAt": "2026-02-01T10:00:00Z",
            },
            {
                "id": 11,
                "name": "Old Timer",
                "slug": "old-timer",
                "services": [1],
                "workingHours": ALL_WEEK_MORNINGS,
                "active": False,
            },
            {
                "id": 12,
                "name": "Jo Park",
                "slug": "jo-park",
                "services": [1, 3],
                "workingHours": [{"weekday": 0, "start": "10:00", "end": "11:00"}],
                "active": True,
            },
        ],
        "products": [
            {
                "id": 100,
                "name": "Argan Oil",
                "slug": "argan-oil",
                "price": 18.5,
                "stock": 3,
                "category": "hair-care",
                "active": True,
            },
            {
                "id": 101,
                "name": "Wide Comb",
                "slug": "wide-comb",
                "price": 7.25,
                "stock": 0,
                "category": "tools",
                "active": True,
            },
            {
                "id": 102,
                "name": "Old Shampoo",
                "slug": "old-shampoo",
                "price": 9,
                "stock": 5,
                "category": "hair-care",
                "active": False,
            },
        ],
        "posts": [
            {
                "id": 200,
                "title": "Caring for curls in winter",
                "slug": "winter-curls",
                "tags": ["curls", "care"],
                "status": "published",
                "publishedAt": "2026-01-15T09:00:00Z",
            },
            {
                "id": 201,
                "title": "Spring colour trends",
                "slug": "spring-colour",
                "tags": ["colour"],
                "status": "published",
                "publishedAt": "2026-02-20T09:00:00Z",
            },
            {
                "id": 202,
                "title": "Unfinished draft",
                "slug": "draft-post",
                "tags": ["curls"],
                "status": "draft",
            },
        ],
        "bookings": [],
    }


USERS_BY_TOKEN = {
    "customer-token": {
        "id": 500,
        "email": "ada@example.com",
        "name": "Ada",
        "roles": ["customer"],
    },
    "other-token": {
        "id": 501,
        "email": "grace@example.com",
        "name": "Grace",
        "roles": ["customer"],
    },
    "admin-token": {
        "id": 502,
        "email": "owner@strandly.test",
        "name": "Owner",
        "roles": ["admin"],
    },
    "stylist-token": {
        "id": 503,
        "email": "jo@strandly.test",
        "name": "Jo",
        "roles": ["stylist"],
        "stylist": 12,
    },
}


def _norm(value) -> str:
    if isinstance(value, dict):
        return str(value.get("id"))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _matches(doc: dict, field: str, op: str, value: str) -> bool:
    actual = doc.get(field)
    if op == "equals":
        if isinstance(actual, list):
            return value in [_norm(v) for v in actual]
        return _norm(actual) == value
    if op == "not_equals":
        return _norm(actual) != value
    if op == "in":
        wanted = value.split(",")
        if isinstance(actual, list):
            return any(_norm(v) in wanted for v in actual)
        return _norm(actual) in wanted
    if op == "contains":
        if isinstance(actual, list):
            return value in [_norm(v) for v in actual]
        return actual is not None and value in str(actual)
    if op in ("greater_than", "less_than"):
        if actual is None:
            return False
        left, right = _as_datetime(str(actual)), _as_datetime(value)
        return left > right if op == "greater_than" else left < right
    return True


class FakeCMS:
    """Just enough of the CMS REST API for the tests."""

    def __init__(self) -> None:
        self.collections = seed_data()
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self.unreachable = False
        self._ids = itertools.count(1000)

    def add(self, collection: str, doc: dict) -> dict:
        doc = {"id": str(next(self._ids)), **doc}
        self.collections[collection].append(doc)
        return doc

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.unreachable:
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)
        if self.fail_with:
            return httpx.Response(
                self.fail_with, json={"errors": [{"message": "Upstream exploded"}]}
            )

        if request.url.path == "/api/users/me":
            scheme, _, token = request.headers.get("authorization", "").partition(" ")
            user = USERS_BY_TOKEN.get(token) if scheme == "JWT" else None
            return httpx.Response(200, json={"user": user})

        match = _DOC_RE.match(request.url.path)
        if not match or match.group(1) not in self.collections:
            return self._not_found()

        collection, doc_id = match.groups()
        docs = self.collections[collection]

        if request.method == "GET" and doc_id is None:
            return httpx.Response(200, json=self._find(docs, request.url.params))
        if request.method == "GET":
            doc = self._get(docs, doc_id)
            return httpx.Response(200, json=doc) if doc else self._not_found()
        if request.method == "POST":
            doc = self.add(collection, json.loads(request.content))
            return httpx.Response(201, json={"doc": doc, "message": "Created"})
        if request.method == "PATCH":
            doc = self._get(docs, doc_id)
            if doc is None:
                return self._not_found()
            doc.update(json.loads(request.content))
            return httpx.Response(200, json={"doc": doc, "message": "Updated"})
        return httpx.Response(405, json={"errors": [{"message": "Method not allowed"}]})

    @staticmethod
    def _not_found() -> httpx.Response:
        return httpx.Response(
            404, json={"errors": [{"message": "The requested resource was not found."}]}
        )

    @staticmethod
    def _get(docs: list[dict], doc_id: str) -> dict | None:
        return next((d for d in docs if str(d["id"]) == doc_id), None)

    @staticmethod
    def _find(docs: list[dict], params: httpx.QueryParams) -> dict:
        selected = list(docs)
        for key, value in params.multi_items():
            match = _WHERE_RE.match(key)
            if match:
                field, op = match.groups()
                selected = [d for d in selected if _matches(d, field, op, value)]

        sort = params.get("sort")
        if sort:
            field = sort.lstrip("-")
            selected.sort(
                key=lambda d: str(d.get(field) or ""), reverse=sort.startswith("-")
            )

        limit = int(params.get("limit", 10))
        page = int(params.get("page", 1))
        total_pages = max(1, -(-len(selected) // limit))
        window = selected[(page - 1) * limit : page * limit]
        return {
            "docs": copy.deepcopy(window),
            "totalDocs": len(selected),
            "limit": limit,
            "page": page,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
            "nextPage": page + 1 if page < total_pages else None,
            "prevPage": page - 1 if page > 1 else None,
        }


@pytest.fixture
def fake_cms():
    """A freshly seeded fake CMS."""
    return FakeCMS()


@pytest.fixture
def cms_client(fake_cms):
    """CMS client wired to the fake CMS."""
    return CMSClient(CMS_URL, transport=httpx.MockTransport(fake_cms.handler))


@pytest.fixture
def test_config():
    """Configuration isolated from the developer's environment."""
    return Config(
        _env_file=None,
        cms_url=CMS_URL,
        site_url="https://strandly.test",
        timezone="UTC",
        booking_slot_minutes=30,
        booking_lead_minutes=60,
        booking_horizon_days=30,
        rate_limit_db_path=":memory:",
        booking_hourly_limit=3,
        revalidate_secret="s3cret",
        supported_locales=["en", "es", "fr"],
    )


@pytest.fixture(autouse=True)
def clean_carts():
    """Start each test with no carts in the singleton manager."""
    CartManager._carts.clear()
    yield
    CartManager._carts.clear()


@pytest.fixture(autouse=True)
def clean_response_cache():
    """Give each app a fresh process-wide response cache."""
    cache_module._response_cache = None
    yield
    cache_module._response_cache = None
