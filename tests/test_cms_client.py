"""Tests for the CMS client."""

import httpx
import pytest

from strandly.cms import CMSClient
from strandly.errors import (
    CMSError,
    CMSUnavailableError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)

CMS_URL = "http://cms.test"


def _client(handler) -> CMSClient:
    return CMSClient(CMS_URL, transport=httpx.MockTransport(handler))


class TestCMSClientReads:
    """Tests for query methods."""

    @pytest.mark.asyncio
    async def test_find_encodes_query(self, fake_cms, cms_client):
        result = await cms_client.find(
            "stylists",
            where={"active": {"equals": True}},
            limit=5,
            sort="name",
            locale="fr",
        )

        request = fake_cms.requests[-1]
        assert request.url.path == "/api/stylists"
        assert request.url.params["where[active][equals]"] == "true"
        assert request.url.params["limit"] == "5"
        assert request.url.params["locale"] == "fr"
        assert [d["slug"] for d in result["docs"]] == ["jo-park", "mara-quinn"]

    @pytest.mark.asyncio
    async def test_find_by_id(self, cms_client):
        doc = await cms_client.find_by_id("products", 100)
        assert doc["slug"] == "argan-oil"

    @pytest.mark.asyncio
    async def test_find_one(self, cms_client):
        doc = await cms_client.find_one("posts", {"slug": {"equals": "winter-curls"}})
        assert doc["id"] == 200

        missing = await cms_client.find_one("posts", {"slug": {"equals": "nope"}})
        assert missing is None

    @pytest.mark.asyncio
    async def test_query_returns_raw_json(self, cms_client):
        body = await cms_client.query(
            "/api/products", params=[("where[category][equals]", "tools")]
        )
        assert body["totalDocs"] == 1
        assert body["docs"][0]["slug"] == "wide-comb"

    @pytest.mark.asyncio
    async def test_invalid_collection_name(self, cms_client):
        with pytest.raises(InvalidRequestError):
            await cms_client.find("../users")

    @pytest.mark.asyncio
    async def test_api_key_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"docs": []})

        client = CMSClient(
            CMS_URL, api_key="abc123", transport=httpx.MockTransport(handler)
        )
        await client.find("services")
        await client.aclose()

        assert seen["auth"] == "users API-Key abc123"


class TestCMSClientWrites:
    """Tests for create/update."""

    @pytest.mark.asyncio
    async def test_create_returns_doc(self, fake_cms, cms_client):
        doc = await cms_client.create("bookings", {"customerName": "Ada"})

        assert doc["customerName"] == "Ada"
        assert doc in fake_cms.collections["bookings"]

    @pytest.mark.asyncio
    async def test_update_returns_doc(self, cms_client):
        doc = await cms_client.update("products", 100, {"stock": 1})
        assert doc["stock"] == 1

    @pytest.mark.asyncio
    async def test_update_missing(self, cms_client):
        with pytest.raises(NotFoundError):
            await cms_client.update("products", 999, {"stock": 1})


class TestCMSClientAuth:
    """Tests for the delegated identity lookup."""

    @pytest.mark.asyncio
    async def test_me_known_token(self, cms_client):
        user = await cms_client.me("JWT customer-token")
        assert user["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_me_unknown_token(self, cms_client):
        assert await cms_client.me("JWT garbage") is None

    @pytest.mark.asyncio
    async def test_me_rejected_token(self):
        client = _client(lambda request: httpx.Response(401, json={}))
        assert await client.me("JWT expired") is None


class TestCMSClientErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_not_found(self, cms_client):
        with pytest.raises(NotFoundError, match="not found"):
            await cms_client.find_by_id("products", 999)

    @pytest.mark.asyncio
    async def test_bad_request_message(self):
        client = _client(
            lambda request: httpx.Response(
                400, json={"errors": [{"message": "Invalid where clause"}]}
            )
        )
        with pytest.raises(InvalidRequestError, match="Invalid where clause"):
            await client.find("products")

    @pytest.mark.asyncio
    async def test_forbidden(self):
        client = _client(lambda request: httpx.Response(403, json={}))
        with pytest.raises(PermissionDeniedError):
            await client.find("bookings")

    @pytest.mark.asyncio
    async def test_server_error(self, fake_cms, cms_client):
        fake_cms.fail_with = 500
        with pytest.raises(CMSError) as exc_info:
            await cms_client.find("products")

        assert exc_info.value.upstream_status == 500
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_unreachable(self, fake_cms, cms_client):
        fake_cms.unreachable = True
        with pytest.raises(CMSUnavailableError):
            await cms_client.find("products")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            msg = "too slow"
            raise httpx.ReadTimeout(msg, request=request)

        with pytest.raises(CMSUnavailableError, match="timed out"):
            await _client(handler).find("products")

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(CMSError, match="non-JSON"):
            await client.find("products")
