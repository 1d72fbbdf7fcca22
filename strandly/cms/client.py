"""Async client for the headless CMS REST API."""

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from strandly.cms.query import encode_query
from strandly.errors import (
    CMSError,
    CMSUnavailableError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

_COLLECTION_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


def _collection_path(collection: str) -> str:
    if not _COLLECTION_RE.match(collection):
        msg = f"Invalid collection name: {collection!r}"
        raise InvalidRequestError(msg)
    return f"/api/{collection}"


def _doc_path(collection: str, doc_id: str | int) -> str:
    return f"{_collection_path(collection)}/{quote(str(doc_id), safe='')}"


def _error_message(response: httpx.Response) -> str | None:
    """Pull the first error message out of a CMS error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get("message")
        return body.get("message")
    return None


class CMSClient:
    """Thin wrapper around ``httpx.AsyncClient`` speaking the CMS REST dialect.

    Every method returns decoded JSON. CMS failures are mapped onto the
    ``strandly.errors`` hierarchy so the API layer can render them uniformly.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CMS client.

        Args:
            base_url: CMS base URL, e.g. ``http://localhost:3000``
            api_key: Optional API key sent on every request
            timeout: Request timeout in seconds
            transport: Optional transport (used by tests to stub the CMS)
        """
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"users API-Key {api_key}"

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        logger.info(f"CMS client configured for {self.base_url}")

    async def __aenter__(self) -> "CMSClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.error(f"CMS request timed out: {method} {path}")
            msg = "The content service timed out"
            raise CMSUnavailableError(msg) from e
        except httpx.TransportError as e:
            logger.error(f"CMS unreachable: {method} {path}: {e}")
            msg = "The content service is unavailable"
            raise CMSUnavailableError(msg) from e

        self._raise_for_status(response, method, path)

        try:
            return response.json()
        except ValueError as e:
            msg = f"CMS returned a non-JSON response for {path}"
            raise CMSError(msg, upstream_status=response.status_code) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = _error_message(response)
        logger.warning(f"CMS {method} {path} failed with {status}: {detail}")

        if status == 404:
            raise NotFoundError(detail or "Document not found")
        if status == 400:
            raise InvalidRequestError(detail or "The content service rejected the request")
        if status in (401, 403):
            raise PermissionDeniedError(detail or "Not allowed to access this content")
        msg = f"Content service error ({status})"
        raise CMSError(msg, upstream_status=status)

    async def find(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
        page: int | None = None,
        sort: str | None = None,
        depth: int | None = None,
        locale: str | None = None,
        fallback_locale: str | None = None,
    ) -> dict[str, Any]:
        """Query a collection and return the paginated envelope."""
        params = encode_query(
            {
                "where": where,
                "limit": limit,
                "page": page,
                "sort": sort,
                "depth": depth,
                "locale": locale,
                "fallback-locale": fallback_locale,
            }
        )
        return await self._request("GET", _collection_path(collection), params=params)

    async def find_one(
        self,
        collection: str,
        where: dict[str, Any],
        depth: int | None = None,
        locale: str | None = None,
    ) -> dict[str, Any] | None:
        """Return the first document matching ``where``, or None."""
        result = await self.find(
            collection, where=where, limit=1, depth=depth, locale=locale
        )
        docs = result.get("docs") or []
        return docs[0] if docs else None

    async def find_by_id(
        self,
        collection: str,
        doc_id: str | int,
        depth: int | None = None,
        locale: str | None = None,
    ) -> dict[str, Any]:
        """Fetch a single document by id."""
        params = encode_query({"depth": depth, "locale": locale})
        return await self._request("GET", _doc_path(collection, doc_id), params=params)

    async def create(
        self, collection: str, data: dict[str, Any], locale: str | None = None
    ) -> dict[str, Any]:
        """Create a document and return it."""
        params = encode_query({"locale": locale})
        body = await self._request(
            "POST", _collection_path(collection), params=params, json=data
        )
        return body.get("doc", body)

    async def update(
        self,
        collection: str,
        doc_id: str | int,
        data: dict[str, Any],
        locale: str | None = None,
    ) -> dict[str, Any]:
        """Patch a document and return the updated version."""
        params = encode_query({"locale": locale})
        body = await self._request(
            "PATCH", _doc_path(collection, doc_id), params=params, json=data
        )
        return body.get("doc", body)

    async def me(self, authorization: str) -> dict[str, Any] | None:
        """Resolve the user behind a forwarded authorization header.

        Returns:
            The user document, or None for anonymous or rejected tokens
        """
        try:
            body = await self._request(
                "GET", "/api/users/me", headers={"Authorization": authorization}
            )
        except PermissionDeniedError:
            return None
        return body.get("user") if isinstance(body, dict) else None

    async def query(
        self, path: str, params: list[tuple[str, str]] | None = None
    ) -> Any:
        """Raw GET against the CMS; the decoded JSON is returned untouched."""
        return await self._request("GET", path, params=params)
