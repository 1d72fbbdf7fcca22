"""Locale resolution for incoming requests."""

import logging
from collections.abc import Sequence
from http.cookies import SimpleCookie
from urllib.parse import parse_qs

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

LOCALE_COOKIE = "NEXT_LOCALE"


def parse_accept_language(header: str | None) -> list[str]:
    """Parse an Accept-Language header into tags ordered by preference.

    Args:
        header: Raw header value, e.g. ``"fr-CA,fr;q=0.9,en;q=0.5"``

    Returns:
        Lower-cased language tags, highest q first; ties keep header order
    """
    if not header:
        return []

    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = pieces[0].lower()
        if not tag or tag == "*":
            continue

        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        if quality <= 0:
            continue
        weighted.append((-quality, index, tag))

    return [tag for _, _, tag in sorted(weighted)]


def negotiate_locale(
    candidates: Sequence[str], supported: Sequence[str], default: str
) -> str:
    """Pick the first supported locale, trying exact then primary-subtag matches."""
    supported_lower = {s.lower(): s for s in supported}

    for candidate in candidates:
        candidate = candidate.lower().replace("_", "-")
        if candidate in supported_lower:
            return supported_lower[candidate]
        primary = candidate.split("-", 1)[0]
        if primary in supported_lower:
            return supported_lower[primary]

    return default


def resolve_locale(
    path: str,
    query_locale: str | None,
    cookie_locale: str | None,
    accept_language: str | None,
    supported: Sequence[str],
    default: str,
) -> tuple[str, str]:
    """Work out the request locale.

    Precedence: path prefix, ``?locale=``, locale cookie, Accept-Language,
    default. Unsupported explicit values fall through to the next source.

    Returns:
        Tuple of (locale, path with any locale prefix removed)
    """
    segments = path.split("/", 2)
    if len(segments) > 1 and segments[1] in supported:
        stripped = "/" + (segments[2] if len(segments) > 2 else "")
        return segments[1], stripped

    for explicit in (query_locale, cookie_locale):
        if explicit and explicit in supported:
            return explicit, path

    candidates = parse_accept_language(accept_language)
    return negotiate_locale(candidates, supported, default), path


def _query_param(query_string: bytes, name: str) -> str | None:
    values = parse_qs(query_string.decode("latin-1")).get(name)
    return values[0] if values else None


def _cookie(header: str | None, name: str) -> str | None:
    if not header:
        return None
    cookie = SimpleCookie()
    cookie.load(header)
    morsel = cookie.get(name)
    return morsel.value if morsel else None


class LocaleMiddleware:
    """ASGI middleware that resolves the request locale.

    The locale is stored in ``request.state.locale``, a ``/{locale}`` path
    prefix is stripped before routing, and responses carry a
    ``Content-Language`` header.
    """

    def __init__(self, app: ASGIApp, supported: Sequence[str], default: str) -> None:
        self.app = app
        self.supported = list(supported)
        self.default = default

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {
            k.decode("latin-1"): v.decode("latin-1") for k, v in scope["headers"]
        }
        locale, path = resolve_locale(
            scope["path"],
            _query_param(scope.get("query_string", b""), "locale"),
            _cookie(headers.get("cookie"), LOCALE_COOKIE),
            headers.get("accept-language"),
            self.supported,
            self.default,
        )

        if path != scope["path"]:
            scope = dict(scope)
            scope["path"] = path
            scope["raw_path"] = path.encode("utf-8")
        scope.setdefault("state", {})["locale"] = locale

        async def send_with_language(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)["Content-Language"] = locale
            await send(message)

        await self.app(scope, receive, send_with_language)
