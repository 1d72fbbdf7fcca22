"""Authentication delegated to the CMS user collection."""

import logging

from fastapi import Request

from strandly.cms import CMSClient
from strandly.errors import AuthenticationError
from strandly.models import User

logger = logging.getLogger(__name__)

TOKEN_SCHEMES = ("bearer", "jwt")


def extract_token(authorization: str | None) -> str | None:
    """Pull the token out of a ``Bearer``/``JWT`` authorization header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() not in TOKEN_SCHEMES or not token.strip():
        return None
    return token.strip()


async def resolve_user(cms: CMSClient, authorization: str | None) -> User | None:
    """Ask the CMS who the token belongs to.

    Returns:
        The user, or None for missing, malformed or rejected tokens
    """
    token = extract_token(authorization)
    if token is None:
        return None

    doc = await cms.me(f"JWT {token}")
    if not doc:
        logger.debug("CMS rejected the forwarded token")
        return None
    return User.model_validate(doc)


async def get_current_user(request: Request) -> User | None:
    """Dependency returning the logged-in user, if any."""
    return await resolve_user(
        request.app.state.cms, request.headers.get("authorization")
    )


async def require_user(request: Request) -> User:
    """Dependency returning the logged-in user.

    Raises:
        AuthenticationError: If the request is anonymous
    """
    user = await get_current_user(request)
    if user is None:
        msg = "Please sign in to continue"
        raise AuthenticationError(msg)
    return user
