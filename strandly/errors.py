"""Exception hierarchy shared by services and the API layer."""


class StrandlyError(Exception):
    """Base error carrying the HTTP status and error code for the API envelope."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(StrandlyError):
    status_code = 404
    code = "not_found"


class InvalidRequestError(StrandlyError):
    status_code = 422
    code = "invalid_request"


class ConflictError(StrandlyError):
    status_code = 409
    code = "conflict"


class RateLimitExceededError(StrandlyError):
    status_code = 429
    code = "rate_limited"


class AuthenticationError(StrandlyError):
    status_code = 401
    code = "unauthenticated"


class PermissionDeniedError(StrandlyError):
    status_code = 403
    code = "forbidden"


class ServiceUnavailableError(StrandlyError):
    """A service the request needs has not been started yet."""

    status_code = 503
    code = "service_unavailable"


class CMSError(StrandlyError):
    """The CMS answered with an unexpected error."""

    status_code = 502
    code = "cms_error"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class CMSUnavailableError(CMSError):
    """The CMS could not be reached or timed out."""

    status_code = 503
    code = "cms_unavailable"
