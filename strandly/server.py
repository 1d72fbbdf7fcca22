"""FastAPI server sitting between the Strandly website and its headless CMS."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from strandly import __version__
from strandly.api import (
    bookings_router,
    cart_router,
    content_router,
    publishing_router,
)
from strandly.cms import CMSClient
from strandly.config import Config, get_config, setup_logging
from strandly.errors import CMSError, StrandlyError
from strandly.guardrails import OutputValidator, RateLimiter
from strandly.i18n import LocaleMiddleware
from strandly.monitoring import capture_exception, init_monitoring
from strandly.services import (
    BookingService,
    CartService,
    ContentService,
    get_cart_manager,
    get_response_cache,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": code, "message": message, **extra},
    )


def create_app(config: Config | None = None, cms: CMSClient | None = None) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration (defaults to the global config)
        cms: Pre-built CMS client; when omitted one is created from config
            and closed on shutdown

    Returns:
        Configured FastAPI app
    """
    cfg = config or get_config()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Application lifespan manager."""
        setup_logging(cfg)
        logger.info(f"Starting Strandly API on {cfg.server_host}:{cfg.server_port}")
        logger.info(f"CMS: {cfg.cms_url}")
        init_monitoring(cfg)

        client = cms or CMSClient(
            cfg.cms_url, api_key=cfg.cms_api_key, timeout=cfg.cms_timeout
        )
        cache = get_response_cache(cfg)
        content = ContentService(client, cache)
        carts = get_cart_manager()
        rate_limiter = RateLimiter(
            cfg.rate_limit_db_path,
            hourly_limit=cfg.booking_hourly_limit,
            daily_limit=cfg.booking_daily_limit,
        )

        # Store services in app state for dependency injection
        _app.state.cms = client
        _app.state.cache = cache
        _app.state.content = content
        _app.state.bookings = BookingService(client, content, cfg)
        _app.state.carts = carts
        _app.state.cart_service = CartService(content, carts, cfg)
        _app.state.rate_limiter = rate_limiter
        logger.info("✓ Services initialized")

        yield

        logger.info("Shutting down Strandly API")
        rate_limiter.close()
        if cms is None:
            await client.aclose()

    app = FastAPI(
        title="Strandly API",
        description="Booking, shop and content API for the Strandly website",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = cfg

    app.add_middleware(
        LocaleMiddleware,
        supported=cfg.supported_locales,
        default=cfg.default_locale,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StrandlyError)
    async def strandly_error_handler(_request: Request, exc: StrandlyError):
        if isinstance(exc, CMSError):
            logger.error(f"CMS failure: {exc.message}")
        return _error_response(
            exc.status_code, exc.code, OutputValidator.sanitize_message(exc.message)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        return _error_response(
            422,
            "invalid_request",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        capture_exception(exc)
        return _error_response(500, "internal_error", "Something went wrong")

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for monitoring."""
        cache = getattr(request.app.state, "cache", None)
        return {
            "status": "healthy",
            "service": "strandly-api",
            "cache": cache.stats() if cache else None,
        }

    app.include_router(content_router)
    app.include_router(bookings_router)
    app.include_router(cart_router)
    app.include_router(publishing_router)

    return app


app = create_app()


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "strandly.server:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
