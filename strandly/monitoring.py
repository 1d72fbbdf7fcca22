"""Error monitoring with Sentry."""

import logging

import sentry_sdk

from strandly import __version__
from strandly.config import Config, get_config

logger = logging.getLogger(__name__)


def init_monitoring(cfg: Config | None = None) -> bool:
    """Initialise Sentry when a DSN is configured.

    Returns:
        True if error reports will be sent
    """
    if cfg is None:
        cfg = get_config()

    if not cfg.has_sentry_config():
        return False

    sentry_sdk.init(
        dsn=cfg.sentry_dsn,
        environment=cfg.sentry_environment,
        release=f"strandly@{__version__}",
        traces_sample_rate=cfg.sentry_traces_sample_rate,
        send_default_pii=False,
    )
    logger.info(f"Sentry error monitoring enabled ({cfg.sentry_environment})")
    return True


def capture_exception(exc: BaseException) -> None:
    """Report an exception; a no-op while Sentry is not initialised."""
    sentry_sdk.capture_exception(exc)
