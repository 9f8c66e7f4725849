import logging
import os

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

_logger = logging.getLogger("enablr")
_initialized = False


def init_monitoring() -> None:
    global _initialized
    if _initialized:
        return

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    dsn = os.getenv("SENTRY_DSN")
    if dsn:
        sentry_logging = LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
        sentry_sdk.init(
            dsn=dsn,
            integrations=[sentry_logging],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
            environment=os.getenv("SENTRY_ENVIRONMENT", os.getenv("ENVIRONMENT", "development")),
        )
        _logger.info("Sentry initialized")
    else:
        _logger.info("Sentry DSN not provided; skipping initialization")

    _initialized = True


def capture_exception(exc: BaseException, **context) -> None:
    """Log ``exc`` with optional context and forward it to Sentry when enabled."""
    _logger.error("Exception captured", exc_info=exc, extra={"context": context} if context else None)
    if sentry_sdk.is_initialized():
        with sentry_sdk.new_scope() as scope:
            for key, value in context.items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(exc)
