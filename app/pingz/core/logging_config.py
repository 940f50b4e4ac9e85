"""Logging configuration for pingz.

Keep configuration generation separate from its application:

    - `get_logging_config`: Build the `logging.config.dictConfig` dictionary
      for the current settings.
    - `configure_structlog_wrapper`: Install structlog's processor chain on
      top of the stdlib handlers.
    - `configure_logging`: Apply both, once, at process startup.
    - Context helpers from `structlog.contextvars` for per-request metadata
      such as the scrape request id.
"""

import logging.config
from typing import Any

import structlog
from structlog.types import Processor

from app.config import Settings


# =============================================================================
# CONFIGURATION GENERATORS
# =============================================================================


def get_common_processors() -> list[Processor]:
    """Return the processors shared by the JSON and console renderers.

    `merge_contextvars` must stay first: it copies the ``request_id`` bound
    by `RequestCorrelationMiddleware` into every line logged while a scrape
    is served. The timestamp is UTC ISO-8601 so poll failures can be lined up
    with Prometheus' scrape times, and `format_exc_info` renders the
    traceback of unexpected check errors.

    Returns:
        list[Processor]: Ordered structlog processors run before rendering.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def get_renderer(settings: Settings) -> Processor:
    """Pick the final renderer: JSON for production/staging, console otherwise."""
    if settings.ENVIRONMENT in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def get_logging_config(settings: Settings) -> dict[str, Any]:
    """Generate a configuration dictionary for `logging.config.dictConfig`.

    Note:
        Pure function; nothing global is touched until the result is applied.

    Args:
        settings: Settings providing LOG_LEVEL, ENVIRONMENT and the list of
            third-party loggers to quiet down.

    Returns:
        dict[str, Any]: Configuration dictionary compatible with dictConfig.
    """
    log_level = settings.LOG_LEVEL.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "structlog.stdlib.ProcessorFormatter",
                "processor": get_renderer(settings),
                "foreign_pre_chain": get_common_processors(),
            },
        },
        "handlers": {
            "console": {
                "level": log_level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": True,
            },
            # httpx logs every request at INFO, one line per host per cycle
            **{
                lib: {"level": "WARNING", "propagate": True}
                for lib in settings.LOGGING_NOISY_MODULES
            },
        },
    }


def configure_structlog_wrapper(settings: Settings) -> None:
    """Install the structlog processor chain and logger factory.

    Args:
        settings: Application settings (currently unused by the chain).
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *get_common_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Settings) -> None:
    """Apply the stdlib and structlog configuration for this process."""
    logging.config.dictConfig(get_logging_config(settings))
    configure_structlog_wrapper(settings)


# =============================================================================
# LOGGER RETRIEVAL
# =============================================================================


def get_logger(name: str | None = None) -> Any:
    """Retrieve a structlog logger, named when ``name`` is given."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


# =============================================================================
# CONTEXT VARIABLE EXPORTS
# =============================================================================

bind_contextvars = structlog.contextvars.bind_contextvars
clear_contextvars = structlog.contextvars.clear_contextvars
