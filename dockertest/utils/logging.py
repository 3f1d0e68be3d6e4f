"""Structured logging setup."""

import logging
import sys
from typing import Optional

import structlog

from ..config import Settings, settings as default_settings


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure structlog on top of the stdlib root logger.

    Console rendering by default; ``DOCKERTEST_LOG_FORMAT=json`` switches to
    one JSON object per line.
    """
    config = config or default_settings
    level = getattr(logging, config.logging.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.logging.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    formatter = structlog.stdlib.ProcessorFormatter(processor=renderer)

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)
