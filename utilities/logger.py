"""
structlog setup for the Book Catalog API.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

# Request lines come from the API's own middleware.
QUIET_LOGGERS = ("uvicorn.access",)


def _service_stamper(service: str):
    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict
    return add_service


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    service: str = "book-catalog-api"
) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        log_level: Logging level name
        log_format: "json" or "console"
        log_file: Optional path that receives a copy of every line
        service: Value of the ``service`` key stamped on each event
    """
    level = getattr(logging, log_level.upper())

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))
    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _service_stamper(service),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)
