"""structlog setup shared by the API server and scripts."""

import logging

import structlog


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog with level, ISO timestamp and console rendering."""
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
