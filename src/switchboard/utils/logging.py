"""Logging Configuration"""
import logging

import structlog


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Setup structured logging with structlog"""
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Route stdlib loggers (uvicorn, sqlalchemy) through the same level
    logging.basicConfig(
        format="%(message)s",
        level=level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
