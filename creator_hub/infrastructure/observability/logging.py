"""
Structured logging setup for the creator hub client core.
Provides JSON-formatted logs with consistent fields for job and store events.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _redact_tokens,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_SENSITIVE_KEYS = ("access_token", "refresh_token", "token", "password")


def _redact_tokens(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Keep at most a short prefix of credentials in log entries."""
    for key in _SENSITIVE_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and value:
            event_dict[key] = "***" if key == "password" else f"{value[:8]}..."
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_job_transition(job: str, previous: str, current: str, error: str = None):
    """Log job state machine transitions with consistent fields."""
    logger = get_logger("jobs")

    log_data = {
        "job": job,
        "from_status": previous,
        "to_status": current,
        "event_type": "job_transition",
    }

    if error:
        log_data["error"] = error
        logger.warning("Job transitioned to error", **log_data)
    else:
        logger.info("Job transitioned", **log_data)
