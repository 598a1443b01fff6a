from __future__ import annotations

import logging
from logging.config import dictConfig

from app.core.config import get_settings

# ``extra`` keys attached by the request middleware and the services
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "ms",
    "user_id",
    "problem_id",
    "submission_id",
)


class ContextFormatter(logging.Formatter):
    """Formatter that appends known ``extra`` context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}" for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        return f"{message} [{context}]" if context else message


def configure_logging() -> logging.Logger:
    """Configure console logging for the application loggers."""
    level = get_settings().log_level
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": ContextFormatter,
                    "fmt": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                },
            },
            "loggers": {
                "judge0": {"handlers": ["console"], "level": level, "propagate": False},
                "submissions": {"handlers": ["console"], "level": level, "propagate": False},
                "problems": {"handlers": ["console"], "level": level, "propagate": False},
                "profiles": {"handlers": ["console"], "level": level, "propagate": False},
                "request": {"handlers": ["console"], "level": level, "propagate": False},
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )
    return logging.getLogger("app")


__all__ = ["configure_logging", "ContextFormatter"]
