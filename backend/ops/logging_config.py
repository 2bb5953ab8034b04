"""
Structured logging configuration.

Every module logs through ``logging.getLogger(__name__)`` and passes its
business context in ``extra`` (journal_id, event_kind, project_id, ...).
In production those records become JSON lines on stdout; in development a
single readable line.

Environment variables:
- LOG_FORMAT: "json" or "console" (default: json unless DEBUG)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO, DEBUG when DEBUG)
- APP_VERSION: stamped on every JSON record
"""
import json
import logging
import os
from datetime import datetime, timezone

# Loggers owned by this codebase; each gets the console handler at LOG_LEVEL
APP_LOGGERS = ("accounting", "projects", "wip", "reports", "ops", "celery")

# Context keys lifted to the top level of a JSON record so log search can
# filter on them directly
CONTEXT_KEYS = (
    "journal_id",
    "reversal_id",
    "source_type",
    "source_id",
    "purpose",
    "event_kind",
    "event_id",
    "project_id",
)

_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _formatters(log_format: str) -> dict:
    if log_format == "json":
        return {"json": {"()": "ops.logging_config.JsonFormatter"}}
    return {
        "verbose": {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
        },
    }


def get_logging_config(debug: bool = False) -> dict:
    """
    Build Django's LOGGING dict.

    Args:
        debug: settings.DEBUG; switches the default format and level
    """
    level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")
    formatter = "json" if log_format == "json" else "verbose"

    console = {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "stream": "ext://sys.stdout",
    }
    if formatter == "json":
        console["filters"] = ["app_version"]

    loggers = {
        "": {"handlers": ["console"], "level": level},
        "django": {"handlers": ["console"], "level": level, "propagate": False},
        "django.request": {
            "handlers": ["console"],
            "level": level if debug else "ERROR",
            "propagate": False,
        },
        # SQL echo only while debugging
        "django.db.backends": {
            "handlers": ["console"] if debug else ["null"],
            "level": "DEBUG" if debug else "INFO",
            "propagate": False,
        },
    }
    for name in APP_LOGGERS:
        loggers[name] = {"handlers": ["console"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "app_version": {"()": "ops.logging_config.AppVersionFilter"},
        },
        "formatters": _formatters(log_format),
        "handlers": {
            "console": console,
            "null": {"class": "logging.NullHandler"},
        },
        "loggers": loggers,
    }


class AppVersionFilter(logging.Filter):
    """Stamp every record with the running application version."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "app_version"):
            record.app_version = os.environ.get("APP_VERSION", "dev")
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields: timestamp, level, logger, message, the CONTEXT_KEYS present on
    the record, any remaining ``extra`` under "extra", and the formatted
    exception when there is one.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": f"{record.module}:{record.lineno}",
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        for key in CONTEXT_KEYS:
            if key in extras:
                entry[key] = extras.pop(key)
        if extras:
            entry["extra"] = extras

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
