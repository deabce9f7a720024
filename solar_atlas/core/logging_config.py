"""
Application-wide logging configuration helpers.

Every module logs through ``logging.getLogger(__name__)``; this module wires
the single console handler those loggers propagate to and sets the levels
of the chatty third-party loggers the import service drives (SQLAlchemy for
batch upserts, urllib3 underneath the open data portal fetch).
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

from solar_atlas.core.config import settings


_is_configured = False

# Third-party loggers held at WARNING unless the app itself runs at DEBUG.
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "urllib3", "multipart")


def build_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the ``dictConfig`` mapping for the given level.

    Args:
        level: Log level override; defaults to ``settings.log_level``.
    """
    log_level = (level or settings.log_level or "INFO").upper()
    third_party_level = "DEBUG" if log_level == "DEBUG" else _less_verbose(log_level, "WARNING")
    import_level = _more_verbose(log_level, "WARNING")

    loggers: Dict[str, Any] = {
        "solar_atlas": {"level": log_level},
        # Row-level warnings from the batch importer stay visible even when
        # the rest of the app is turned down to ERROR.
        "solar_atlas.domain.imports": {"level": import_level},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": third_party_level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": import_level,
            }
        },
        "loggers": loggers,
        "root": {
            "handlers": ["console"],
            "level": log_level,
        },
    }


def _more_verbose(first: str, second: str) -> str:
    return first if logging.getLevelName(first) <= logging.getLevelName(second) else second


def _less_verbose(first: str, second: str) -> str:
    return first if logging.getLevelName(first) >= logging.getLevelName(second) else second


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root and application loggers if they have not been configured yet.

    Args:
        level: Optional log level override (e.g., "DEBUG", "INFO").
    """
    global _is_configured

    if _is_configured:
        return

    dictConfig(build_logging_config(level))
    _is_configured = True
