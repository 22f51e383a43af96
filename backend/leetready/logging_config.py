"""Logging setup shared by the API process and the command-line scripts.

Sync runs make many small GraphQL calls, so the HTTP client loggers are kept
at WARNING unless `LEETREADY_DEBUG_HTTP=1`. Telemetry lines go through their
own logger so they can be silenced or raised independently of the rest.
"""

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_LOGGER = "leetready.telemetry"
HTTP_LOGGERS = ("httpx", "httpcore")


def _level_name(value: Optional[str], default: str) -> str:
    name = (value or default).strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        return default
    return name


def build_logging_config(
    level: str,
    *,
    telemetry_level: Optional[str] = None,
    debug_http: bool = False,
    echo_sql: bool = False,
) -> Dict[str, Any]:
    http_level = "DEBUG" if debug_http else "WARNING"
    loggers: Dict[str, Dict[str, Any]] = {name: {"level": http_level} for name in HTTP_LOGGERS}
    loggers["sqlalchemy.engine"] = {"level": "INFO" if echo_sql else "WARNING"}
    loggers[TELEMETRY_LOGGER] = {"level": telemetry_level or level}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": DEFAULT_LOG_FORMAT,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": loggers,
        "root": {
            "handlers": ["default"],
            "level": level,
        },
    }


def configure_logging(level: Optional[str] = None) -> str:
    """Apply the logging config and return the effective root level.

    An explicit `level` wins over `LEETREADY_LOG_LEVEL`. Unknown level names fall
    back to INFO.
    """
    effective = _level_name(level or os.getenv("LEETREADY_LOG_LEVEL"), "INFO")
    telemetry = os.getenv("LEETREADY_TELEMETRY_LOG_LEVEL")
    dictConfig(
        build_logging_config(
            effective,
            telemetry_level=_level_name(telemetry, effective) if telemetry else None,
            debug_http=os.getenv("LEETREADY_DEBUG_HTTP", "0") == "1",
            echo_sql=os.getenv("LEETREADY_DATABASE_ECHO", "").lower() in ("1", "true"),
        )
    )
    return effective


__all__ = ["DEFAULT_LOG_FORMAT", "build_logging_config", "configure_logging"]
