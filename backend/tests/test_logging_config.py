from __future__ import annotations

from typing import Any, Dict, List

from leetready import logging_config
from leetready.logging_config import build_logging_config, configure_logging


def _capture(monkeypatch) -> List[Dict[str, Any]]:
    applied: List[Dict[str, Any]] = []
    monkeypatch.setattr(logging_config, "dictConfig", applied.append)
    return applied


def test_http_loggers_are_quiet_by_default() -> None:
    config = build_logging_config("INFO")

    assert config["root"]["level"] == "INFO"
    assert config["loggers"]["httpx"] == {"level": "WARNING"}
    assert config["loggers"]["httpcore"] == {"level": "WARNING"}
    assert config["loggers"]["sqlalchemy.engine"] == {"level": "WARNING"}
    assert config["loggers"]["leetready.telemetry"] == {"level": "INFO"}


def test_debug_http_and_sql_echo_raise_library_loggers() -> None:
    config = build_logging_config("WARNING", debug_http=True, echo_sql=True, telemetry_level="ERROR")

    assert config["loggers"]["httpx"] == {"level": "DEBUG"}
    assert config["loggers"]["sqlalchemy.engine"] == {"level": "INFO"}
    assert config["loggers"]["leetready.telemetry"] == {"level": "ERROR"}


def test_configure_reads_environment(monkeypatch) -> None:
    applied = _capture(monkeypatch)
    monkeypatch.setenv("LEETREADY_LOG_LEVEL", "debug")
    monkeypatch.setenv("LEETREADY_TELEMETRY_LOG_LEVEL", "warning")
    monkeypatch.setenv("LEETREADY_DEBUG_HTTP", "1")

    effective = configure_logging()

    assert effective == "DEBUG"
    assert applied[0]["root"]["level"] == "DEBUG"
    assert applied[0]["loggers"]["leetready.telemetry"] == {"level": "WARNING"}
    assert applied[0]["loggers"]["httpcore"] == {"level": "DEBUG"}


def test_explicit_level_wins_and_unknown_names_fall_back(monkeypatch) -> None:
    applied = _capture(monkeypatch)
    monkeypatch.setenv("LEETREADY_LOG_LEVEL", "ERROR")
    monkeypatch.delenv("LEETREADY_TELEMETRY_LOG_LEVEL", raising=False)

    assert configure_logging("warning") == "WARNING"
    assert configure_logging("loud") == "INFO"
    assert applied[-1]["loggers"]["leetready.telemetry"] == {"level": "INFO"}
