from __future__ import annotations

from typing import Any, Dict, List

import uvicorn

from leetready import __main__ as server
from leetready.config import get_settings


def test_main_serves_app_with_configured_address(monkeypatch) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append({"app": app, **kwargs}))
    monkeypatch.setattr(server, "configure_logging", lambda: "WARNING")
    monkeypatch.setenv("LEETREADY_HOST", "0.0.0.0")
    monkeypatch.setenv("LEETREADY_PORT", "9123")
    get_settings.cache_clear()

    try:
        server.main()
    finally:
        get_settings.cache_clear()

    assert calls == [
        {
            "app": "leetready.main:app",
            "host": "0.0.0.0",
            "port": 9123,
            "log_level": "warning",
            "log_config": None,
        }
    ]
