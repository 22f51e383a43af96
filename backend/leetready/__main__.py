"""Serve the API with uvicorn: `python -m leetready` or `leetready-server`."""

import logging

from .config import get_settings
from .logging_config import configure_logging


def main() -> None:
    level = configure_logging()
    settings = get_settings()
    logger = logging.getLogger("leetready.server")
    logger.info("Starting LeetReady API on %s:%s", settings.host, settings.port)

    import uvicorn

    uvicorn.run(
        "leetready.main:app",
        host=settings.host,
        port=settings.port,
        log_level=level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
