import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, get_settings
from .db.session import get_engine
from .logging_config import configure_logging
from .practice_routes import router as practice_router
from .services import get_store, shutdown_services
from .storage.migration import migrate_storage_if_needed
from .sync_routes import router as sync_router


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    result = await migrate_storage_if_needed(get_store())
    if result.migrated:
        logger.info("Storage migrated from %s to %s", result.from_version, result.to_version)
    yield
    await shutdown_services()


app = FastAPI(title="LeetReady Sync Backend", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(sync_router)
app.include_router(practice_router)

settings_snapshot = get_settings()
logger.info("Backend starting with GraphQL URL: %s", settings_snapshot.graphql_url)
logger.info("Authenticated session configured: %s", bool(settings_snapshot.session_cookie))


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "scan_strategy": settings.scan_strategy}


@app.get("/healthz/storage")
def storage_health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    if not settings.database_url:
        return {"status": "ok", "backend": "memory"}
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.error("Storage health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "backend": "sql"}
