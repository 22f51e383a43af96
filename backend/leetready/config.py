import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    graphql_url: str = Field("https://leetcode.com/graphql/", alias="LEETREADY_GRAPHQL_URL")
    session_cookie: Optional[str] = Field(None, alias="LEETREADY_SESSION_COOKIE")
    csrf_token: Optional[str] = Field(None, alias="LEETREADY_CSRF_TOKEN")
    request_timeout_seconds: float = Field(20.0, alias="LEETREADY_REQUEST_TIMEOUT_SECONDS")
    database_url: Optional[str] = Field(None, alias="LEETREADY_DATABASE_URL")
    database_pool_size: int = Field(5, alias="LEETREADY_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(5, alias="LEETREADY_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="LEETREADY_DATABASE_ECHO")
    catalog_ttl_seconds: int = Field(24 * 60 * 60, ge=0, alias="LEETREADY_CATALOG_TTL_SECONDS")
    catalog_batch_size: int = Field(200, ge=1, alias="LEETREADY_CATALOG_BATCH_SIZE")
    catalog_throttle_ms: int = Field(300, ge=0, alias="LEETREADY_CATALOG_THROTTLE_MS")
    scan_throttle_ms: int = Field(75, ge=0, alias="LEETREADY_SCAN_THROTTLE_MS")
    scan_checkpoint_interval: int = Field(10, ge=1, alias="LEETREADY_SCAN_CHECKPOINT_INTERVAL")
    submission_max_pages: int = Field(3, ge=1, alias="LEETREADY_SUBMISSION_MAX_PAGES")
    submission_page_size: int = Field(20, ge=1, alias="LEETREADY_SUBMISSION_PAGE_SIZE")
    recent_accepted_limit: int = Field(20, ge=1, alias="LEETREADY_RECENT_ACCEPTED_LIMIT")
    scan_strategy: Literal["targeted", "eager"] = Field("targeted", alias="LEETREADY_SCAN_STRATEGY")
    host: str = Field("127.0.0.1", alias="LEETREADY_HOST")
    port: int = Field(8000, ge=1, le=65535, alias="LEETREADY_PORT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
