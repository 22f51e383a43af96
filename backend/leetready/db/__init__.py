"""Database utilities for the durable key-value store."""

from .session import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session_factory,
    session_scope,
)

__all__ = [
    "create_tables",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
