"""Database package: ORM models, status enums and session helpers."""

from .database import (
    write_engine,
    read_engine,
    WriteSessionLocal,
    ReadSessionLocal,
    init_db,
    reset_db,
    get_write_session,
    get_read_session,
)
from . import models
from . import enums

__all__ = [
    "write_engine",
    "read_engine",
    "WriteSessionLocal",
    "ReadSessionLocal",
    "init_db",
    "reset_db",
    "get_write_session",
    "get_read_session",
    "models",
    "enums",
]
