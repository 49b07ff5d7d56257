"""Database helpers: engines, session factories and DB initialization.

Provides read/write session factories and an `init_db` helper that creates
the schema on startup.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core import config
from .models import Base


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across FastAPI's worker threads
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# Engines
write_engine = create_engine(config.WRITE_DATABASE_URL, connect_args=_connect_args(config.WRITE_DATABASE_URL))
read_engine = create_engine(config.READ_DATABASE_URL, connect_args=_connect_args(config.READ_DATABASE_URL))

# Session factories
WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def init_db():
    """Create all tables defined on the ORM models if they do not exist."""
    Base.metadata.create_all(bind=write_engine)


def reset_db():
    """Drop and recreate every table. Used by the test suite."""
    Base.metadata.drop_all(bind=write_engine)
    Base.metadata.create_all(bind=write_engine)


# Convenience generators for dependency injection
def get_write_session():
    """Yield a write-enabled SQLAlchemy session for the request scope.

    Use this generator as a FastAPI dependency to ensure the session is
    properly closed after the request completes.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_session():
    """Yield a read-only SQLAlchemy session for the request scope.

    Used for read endpoints where routing reads to a replica may be desired.
    """
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()
