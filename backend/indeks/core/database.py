"""
Database configuration and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from indeks.core.config import settings


def _connect_args_for(url: str) -> dict:
    # Reduce worst-case startup delays when the DB host is unreachable.
    # (psycopg2 honors connect_timeout in seconds)
    if str(url or "").startswith(("postgresql://", "postgres://")):
        return {"connect_timeout": 5}
    return {}


# Create engine with connection pooling
engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args_for(settings.DATABASE_URL),
    poolclass=QueuePool,
    pool_size=10,
    max_overflow=20,
    pool_timeout=30,
    pool_pre_ping=True,  # Verify connections before use
)

# The raw event store can sit on its own server; reuse the main pool otherwise.
_event_store_url = str(getattr(settings, "EVENT_STORE_URL", "") or "").strip()
if _event_store_url and _event_store_url != settings.DATABASE_URL:
    event_store_engine = create_engine(
        _event_store_url,
        connect_args=_connect_args_for(_event_store_url),
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=5,
        pool_timeout=30,
        pool_pre_ping=True,
    )
else:
    event_store_engine = engine

# Session factories
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
EventStoreSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=event_store_engine)

# Base class for models
Base = declarative_base()
