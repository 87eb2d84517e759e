"""Read access to the raw event store."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from indeks.core.database import EventStoreSessionLocal
from indeks.core.time import day_bounds
from indeks.models.models import RawEvent

logger = logging.getLogger(__name__)


class EventFetchTimeout(TimeoutError):
    """The event store did not answer within the configured bound."""


@dataclass(frozen=True)
class RawEventRecord:
    event_type: str
    timestamp: datetime | None = None
    url: str | None = None
    session_id: str | None = None
    user_id: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    # JSON text straight from the store, or an already-decoded mapping
    metadata: Any = field(default_factory=dict)


class EventStore(Protocol):
    def fetch(self, project_id: str, day: date) -> Sequence[RawEventRecord]:
        """Return every raw event of one project on one calendar day (UTC)."""
        ...


class SqlEventStore:
    """Event store backed by the `events` table."""

    def __init__(self, session_factory: Callable[[], Session] = EventStoreSessionLocal) -> None:
        self._session_factory = session_factory

    def fetch(self, project_id: str, day: date) -> list[RawEventRecord]:
        window_start, window_end = day_bounds(day)
        db = self._session_factory()
        try:
            rows = db.execute(
                select(RawEvent)
                .where(
                    RawEvent.project_id == project_id,
                    RawEvent.timestamp >= window_start,
                    RawEvent.timestamp < window_end,
                )
                .order_by(RawEvent.timestamp.asc(), RawEvent.id.asc())
            ).scalars().all()
            return [
                RawEventRecord(
                    event_type=row.event_type,
                    timestamp=row.timestamp,
                    url=row.url,
                    session_id=row.session_id,
                    user_id=row.user_id,
                    user_agent=row.user_agent,
                    referrer=row.referrer,
                    metadata=row.event_metadata,
                )
                for row in rows
            ]
        finally:
            db.close()


def fetch_with_timeout(
    store: EventStore,
    project_id: str,
    day: date,
    *,
    timeout_seconds: float | None,
) -> Sequence[RawEventRecord]:
    """Run `store.fetch` with an upper bound on wall time."""
    if not timeout_seconds or timeout_seconds <= 0:
        return store.fetch(project_id, day)

    pool = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="event-fetch")
    try:
        future = pool.submit(store.fetch, project_id, day)
        try:
            return future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError as exc:
            logger.warning(
                "Event fetch for project %s on %s exceeded %.1fs",
                project_id,
                day.isoformat(),
                timeout_seconds,
            )
            raise EventFetchTimeout(
                f"Event store fetch timed out after {timeout_seconds:g}s"
            ) from exc
    finally:
        # Do not block on a hung fetch; the worker thread is abandoned.
        pool.shutdown(wait=False, cancel_futures=True)
