"""
Analytics sync orchestration.

One run = one (project, date): open a sync-log row, pull the day's raw events,
aggregate them, replace the rollup rows, close the sync-log row. The sweep entry
points run projects one at a time and keep going when a single project fails.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from threading import Lock
from typing import Any, Callable
import weakref

from sqlalchemy.orm import Session

from indeks.core.config import settings
from indeks.core.database import SessionLocal
from indeks.core.time import now_utc, parse_day
from indeks.models.models import AnalyticsSyncLog, Project
from indeks.services.event_store import EventStore, SqlEventStore, fetch_with_timeout
from indeks.services.rollup_aggregator import aggregate_events
from indeks.services.rollup_writer import write_rollups

logger = logging.getLogger(__name__)

SYNC_STATUS_IN_PROGRESS = "in_progress"
SYNC_STATUS_SUCCESS = "success"
SYNC_STATUS_FAILED = "failed"

_RUN_LOCKS_GUARD = Lock()
# Entries vanish once no run holds the lock.
_RUN_LOCKS: weakref.WeakValueDictionary[tuple[str, date], Lock] = weakref.WeakValueDictionary()


def _run_lock(project_id: str, day: date) -> Lock:
    # Two runs on the same (project, date) would interleave their delete/insert.
    with _RUN_LOCKS_GUARD:
        return _RUN_LOCKS.setdefault((project_id, day), Lock())


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class AnalyticsSyncService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        event_store: EventStore | None = None,
        *,
        fetch_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._session_factory = session_factory
        self._event_store = event_store or SqlEventStore()
        self._fetch_timeout_seconds = fetch_timeout_seconds
        self._clock = clock

    @property
    def fetch_timeout_seconds(self) -> float:
        if self._fetch_timeout_seconds is not None:
            return float(self._fetch_timeout_seconds)
        return float(getattr(settings, "ANALYTICS_EVENT_FETCH_TIMEOUT_SECONDS", 0) or 0)

    # --- sync log ---

    def _open_sync_log(self, db: Session, *, project_id: str, day: date, sync_type: str) -> int:
        log = AnalyticsSyncLog(
            project_id=project_id,
            sync_date=day,
            sync_type=sync_type,
            status=SYNC_STATUS_IN_PROGRESS,
            records_processed=0,
            started_at=self._clock(),
        )
        db.add(log)
        db.commit()
        return int(log.id)

    def _close_sync_log(
        self,
        db: Session,
        log_id: int,
        *,
        status: str,
        records_processed: int | None = None,
        error_message: str | None = None,
    ) -> None:
        log = db.get(AnalyticsSyncLog, log_id)
        if log is None:
            logger.warning("Sync log %s disappeared before it could be closed", log_id)
            return
        log.status = status
        if records_processed is not None:
            log.records_processed = records_processed
        if error_message is not None:
            log.error_message = error_message
        log.completed_at = self._clock()
        db.commit()

    # --- single run ---

    def sync_project_data(
        self,
        project_id: str,
        day: date | str,
        *,
        sync_type: str | None = None,
    ) -> dict[str, Any]:
        """Sync one project for one day. Raises after recording a failed run."""
        day = parse_day(day)
        resolved_type = str(sync_type or getattr(settings, "ANALYTICS_SYNC_TYPE", "daily") or "daily")

        with _run_lock(project_id, day):
            logger.info("Starting sync for project %s on %s", project_id, day.isoformat())
            db = self._session_factory()
            try:
                log_id = self._open_sync_log(db, project_id=project_id, day=day, sync_type=resolved_type)
                try:
                    events = fetch_with_timeout(
                        self._event_store,
                        project_id,
                        day,
                        timeout_seconds=self.fetch_timeout_seconds,
                    )
                    if not events:
                        # Existing rollups for the day are left untouched on an empty batch.
                        logger.info("No events found for project %s on %s", project_id, day.isoformat())
                        self._close_sync_log(db, log_id, status=SYNC_STATUS_SUCCESS, records_processed=0)
                        return {
                            "project_id": project_id,
                            "date": day.isoformat(),
                            "status": SYNC_STATUS_SUCCESS,
                            "records_processed": 0,
                            "sync_log_id": log_id,
                            "tables": {},
                        }

                    result = aggregate_events(events)
                    written = write_rollups(db, project_id=project_id, day=day, result=result)
                except Exception as exc:
                    db.rollback()
                    logger.exception("Sync failed for project %s on %s", project_id, day.isoformat())
                    try:
                        self._close_sync_log(
                            db,
                            log_id,
                            status=SYNC_STATUS_FAILED,
                            error_message=_error_message(exc),
                        )
                    except Exception:
                        db.rollback()
                        logger.exception("Could not record failed sync log %s", log_id)
                    raise

                self._close_sync_log(
                    db,
                    log_id,
                    status=SYNC_STATUS_SUCCESS,
                    records_processed=len(events),
                )
                logger.info(
                    "Sync completed for project %s: %s events processed",
                    project_id,
                    len(events),
                )
                return {
                    "project_id": project_id,
                    "date": day.isoformat(),
                    "status": SYNC_STATUS_SUCCESS,
                    "records_processed": len(events),
                    "sync_log_id": log_id,
                    "tables": written,
                }
            finally:
                db.close()

    # --- sweeps ---

    def list_projects(self, *, active_only: bool = False) -> list[dict[str, Any]]:
        db = self._session_factory()
        try:
            query = db.query(Project)
            if active_only:
                query = query.filter(Project.is_active.is_(True))
            rows = query.order_by(Project.created_at.asc(), Project.id.asc()).all()
            return [
                {"id": str(row.id), "title": row.title, "is_active": bool(row.is_active)}
                for row in rows
            ]
        finally:
            db.close()

    def sync_all_projects(self, day: date | str) -> dict[str, Any]:
        """Sync every active project for one day; a failing project does not stop the sweep."""
        day = parse_day(day)
        logger.info("Starting sync for all projects on %s", day.isoformat())
        projects = self.list_projects(active_only=True)
        logger.info("Found %s active projects", len(projects))

        succeeded: list[str] = []
        failed: list[dict[str, str]] = []
        records_processed = 0
        for project in projects:
            project_id = project["id"]
            try:
                outcome = self.sync_project_data(project_id, day)
            except Exception as exc:
                logger.warning("Failed to sync project %s: %s", project_id, exc)
                failed.append({"project_id": project_id, "error": _error_message(exc)})
                continue
            succeeded.append(project_id)
            records_processed += int(outcome.get("records_processed") or 0)

        logger.info(
            "Completed sync for all projects on %s (ok=%s failed=%s)",
            day.isoformat(),
            len(succeeded),
            len(failed),
        )
        return {
            "date": day.isoformat(),
            "projects": len(projects),
            "succeeded": succeeded,
            "failed": failed,
            "records_processed": records_processed,
        }

    def sync_yesterday(self) -> dict[str, Any]:
        return self.sync_all_projects(self._clock().date() - timedelta(days=1))

    def sync_today(self) -> dict[str, Any]:
        return self.sync_all_projects(self._clock().date())

    def sync_date_range(self, start: date | str, end: date | str) -> list[dict[str, Any]]:
        """Sweep every calendar day from start to end, inclusive."""
        start_day = parse_day(start)
        end_day = parse_day(end)
        if end_day < start_day:
            raise ValueError(
                f"Range end {end_day.isoformat()} is before start {start_day.isoformat()}"
            )
        results = []
        current = start_day
        while current <= end_day:
            results.append(self.sync_all_projects(current))
            current += timedelta(days=1)
        return results


analytics_sync_service = AnalyticsSyncService()
