"""Persist aggregation output into the analytics_* rollup tables."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
import logging

from sqlalchemy import delete
from sqlalchemy.orm import Session

from indeks.models.models import (
    ROLLUP_MODELS,
    AnalyticsClickedElement,
    AnalyticsCustomEvent,
    AnalyticsDaily,
    AnalyticsDevice,
    AnalyticsEngagement,
    AnalyticsError,
    AnalyticsEventType,
    AnalyticsFormEvent,
    AnalyticsMedia,
    AnalyticsOutbound,
    AnalyticsPerformance,
    AnalyticsReferrer,
    AnalyticsScrollDepth,
    AnalyticsSearch,
    AnalyticsSessionPath,
    AnalyticsTopPage,
    AnalyticsTrafficSource,
    AnalyticsVisitors,
)
from indeks.services.rollup_aggregator import AggregationResult

logger = logging.getLogger(__name__)


def delete_rollups(db: Session, *, project_id: str, day: date) -> None:
    for model in ROLLUP_MODELS:
        db.execute(
            delete(model).where(model.project_id == project_id, model.date == day)
        )


def _rows_for(result: AggregationResult) -> list[tuple[type, list]]:
    return [
        (AnalyticsDaily, [result.summary]),
        (AnalyticsTopPage, result.top_pages),
        (AnalyticsReferrer, result.referrers),
        (AnalyticsDevice, result.devices),
        (AnalyticsEventType, result.event_types),
        (AnalyticsClickedElement, result.clicked_elements),
        (AnalyticsScrollDepth, result.scroll_depth),
        (AnalyticsError, result.errors),
        (AnalyticsEngagement, result.engagement),
        (AnalyticsTrafficSource, result.traffic_sources),
        (AnalyticsFormEvent, result.forms),
        (AnalyticsPerformance, result.performance),
        (AnalyticsMedia, result.media),
        (AnalyticsOutbound, result.outbound),
        (AnalyticsSearch, result.searches),
        (AnalyticsCustomEvent, result.custom_events),
        (AnalyticsSessionPath, result.session_paths),
        (AnalyticsVisitors, [result.visitors]),
    ]


def write_rollups(db: Session, *, project_id: str, day: date, result: AggregationResult) -> dict[str, int]:
    """
    Replace every rollup row of (project_id, day) with `result`.

    Deletes and inserts share one transaction: on any failure the session is
    rolled back and the previous rows stay in place. Empty dimensions insert nothing.
    """
    written: dict[str, int] = {}
    try:
        delete_rollups(db, project_id=project_id, day=day)
        for model, rows in _rows_for(result):
            if not rows:
                continue
            db.add_all(
                [model(project_id=project_id, date=day, **asdict(row)) for row in rows]
            )
            written[model.__tablename__] = len(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.debug("Wrote rollups for project %s on %s: %s", project_id, day.isoformat(), written)
    return written
