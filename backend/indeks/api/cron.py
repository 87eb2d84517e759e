"""
Scheduled job triggers.

Point an external scheduler (cron, platform cron jobs) at
`/api/cron/sync-analytics`; it defaults to syncing yesterday.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from indeks.core.config import settings
from indeks.core.cron_auth import require_cron_auth
from indeks.core.time import now_utc
from indeks.services.analytics_sync import analytics_sync_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_sync(sync_type: str) -> dict:
    if sync_type == "yesterday":
        return analytics_sync_service.sync_yesterday()
    if sync_type == "today":
        return analytics_sync_service.sync_today()
    return analytics_sync_service.sync_all_projects(sync_type)


@router.api_route("/sync-analytics", methods=["GET", "POST"])
def trigger_analytics_sync(
    sync_type: str = Query("yesterday", alias="type"),
    _auth: None = Depends(require_cron_auth),
):
    """Run the daily rollup sweep for yesterday, today, or an explicit YYYY-MM-DD."""
    if not bool(getattr(settings, "ANALYTICS_SYNC_ENABLED", True)):
        raise HTTPException(status_code=503, detail="Analytics sync is disabled")

    clean_type = str(sync_type or "yesterday").strip().lower() or "yesterday"
    logger.info("Starting scheduled analytics sync (%s)", clean_type)
    try:
        result = _run_sync(clean_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Analytics sync failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Sync failed", "message": str(e) or "Unknown error"},
        )

    return {
        "success": True,
        "message": f"Analytics sync completed for {clean_type}",
        "timestamp": now_utc().isoformat(),
        "result": result,
    }
