"""
Operator CLI for the analytics rollup sync.

Usage examples:
  indeks-sync project 3f0c... 2026-02-09
  indeks-sync all 2026-02-09
  indeks-sync yesterday
  indeks-sync today
  indeks-sync range 2026-02-01 2026-02-07
  indeks-sync list
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from indeks.core.config import settings
from indeks.core.time import now_utc
from indeks.services.analytics_sync import AnalyticsSyncService, analytics_sync_service

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="indeks-sync",
        description="Aggregate raw analytics events into daily rollup tables.",
        epilog="Date format: YYYY-MM-DD (UTC). Omitted dates default to today.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    project = sub.add_parser("project", help="Sync a specific project for a date.")
    project.add_argument("project_id")
    project.add_argument("date", nargs="?", default=None)

    all_projects = sub.add_parser("all", help="Sync all active projects for a date.")
    all_projects.add_argument("date", nargs="?", default=None)

    sub.add_parser("yesterday", help="Sync all active projects for yesterday.")
    sub.add_parser("today", help="Sync all active projects for today.")

    date_range = sub.add_parser("range", help="Sync all active projects for every day in a range (inclusive).")
    date_range.add_argument("start")
    date_range.add_argument("end")

    sub.add_parser("list", help="List all projects.")
    return parser


def _run(args: argparse.Namespace, service: AnalyticsSyncService) -> Any:
    today = now_utc().date().isoformat()

    if args.command == "project":
        return service.sync_project_data(args.project_id, args.date or today)
    if args.command == "all":
        return service.sync_all_projects(args.date or today)
    if args.command == "yesterday":
        return service.sync_yesterday()
    if args.command == "today":
        return service.sync_today()
    if args.command == "range":
        return service.sync_date_range(args.start, args.end)
    if args.command == "list":
        return {"projects": service.list_projects()}
    raise SystemExit(2)


def main(argv: Sequence[str] | None = None, *, service: AnalyticsSyncService | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    service = service or analytics_sync_service

    try:
        payload = _run(args, service)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.error("Sync command %s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
