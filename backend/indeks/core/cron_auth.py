"""Shared-secret auth dependency for scheduler-triggered endpoints."""
from __future__ import annotations

import hmac

from fastapi import HTTPException, Request, status

from indeks.core.config import settings


def _extract_token(request: Request) -> str:
    auth_header = request.headers.get("authorization") or ""
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return ""


def require_cron_auth(request: Request) -> None:
    expected_secret = str(getattr(settings, "CRON_SECRET", "") or "").strip()
    if not expected_secret:
        return

    presented = _extract_token(request)
    if not presented or not hmac.compare_digest(presented, expected_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
