"""FastAPI dependencies: admin check, shared HTTP client, Strava service per request."""

from typing import Annotated

import httpx
from fastapi import Depends, HTTPException, Request
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from stravasync.config import settings
from stravasync.core.auth import ADMIN_ROLE, decode_token
from stravasync.db.session import get_db
from stravasync.services.http_client import get_http_client
from stravasync.services.strava_service import StravaService


async def require_admin(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = auth_header[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(status_code=401, detail="Admin token required")
    return str(payload.get("sub") or "")


def get_http() -> httpx.AsyncClient:
    return get_http_client()


async def get_strava_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    http: Annotated[httpx.AsyncClient, Depends(get_http)],
) -> StravaService:
    state = request.app.state
    return StravaService.create(
        session,
        http,
        settings,
        limiter=getattr(state, "enrichment_limiter", None),
        locks=getattr(state, "sync_locks", None),
    )
