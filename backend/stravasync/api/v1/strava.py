"""Strava: public read endpoints (activities, stats, personal bests) and admin connect/sync/disconnect."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from stravasync.api.deps import get_strava_service, require_admin
from stravasync.schemas.strava import (
    ActivityOut,
    AuthUrlResponse,
    CallbackRequest,
    CallbackResult,
    ConnectionStatus,
    PersonalBest,
    StravaStats,
    SyncResult,
)
from stravasync.services.strava_service import StravaService

router = APIRouter(prefix="/strava", tags=["strava"])

Service = Annotated[StravaService, Depends(get_strava_service)]
Admin = Annotated[str, Depends(require_admin)]


@router.get("/activities", response_model=list[ActivityOut])
async def list_activities(service: Service):
    """All stored runs, newest first."""
    return await service.list_activities()


@router.get("/activities/{activity_id}", response_model=ActivityOut)
async def get_activity(activity_id: int, service: Service):
    activity = await service.get_activity(activity_id)
    if activity is None:
        raise HTTPException(status_code=404, detail="Activity not found.")
    return activity


@router.get("/stats", response_model=StravaStats)
async def get_stats(service: Service):
    return await service.stats()


@router.get("/status", response_model=ConnectionStatus)
async def get_status(service: Service):
    return ConnectionStatus(connected=await service.is_connected())


@router.get("/pbs", response_model=list[PersonalBest])
async def get_personal_bests(service: Service):
    return await service.personal_bests()


@router.get("/auth/url", response_model=AuthUrlResponse)
async def get_auth_url(service: Service, _admin: Admin, redirect_uri: str | None = None):
    """Strava authorize URL. Falls back to STRAVA_REDIRECT_URI when redirect_uri is omitted."""
    from stravasync.config import settings

    uri = redirect_uri or settings.strava_redirect_uri
    if not settings.strava_client_id or not uri:
        raise HTTPException(status_code=503, detail="Strava app not configured.")
    return AuthUrlResponse(url=service.authorization_url(uri))


@router.post("/auth/callback", response_model=CallbackResult)
async def handle_callback(body: CallbackRequest, service: Service, _admin: Admin):
    """Exchange the authorization code and store the token. Errors surface as {"error": ...}."""
    token = await service.exchange_code(body.code)
    return CallbackResult(athlete_id=token.athlete_id)


@router.post("/sync", response_model=SyncResult)
async def trigger_sync(service: Service, _admin: Admin):
    count = await service.sync()
    return SyncResult(synced_count=count)


@router.delete("/disconnect", status_code=204)
async def disconnect(service: Service, _admin: Admin) -> Response:
    await service.disconnect()
    return Response(status_code=204)
