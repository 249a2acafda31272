"""Boundary models for Strava v3 payloads. Responses are validated into these on receipt."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


class _StravaPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AthleteRef(_StravaPayload):
    id: int


class ActivityRef(_StravaPayload):
    id: int


class MapSummary(_StravaPayload):
    summary_polyline: str | None = None


class TokenResponse(_StravaPayload):
    """Response of both the authorization-code and refresh-token grants (athlete only on the former)."""

    access_token: str
    refresh_token: str
    expires_at: int
    athlete: AthleteRef | None = None

    @property
    def expires_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


def _to_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class SummaryActivity(_StravaPayload):
    """One item of GET /athlete/activities."""

    id: int
    athlete: AthleteRef
    name: str = ""
    type: str
    distance: float = 0.0
    moving_time: int = 0
    elapsed_time: int = 0
    total_elevation_gain: float | None = None
    start_date: datetime
    start_date_local: datetime
    average_speed: float | None = None
    max_speed: float | None = None
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    map: MapSummary | None = None
    calories: float | None = None
    location_city: str | None = None
    location_state: str | None = None
    location_country: str | None = None

    @field_validator("start_date")
    @classmethod
    def _start_date_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)

    @field_validator("start_date_local")
    @classmethod
    def _start_date_local_naive(cls, v: datetime) -> datetime:
        # Strava suffixes local wall-clock time with "Z"; the offset is meaningless here
        return v.replace(tzinfo=None)


class BestEffortPayload(_StravaPayload):
    id: int
    activity: ActivityRef | None = None
    athlete: AthleteRef
    name: str
    distance: float
    elapsed_time: int
    moving_time: int
    start_date: datetime
    pr_rank: int | None = None

    @field_validator("start_date")
    @classmethod
    def _start_date_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class DetailedActivity(_StravaPayload):
    """GET /activities/{id}; only the embedded best efforts are consumed."""

    id: int
    best_efforts: list[BestEffortPayload] | None = None


activity_page_adapter = TypeAdapter(list[SummaryActivity])
