"""Response schemas for the Strava API router."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    athlete_id: int
    name: str
    activity_type: str
    distance_m: float
    moving_time_sec: int
    elapsed_time_sec: int
    total_elevation_gain_m: float | None = None
    start_date: datetime
    start_date_local: datetime
    average_speed_m_s: float | None = None
    max_speed_m_s: float | None = None
    average_heartrate: float | None = None
    max_heartrate: int | None = None
    summary_polyline: str | None = None
    calories: int | None = None
    location_city: str | None = None
    location_state: str | None = None
    location_country: str | None = None
    created_at: datetime | None = None


class StravaStats(BaseModel):
    total_runs: int = 0
    total_distance_km: float = 0.0
    total_time_minutes: int = 0
    total_elevation_gain: int = 0
    average_pace_min_per_km: float = 0.0
    last_run_date: datetime | None = None


class PersonalBest(BaseModel):
    """Fastest best effort on record for one distance bucket. Derived on every query."""

    name: str
    distance_m: float
    best_time_sec: int
    achieved_date: datetime
    activity_id: int


class ConnectionStatus(BaseModel):
    connected: bool


class AuthUrlResponse(BaseModel):
    url: str


class CallbackRequest(BaseModel):
    code: str


class CallbackResult(BaseModel):
    success: bool = True
    athlete_id: int


class SyncResult(BaseModel):
    synced_count: int
