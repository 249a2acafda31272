"""Pytest configuration: in-memory SQLite, a fake Strava API behind httpx.MockTransport, API client."""

import os
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test config before app imports so settings/engine use it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENCRYPTION_KEY", "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA=")
os.environ.setdefault("STRAVA_CLIENT_ID", "12345")
os.environ.setdefault("STRAVA_CLIENT_SECRET", "client-secret")

from stravasync.db.base import Base
from stravasync.models import StravaActivity, StravaBestEffort, StravaToken  # noqa: F401
from stravasync.services.crypto import encrypt_value
from stravasync.services.strava_client import StravaClient
from stravasync.services.strava_service import StravaService
from stravasync.services.strava_store import StravaStore

OAUTH_BASE = "https://www.strava.com/oauth"
API_BASE = "https://www.strava.com/api/v3"
ATHLETE_ID = 777


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def make_activity(
    activity_id: int,
    start: datetime,
    *,
    type: str = "Run",
    distance: float = 5000.0,
    moving_time: int = 1500,
    elevation: float | None = 12.0,
    name: str | None = None,
) -> dict:
    """Strava summary-activity JSON. start_date_local is start + 2h (wall clock, "Z" suffixed like Strava)."""
    return {
        "id": activity_id,
        "athlete": {"id": ATHLETE_ID, "resource_state": 1},
        "name": name or f"Run {activity_id}",
        "type": type,
        "sport_type": type,
        "distance": distance,
        "moving_time": moving_time,
        "elapsed_time": moving_time + 60,
        "total_elevation_gain": elevation,
        "start_date": iso(start),
        "start_date_local": iso(start + timedelta(hours=2)),
        "average_speed": distance / moving_time if moving_time else 0.0,
        "max_speed": 5.1,
        "average_heartrate": 151.4,
        "max_heartrate": 178.0,
        "map": {"id": f"a{activity_id}", "summary_polyline": "abc123"},
        "location_city": None,
        "location_country": "Norway",
    }


def make_best_effort(
    effort_id: int,
    activity_id: int,
    *,
    name: str = "5K",
    distance: float = 5000.0,
    moving_time: int = 1200,
    start: datetime | None = None,
    pr_rank: int | None = None,
) -> dict:
    start = start or datetime(2024, 1, 1, 7, 0, tzinfo=timezone.utc)
    return {
        "id": effort_id,
        "resource_state": 2,
        "name": name,
        "activity": {"id": activity_id, "resource_state": 1},
        "athlete": {"id": ATHLETE_ID, "resource_state": 1},
        "elapsed_time": moving_time + 3,
        "moving_time": moving_time,
        "start_date": iso(start),
        "start_date_local": iso(start),
        "distance": distance,
        "pr_rank": pr_rank,
    }


class FakeStrava:
    """In-memory Strava API. Records every request for assertions."""

    def __init__(self):
        self.activities: list[dict] = []
        self.details: dict[int, dict] = {}
        self.detail_status: dict[int, int] = {}
        self.list_status: dict[int, int] = {}  # page -> forced HTTP status
        self.token_status = 200
        self.token_counter = 0
        self.expires_in = timedelta(hours=6)
        self.requests: list[httpx.Request] = []

    # helpers for assertions

    def calls(self, method: str, path_prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]

    @property
    def token_calls(self) -> list[httpx.Request]:
        return self.calls("POST", "/oauth/token")

    @property
    def list_calls(self) -> list[httpx.Request]:
        return self.calls("GET", "/api/v3/athlete/activities")

    @property
    def detail_calls(self) -> list[httpx.Request]:
        return self.calls("GET", "/api/v3/activities/")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/oauth/token":
            return self._token(request)
        if request.method == "GET" and path == "/api/v3/athlete/activities":
            return self._list(request)
        if request.method == "GET" and path.startswith("/api/v3/activities/"):
            return self._detail(int(path.rsplit("/", 1)[1]))
        return httpx.Response(404, json={"message": "Record Not Found"})

    def _token(self, request: httpx.Request) -> httpx.Response:
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"message": "Authorization Error"})
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.token_counter += 1
        body = {
            "token_type": "Bearer",
            "access_token": f"access-{self.token_counter}",
            "refresh_token": f"refresh-{self.token_counter}",
            "expires_at": int((datetime.now(timezone.utc) + self.expires_in).timestamp()),
        }
        if form.get("grant_type") == "authorization_code":
            body["athlete"] = {"id": ATHLETE_ID, "firstname": "Test"}
        return httpx.Response(200, json=body)

    def _list(self, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        per_page = int(request.url.params.get("per_page", "30"))
        if page in self.list_status:
            return httpx.Response(self.list_status[page], json={"message": "error"})
        after = request.url.params.get("after")
        items = sorted(self.activities, key=lambda a: a["start_date"])
        if after is not None:
            cutoff = int(after)
            items = [
                a for a in items
                if datetime.fromisoformat(a["start_date"].replace("Z", "+00:00")).timestamp() > cutoff
            ]
        start = (page - 1) * per_page
        return httpx.Response(200, json=items[start:start + per_page])

    def _detail(self, activity_id: int) -> httpx.Response:
        status = self.detail_status.get(activity_id)
        if status is not None:
            return httpx.Response(status, json={"message": "error"})
        if activity_id not in self.details:
            summary = next((a for a in self.activities if a["id"] == activity_id), None)
            if summary is None:
                return httpx.Response(404, json={"message": "Record Not Found"})
            return httpx.Response(200, json={**summary, "best_efforts": []})
        return httpx.Response(200, json=self.details[activity_id])


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    maker = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session


@pytest.fixture
def fake_strava() -> FakeStrava:
    return FakeStrava()


@pytest_asyncio.fixture
async def http(fake_strava):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_strava.handler)) as client:
        yield client


@pytest.fixture
def strava_client(http) -> StravaClient:
    return StravaClient(
        http,
        client_id="12345",
        client_secret="client-secret",
        oauth_base=OAUTH_BASE,
        api_base=API_BASE,
    )


@pytest.fixture
def store(db_session) -> StravaStore:
    return StravaStore(db_session)


@pytest.fixture
def service(store, strava_client) -> StravaService:
    return StravaService(store, strava_client)


@pytest_asyncio.fixture
async def connected(store) -> StravaToken:
    """A stored token that is valid for another six hours."""
    return await store.save_token(
        athlete_id=ATHLETE_ID,
        access_token="stored-access",
        encrypted_refresh_token=encrypt_value("stored-refresh"),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=6),
    )


@pytest_asyncio.fixture
async def client(db_session, http):
    """API client with get_db and the Strava HTTP client overridden."""
    from stravasync.api.deps import get_http
    from stravasync.db.session import get_db
    from stravasync.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http] = lambda: http
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    from stravasync.core.auth import create_admin_token

    return {"Authorization": f"Bearer {create_admin_token()}"}
