"""
Operations exposed to the API and CLI: connect, sync, read stats and personal bests, disconnect.
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import timedelta

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from stravasync.config import Settings
from stravasync.core.errors import FetchError, NotConnectedError
from stravasync.core.rate_limit import RateLimiter
from stravasync.models.strava_activity import StravaActivity
from stravasync.models.strava_token import StravaToken
from stravasync.schemas.strava import PersonalBest, StravaStats
from stravasync.services.best_efforts import BestEffortEnricher
from stravasync.services.strava_client import StravaClient
from stravasync.services.strava_stats import compute_stats
from stravasync.services.strava_store import StravaStore
from stravasync.services.strava_sync import ActivitySyncEngine
from stravasync.services.strava_tokens import TokenManager

logger = logging.getLogger(__name__)


class SyncLocks:
    """One lock per athlete so overlapping sync requests run one after another."""

    def __init__(self) -> None:
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def for_athlete(self, athlete_id: int) -> asyncio.Lock:
        return self._locks[athlete_id]


class StravaService:
    def __init__(
        self,
        store: StravaStore,
        client: StravaClient,
        *,
        limiter: RateLimiter | None = None,
        locks: SyncLocks | None = None,
        refresh_margin: timedelta = timedelta(minutes=5),
        sync_deadline: float | None = None,
    ):
        self.store = store
        self.client = client
        self.tokens = TokenManager(store, client, refresh_margin=refresh_margin)
        self.enricher = BestEffortEnricher(store, client, limiter)
        self.engine = ActivitySyncEngine(store, client, self.tokens, self.enricher)
        self.locks = locks or SyncLocks()
        self.sync_deadline = sync_deadline

    @classmethod
    def create(
        cls,
        session: AsyncSession,
        http: httpx.AsyncClient,
        settings: Settings,
        *,
        limiter: RateLimiter | None = None,
        locks: SyncLocks | None = None,
    ) -> StravaService:
        return cls(
            StravaStore(session),
            StravaClient.from_settings(http, settings),
            limiter=limiter,
            locks=locks,
            refresh_margin=timedelta(seconds=settings.strava_token_refresh_margin_seconds),
            sync_deadline=settings.strava_sync_deadline_seconds or None,
        )

    def authorization_url(self, redirect_uri: str) -> str:
        return self.tokens.authorization_url(redirect_uri)

    async def exchange_code(self, code: str) -> StravaToken:
        return await self.tokens.exchange_code(code)

    async def is_connected(self) -> bool:
        return await self.store.get_token() is not None

    async def sync(self) -> int:
        athlete_id = await self.store.get_athlete_id()
        if athlete_id is None:
            raise NotConnectedError()
        # Token is loaded (and refreshed if needed) only once the lock is held
        async with self.locks.for_athlete(athlete_id):
            if self.sync_deadline is None:
                return await self.engine.sync()
            try:
                return await asyncio.wait_for(self.engine.sync(), timeout=self.sync_deadline)
            except asyncio.TimeoutError as e:
                await self.store.session.rollback()
                logger.error("Strava sync exceeded deadline of %ss", self.sync_deadline)
                raise FetchError(f"Strava sync exceeded deadline of {self.sync_deadline:g}s") from e

    async def stats(self) -> StravaStats:
        return compute_stats(await self.store.get_all_activities())

    async def personal_bests(self) -> list[PersonalBest]:
        return await self.store.get_personal_bests()

    async def list_activities(self) -> list[StravaActivity]:
        return await self.store.get_all_activities()

    async def get_activity(self, activity_id: int) -> StravaActivity | None:
        return await self.store.get_activity_by_id(activity_id)

    async def disconnect(self) -> None:
        """Delete best efforts, the token, then activities. Irreversible."""
        await self.store.delete_all_best_efforts()
        await self.store.delete_token()
        await self.store.delete_all_activities()
        logger.info("Strava disconnected; all synced data removed")
