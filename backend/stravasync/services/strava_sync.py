"""
Incremental activity sync: page through /athlete/activities after the newest stored
start date, keep runs, upsert each page before fetching the next, then backfill best efforts.
"""
import logging
from typing import Any

from prometheus_client import Counter

from stravasync.services.best_efforts import BestEffortEnricher
from stravasync.services.strava_client import PAGE_SIZE, StravaClient
from stravasync.services.strava_store import StravaStore
from stravasync.services.strava_tokens import TokenManager
from stravasync.schemas.strava_api import SummaryActivity

logger = logging.getLogger(__name__)

RUNNING_TYPES = frozenset({"Run", "TrailRun", "VirtualRun"})

ACTIVITIES_SYNCED = Counter("strava_activities_synced_total", "Running activities upserted by sync")


def is_running(item: SummaryActivity) -> bool:
    return item.type in RUNNING_TYPES


def activity_row(item: SummaryActivity) -> dict[str, Any]:
    """Map a Strava summary activity onto strava_activities columns."""
    return {
        "id": item.id,
        "athlete_id": item.athlete.id,
        "name": item.name,
        "activity_type": item.type,
        "distance_m": item.distance,
        "moving_time_sec": item.moving_time,
        "elapsed_time_sec": item.elapsed_time,
        "total_elevation_gain_m": item.total_elevation_gain,
        "start_date": item.start_date,
        "start_date_local": item.start_date_local,
        "average_speed_m_s": item.average_speed,
        "max_speed_m_s": item.max_speed,
        "average_heartrate": item.average_heartrate,
        "max_heartrate": int(item.max_heartrate) if item.max_heartrate is not None else None,
        "summary_polyline": item.map.summary_polyline if item.map else None,
        "calories": int(item.calories) if item.calories is not None else None,
        "location_city": item.location_city,
        "location_state": item.location_state,
        "location_country": item.location_country,
    }


class ActivitySyncEngine:
    def __init__(
        self,
        store: StravaStore,
        client: StravaClient,
        tokens: TokenManager,
        enricher: BestEffortEnricher,
        *,
        page_size: int = PAGE_SIZE,
    ):
        self.store = store
        self.client = client
        self.tokens = tokens
        self.enricher = enricher
        self.page_size = page_size

    async def sync(self) -> int:
        """
        Fetch new activities and persist runs. Returns the number of runs kept this run.
        FetchError / AuthenticationError propagate; pages saved before the failure stay committed.
        """
        token = await self.tokens.valid_token()
        cursor = await self.store.get_latest_activity_date()
        logger.info(
            "Strava sync: athlete_id=%s after=%s",
            token.athlete_id,
            cursor.isoformat() if cursor else "beginning",
        )
        kept_total = 0
        page = 1
        while True:
            items = await self.client.list_activities(
                token.access_token, page=page, per_page=self.page_size, after=cursor
            )
            runs = [activity_row(item) for item in items if is_running(item)]
            if runs:
                await self.store.save_activities(runs)
                ACTIVITIES_SYNCED.inc(len(runs))
            kept_total += len(runs)
            logger.debug("Strava sync page %s: received=%s kept=%s", page, len(items), len(runs))
            if len(items) < self.page_size:
                break
            page += 1
        logger.info("Strava sync: athlete_id=%s kept %s runs over %s page(s)", token.athlete_id, kept_total, page)
        await self.enricher.run(token.access_token)
        return kept_total
