"""
Best-effort enrichment: for every stored activity without best efforts, fetch the
detailed activity and insert its best efforts. Failures are per activity; the pass
always runs to the end.
"""
import logging
from dataclasses import dataclass
from typing import Any

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError

from stravasync.core.errors import EnrichmentError
from stravasync.core.rate_limit import NoopRateLimiter, RateLimiter
from stravasync.schemas.strava_api import BestEffortPayload
from stravasync.services.strava_client import StravaClient
from stravasync.services.strava_store import StravaStore

logger = logging.getLogger(__name__)

ENRICHMENT_FAILURES = Counter(
    "strava_enrichment_failures_total",
    "Detail fetches skipped during the best-effort pass",
)
BEST_EFFORTS_SAVED = Counter(
    "strava_best_efforts_saved_total",
    "Best-effort rows inserted",
)


@dataclass
class EnrichmentReport:
    attempted: int = 0
    enriched: int = 0
    efforts_saved: int = 0
    failed: int = 0


def best_effort_row(activity_id: int, effort: BestEffortPayload) -> dict[str, Any]:
    return {
        "id": effort.id,
        # Owner is the activity being enriched so the reference always resolves
        "activity_id": activity_id,
        "athlete_id": effort.athlete.id,
        "name": effort.name,
        "distance_m": effort.distance,
        "elapsed_time_sec": effort.elapsed_time,
        "moving_time_sec": effort.moving_time,
        "start_date": effort.start_date,
        "pr_rank": effort.pr_rank,
    }


class BestEffortEnricher:
    def __init__(self, store: StravaStore, client: StravaClient, limiter: RateLimiter | None = None):
        self.store = store
        self.client = client
        self.limiter = limiter or NoopRateLimiter()

    async def _enrich_one(self, access_token: str, activity_id: int) -> int:
        detail = await self.client.get_activity_detail(access_token, activity_id)
        if not detail.best_efforts:
            return 0
        rows = [best_effort_row(activity_id, e) for e in detail.best_efforts]
        try:
            return await self.store.save_best_efforts(rows)
        except SQLAlchemyError as e:
            await self.store.session.rollback()
            raise EnrichmentError(activity_id, f"failed to store best efforts: {e}") from e

    async def run(self, access_token: str) -> EnrichmentReport:
        report = EnrichmentReport()
        activity_ids = await self.store.get_activity_ids_without_best_efforts()
        if not activity_ids:
            return report
        logger.info("Best-effort pass: %s activities without best efforts", len(activity_ids))
        for activity_id in activity_ids:
            await self.limiter.acquire()
            report.attempted += 1
            try:
                saved = await self._enrich_one(access_token, activity_id)
            except EnrichmentError as e:
                report.failed += 1
                ENRICHMENT_FAILURES.inc()
                logger.warning("Best-effort fetch skipped: %s", e.message)
                continue
            if saved:
                report.enriched += 1
                report.efforts_saved += saved
                BEST_EFFORTS_SAVED.inc(saved)
        logger.info(
            "Best-effort pass done: attempted=%s enriched=%s efforts_saved=%s failed=%s",
            report.attempted,
            report.enriched,
            report.efforts_saved,
            report.failed,
        )
        return report
