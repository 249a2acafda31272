"""
Persistent store for the Strava core: token, activities, best efforts.
Every mutating call commits its own unit of work so a sync interrupted mid-way
leaves the pages already saved in place.
"""
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stravasync.models.strava_activity import StravaActivity
from stravasync.models.strava_best_effort import StravaBestEffort
from stravasync.models.strava_token import StravaToken
from stravasync.schemas.strava import PersonalBest
from stravasync.services.strava_stats import resolve_personal_bests

logger = logging.getLogger(__name__)

# Columns never overwritten when an activity is re-synced
_ACTIVITY_IMMUTABLE = frozenset({"id", "athlete_id", "created_at"})


def as_utc(dt: datetime | None) -> datetime | None:
    """Stored timestamps are UTC; some drivers (SQLite) hand them back naive."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class StravaStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    # Token

    async def get_token(self) -> StravaToken | None:
        # Another session may have refreshed the row since this one last loaded it
        r = await self.session.execute(
            select(StravaToken)
            .order_by(StravaToken.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return r.scalar_one_or_none()

    async def get_athlete_id(self) -> int | None:
        r = await self.session.execute(select(StravaToken.athlete_id).order_by(StravaToken.id).limit(1))
        return r.scalar_one_or_none()

    async def save_token(
        self,
        *,
        athlete_id: int,
        access_token: str,
        encrypted_refresh_token: str,
        expires_at: datetime,
    ) -> StravaToken:
        """Upsert the token for athlete_id and drop any other athlete's row (single connection)."""
        await self.session.execute(delete(StravaToken).where(StravaToken.athlete_id != athlete_id))
        r = await self.session.execute(select(StravaToken).where(StravaToken.athlete_id == athlete_id))
        token = r.scalar_one_or_none()
        now = datetime.now(timezone.utc)
        if token:
            token.access_token = access_token
            token.encrypted_refresh_token = encrypted_refresh_token
            token.expires_at = expires_at
            token.updated_at = now
        else:
            token = StravaToken(
                athlete_id=athlete_id,
                access_token=access_token,
                encrypted_refresh_token=encrypted_refresh_token,
                expires_at=expires_at,
                updated_at=now,
            )
            self.session.add(token)
        await self.session.commit()
        return token

    async def delete_token(self) -> None:
        await self.session.execute(delete(StravaToken))
        await self.session.commit()

    # Activities

    async def get_all_activities(self) -> list[StravaActivity]:
        r = await self.session.execute(select(StravaActivity).order_by(StravaActivity.start_date.desc()))
        return list(r.scalars().all())

    async def get_activity_by_id(self, activity_id: int) -> StravaActivity | None:
        r = await self.session.execute(select(StravaActivity).where(StravaActivity.id == activity_id))
        return r.scalar_one_or_none()

    async def get_latest_activity_date(self) -> datetime | None:
        r = await self.session.execute(select(func.max(StravaActivity.start_date)))
        return as_utc(r.scalar_one_or_none())

    async def save_activities(self, batch: Iterable[Mapping[str, Any]]) -> int:
        """Insert new activities and overwrite mutable fields of existing ones. Returns rows written."""
        rows = {int(values["id"]): values for values in batch}
        if not rows:
            return 0
        r = await self.session.execute(select(StravaActivity).where(StravaActivity.id.in_(list(rows))))
        existing = {a.id: a for a in r.scalars().all()}
        for activity_id, values in rows.items():
            row = existing.get(activity_id)
            if row:
                for key, value in values.items():
                    if key not in _ACTIVITY_IMMUTABLE:
                        setattr(row, key, value)
            else:
                self.session.add(StravaActivity(**values))
        await self.session.commit()
        logger.debug("Saved %s activities (%s new)", len(rows), len(rows) - len(existing))
        return len(rows)

    async def delete_all_activities(self) -> None:
        await self.session.execute(delete(StravaActivity))
        await self.session.commit()

    # Best efforts

    async def get_activity_ids_without_best_efforts(self) -> list[int]:
        has_effort = exists().where(StravaBestEffort.activity_id == StravaActivity.id)
        r = await self.session.execute(
            select(StravaActivity.id).where(~has_effort).order_by(StravaActivity.start_date.desc())
        )
        return list(r.scalars().all())

    async def save_best_efforts(self, batch: Iterable[Mapping[str, Any]]) -> int:
        """Insert efforts whose id is not stored yet; existing rows are never touched. Returns rows inserted."""
        rows = {int(values["id"]): values for values in batch}
        if not rows:
            return 0
        r = await self.session.execute(select(StravaBestEffort.id).where(StravaBestEffort.id.in_(list(rows))))
        present = set(r.scalars().all())
        inserted = 0
        for effort_id, values in rows.items():
            if effort_id in present:
                continue
            self.session.add(StravaBestEffort(**values))
            inserted += 1
        await self.session.commit()
        return inserted

    async def get_all_best_efforts(self) -> list[StravaBestEffort]:
        r = await self.session.execute(select(StravaBestEffort))
        return list(r.scalars().all())

    async def get_personal_bests(self) -> list[PersonalBest]:
        return resolve_personal_bests(await self.get_all_best_efforts())

    async def delete_all_best_efforts(self) -> None:
        await self.session.execute(delete(StravaBestEffort))
        await self.session.commit()
