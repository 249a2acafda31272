"""Summary statistics over stored runs and personal-best resolution over stored best efforts."""

from collections.abc import Iterable

from stravasync.models.strava_activity import StravaActivity
from stravasync.models.strava_best_effort import StravaBestEffort
from stravasync.schemas.strava import PersonalBest, StravaStats


def compute_stats(activities: Iterable[StravaActivity]) -> StravaStats:
    """
    Totals over all activities. Empty input gives an all-zero result.
    Pace uses the unrounded totals: (moving seconds / 60) / (meters / 1000).
    """
    activities = list(activities)
    if not activities:
        return StravaStats()
    total_distance = sum(a.distance_m or 0.0 for a in activities)
    total_time = sum(a.moving_time_sec or 0 for a in activities)
    total_elevation = sum(a.total_elevation_gain_m or 0.0 for a in activities)
    pace = 0.0
    if total_distance > 0:
        pace = round((total_time / 60) / (total_distance / 1000), 2)
    latest = max(activities, key=lambda a: a.start_date)
    return StravaStats(
        total_runs=len(activities),
        total_distance_km=round(total_distance / 1000, 1),
        total_time_minutes=total_time // 60,
        total_elevation_gain=int(round(total_elevation)),
        average_pace_min_per_km=pace,
        last_run_date=latest.start_date_local,
    )


def resolve_personal_bests(efforts: Iterable[StravaBestEffort]) -> list[PersonalBest]:
    """
    Fastest effort per bucket name by moving time. Equal times go to the earliest
    start date, then the lowest effort id. Sorted by bucket distance, then name.
    """
    best: dict[str, StravaBestEffort] = {}
    for effort in efforts:
        current = best.get(effort.name)
        key = (effort.moving_time_sec, effort.start_date, effort.id)
        if current is None or key < (current.moving_time_sec, current.start_date, current.id):
            best[effort.name] = effort
    out = [
        PersonalBest(
            name=e.name,
            distance_m=e.distance_m,
            best_time_sec=e.moving_time_sec,
            achieved_date=e.start_date,
            activity_id=e.activity_id,
        )
        for e in best.values()
    ]
    out.sort(key=lambda pb: (pb.distance_m, pb.name))
    return out
