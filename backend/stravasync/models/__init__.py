from stravasync.models.strava_token import StravaToken
from stravasync.models.strava_activity import StravaActivity
from stravasync.models.strava_best_effort import StravaBestEffort

__all__ = [
    "StravaToken",
    "StravaActivity",
    "StravaBestEffort",
]
