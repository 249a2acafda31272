"""
Strava API client: OAuth authorize URL, code exchange and refresh, activity list, activity detail.
Every response is validated into a boundary model before it leaves this module.
"""
import logging
from datetime import datetime
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from stravasync.config import Settings
from stravasync.core.errors import AuthenticationError, EnrichmentError, FetchError
from stravasync.schemas.strava_api import DetailedActivity, SummaryActivity, TokenResponse, activity_page_adapter

logger = logging.getLogger(__name__)

OAUTH_SCOPE = "read,activity:read_all"
PAGE_SIZE = 100


def _log_response_error(method: str, url: str, response: httpx.Response) -> None:
    """Log HTTP error without sensitive data."""
    body = (response.text or "")[:500]
    logger.warning("Strava %s %s -> %s body=%s", method, url, response.status_code, body)


class StravaClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        client_id: str,
        client_secret: str,
        oauth_base: str = "https://www.strava.com/oauth",
        api_base: str = "https://www.strava.com/api/v3",
    ):
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.oauth_base = oauth_base.rstrip("/")
        self.api_base = api_base.rstrip("/")

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> "StravaClient":
        return cls(
            http,
            client_id=settings.strava_client_id,
            client_secret=settings.strava_client_secret,
            oauth_base=settings.strava_oauth_base,
            api_base=settings.strava_api_base,
        )

    def authorization_url(self, redirect_uri: str) -> str:
        return (
            f"{self.oauth_base}/authorize"
            f"?client_id={quote(self.client_id, safe='')}"
            f"&redirect_uri={quote(redirect_uri, safe='')}"
            "&response_type=code"
            f"&scope={OAUTH_SCOPE}"
        )

    async def _token_grant(self, data: dict[str, str], what: str) -> TokenResponse:
        url = f"{self.oauth_base}/token"
        try:
            r = await self.http.post(url, data=data)
            if r.status_code >= 400:
                _log_response_error("POST", url, r)
            r.raise_for_status()
            return TokenResponse.model_validate(r.json())
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Strava {what} failed: {e}") from e
        except ValueError as e:
            raise AuthenticationError(f"Failed to parse Strava {what} response: {e}") from e

    async def exchange_code(self, code: str) -> TokenResponse:
        token = await self._token_grant(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
            },
            "token exchange",
        )
        if token.athlete is None:
            raise AuthenticationError("Failed to parse Strava token response: athlete missing")
        return token

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        return await self._token_grant(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            "token refresh",
        )

    async def list_activities(
        self,
        access_token: str,
        *,
        page: int,
        per_page: int = PAGE_SIZE,
        after: datetime | None = None,
    ) -> list[SummaryActivity]:
        """One page of GET /athlete/activities. Raises FetchError on any failure."""
        url = f"{self.api_base}/athlete/activities"
        params: dict[str, int] = {"page": page, "per_page": per_page}
        if after is not None:
            params["after"] = int(after.timestamp())
        try:
            r = await self.http.get(url, params=params, headers={"Authorization": f"Bearer {access_token}"})
            if r.status_code >= 400:
                _log_response_error("GET", url, r)
            r.raise_for_status()
            return activity_page_adapter.validate_python(r.json())
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch Strava activities page {page}: {e}") from e
        except ValidationError as e:
            raise FetchError(f"Malformed Strava activities page {page}: {e.error_count()} validation error(s)") from e
        except ValueError as e:
            raise FetchError(f"Malformed Strava activities page {page}: {e}") from e

    async def get_activity_detail(self, access_token: str, activity_id: int) -> DetailedActivity:
        """GET /activities/{id}. Raises EnrichmentError on any failure."""
        url = f"{self.api_base}/activities/{activity_id}"
        try:
            r = await self.http.get(url, headers={"Authorization": f"Bearer {access_token}"})
            if r.status_code >= 400:
                _log_response_error("GET", url, r)
            r.raise_for_status()
            return DetailedActivity.model_validate(r.json())
        except httpx.HTTPError as e:
            raise EnrichmentError(activity_id, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise EnrichmentError(activity_id, f"malformed detail payload: {e}") from e
