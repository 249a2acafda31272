"""OAuth token lifecycle: authorize URL, code exchange, refresh shortly before expiry."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from stravasync.core.errors import AuthenticationError, NotConnectedError
from stravasync.models.strava_token import StravaToken
from stravasync.services.crypto import decrypt_value, encrypt_value
from stravasync.services.strava_client import StravaClient
from stravasync.services.strava_store import StravaStore, as_utc

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MARGIN = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    def __init__(
        self,
        store: StravaStore,
        client: StravaClient,
        *,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.client = client
        self.refresh_margin = refresh_margin
        self._now = now

    def authorization_url(self, redirect_uri: str) -> str:
        return self.client.authorization_url(redirect_uri)

    async def exchange_code(self, code: str) -> StravaToken:
        data = await self.client.exchange_code(code)
        athlete_id = data.athlete.id
        token = await self.store.save_token(
            athlete_id=athlete_id,
            access_token=data.access_token,
            encrypted_refresh_token=encrypt_value(data.refresh_token),
            expires_at=data.expires_at_dt,
        )
        logger.info("Strava connected: athlete_id=%s expires_at=%s", athlete_id, token.expires_at)
        return token

    def needs_refresh(self, token: StravaToken) -> bool:
        return as_utc(token.expires_at) <= self._now() + self.refresh_margin

    async def valid_token(self) -> StravaToken:
        """Current token, refreshed first when it expires within the margin. Raises NotConnectedError if none."""
        token = await self.store.get_token()
        if token is None:
            raise NotConnectedError()
        if not self.needs_refresh(token):
            return token
        return await self._refresh(token)

    async def _refresh(self, token: StravaToken) -> StravaToken:
        refresh_token = decrypt_value(token.encrypted_refresh_token)
        if not refresh_token:
            raise AuthenticationError("Strava refresh token decryption failed")
        athlete_id = token.athlete_id
        logger.info("Refreshing Strava token for athlete_id=%s", athlete_id)
        # On failure the stored row stays as-is so the next call can retry
        data = await self.client.refresh_access_token(refresh_token)
        return await self.store.save_token(
            athlete_id=athlete_id,
            access_token=data.access_token,
            encrypted_refresh_token=encrypt_value(data.refresh_token),
            expires_at=data.expires_at_dt,
        )
