"""Tests for the OAuth token lifecycle: authorize URL, code exchange, refresh trigger."""

from datetime import datetime, timedelta, timezone

import pytest

from stravasync.core.errors import AuthenticationError, NotConnectedError
from stravasync.services.crypto import decrypt_value, encrypt_value
from stravasync.services.strava_tokens import TokenManager

from tests.conftest import ATHLETE_ID

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _manager(store, strava_client, now=NOW) -> TokenManager:
    return TokenManager(store, strava_client, now=lambda: now)


async def _store_token(store, expires_at: datetime, athlete_id: int = ATHLETE_ID):
    return await store.save_token(
        athlete_id=athlete_id,
        access_token="old-access",
        encrypted_refresh_token=encrypt_value("old-refresh"),
        expires_at=expires_at,
    )


def test_authorization_url_has_read_scope_and_encoded_redirect(store, strava_client):
    url = _manager(store, strava_client).authorization_url("https://blog.example.com/admin/strava?x=1")
    assert url.startswith("https://www.strava.com/oauth/authorize?")
    assert "client_id=12345" in url
    assert "redirect_uri=https%3A%2F%2Fblog.example.com%2Fadmin%2Fstrava%3Fx%3D1" in url
    assert "response_type=code" in url
    assert "scope=read,activity:read_all" in url


@pytest.mark.asyncio
async def test_exchange_code_persists_single_token(store, strava_client, fake_strava):
    token = await _manager(store, strava_client).exchange_code("auth-code")
    assert token.athlete_id == ATHLETE_ID
    assert token.access_token == "access-1"
    assert decrypt_value(token.encrypted_refresh_token) == "refresh-1"
    assert token.encrypted_refresh_token != "refresh-1"
    form = fake_strava.token_calls[0].content.decode()
    assert "grant_type=authorization_code" in form
    assert "code=auth-code" in form
    stored = await store.get_token()
    assert stored is not None and stored.id == token.id


@pytest.mark.asyncio
async def test_exchange_code_replaces_previous_athlete_token(store, strava_client):
    await _store_token(store, NOW + timedelta(hours=1), athlete_id=1)
    await _manager(store, strava_client).exchange_code("auth-code")
    from sqlalchemy import func, select
    from stravasync.models import StravaToken

    count = (await store.session.execute(select(func.count()).select_from(StravaToken))).scalar_one()
    assert count == 1
    assert (await store.get_token()).athlete_id == ATHLETE_ID


@pytest.mark.asyncio
async def test_exchange_code_failure_is_authentication_error(store, strava_client, fake_strava):
    fake_strava.token_status = 400
    with pytest.raises(AuthenticationError):
        await _manager(store, strava_client).exchange_code("bad-code")
    assert await store.get_token() is None


@pytest.mark.asyncio
async def test_valid_token_without_connection_raises(store, strava_client):
    with pytest.raises(NotConnectedError, match="Not connected"):
        await _manager(store, strava_client).valid_token()


@pytest.mark.asyncio
async def test_valid_token_not_near_expiry_makes_no_network_call(store, strava_client, fake_strava):
    await _store_token(store, NOW + timedelta(minutes=5, seconds=1))
    token = await _manager(store, strava_client).valid_token()
    assert token.access_token == "old-access"
    assert fake_strava.requests == []


@pytest.mark.asyncio
async def test_valid_token_refreshes_at_exactly_five_minutes(store, strava_client, fake_strava):
    await _store_token(store, NOW + timedelta(minutes=5))
    token = await _manager(store, strava_client).valid_token()
    assert len(fake_strava.token_calls) == 1
    form = fake_strava.token_calls[0].content.decode()
    assert "grant_type=refresh_token" in form
    assert "refresh_token=old-refresh" in form
    assert token.access_token == "access-1"
    assert decrypt_value(token.encrypted_refresh_token) == "refresh-1"


@pytest.mark.asyncio
async def test_valid_token_refreshes_expired_token(store, strava_client, fake_strava):
    await _store_token(store, NOW - timedelta(hours=2))
    token = await _manager(store, strava_client).valid_token()
    assert len(fake_strava.token_calls) == 1
    assert token.athlete_id == ATHLETE_ID
    stored = await store.get_token()
    assert stored.access_token == "access-1"


@pytest.mark.asyncio
async def test_refresh_failure_leaves_stored_token_untouched(store, strava_client, fake_strava):
    await _store_token(store, NOW - timedelta(minutes=1))
    fake_strava.token_status = 401
    with pytest.raises(AuthenticationError):
        await _manager(store, strava_client).valid_token()
    stored = await store.get_token()
    assert stored.access_token == "old-access"
    assert decrypt_value(stored.encrypted_refresh_token) == "old-refresh"
