"""
One httpx.AsyncClient for every Strava call made by the API process.
Opened in the app lifespan and injected through api.deps.get_http.
"""
from __future__ import annotations

import httpx

from stravasync import __version__
from stravasync.config import settings

USER_AGENT = f"stravasync/{__version__}"

_http_client: httpx.AsyncClient | None = None


def build_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Per-call timeout applies to connect, read and write alike."""
    seconds = timeout if timeout is not None else settings.strava_http_timeout_seconds
    return httpx.AsyncClient(
        timeout=httpx.Timeout(seconds),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


def get_http_client() -> httpx.AsyncClient:
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized; init_http_client() runs in the app lifespan.")
    return _http_client


def init_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = build_http_client(timeout)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
