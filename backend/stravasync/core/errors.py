"""
Error taxonomy for the Strava core and the FastAPI handler that renders it.

AuthenticationError and FetchError are fatal and bubble to the caller unchanged.
EnrichmentError is raised per activity inside the best-effort pass and never escapes it.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StravaError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content={"error": self.message})


class AuthenticationError(StravaError):
    """No token, or the code exchange / refresh grant failed."""


class NotConnectedError(AuthenticationError):
    def __init__(self, message: str = "Not connected to Strava"):
        super().__init__(message)


class FetchError(StravaError):
    """Activity-list pagination failed; the current sync run is aborted."""

    status_code = status.HTTP_502_BAD_GATEWAY


class EnrichmentError(StravaError):
    """Detail fetch for a single activity failed; the enrichment pass skips it."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, activity_id: int, message: str):
        super().__init__(f"Activity {activity_id}: {message}")
        self.activity_id = activity_id


async def strava_error_handler(request: Request, exc: StravaError) -> JSONResponse:
    logger.warning("Strava error on %s %s: %s", request.method, request.url.path, exc.message)
    return exc.to_response()


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred"})
