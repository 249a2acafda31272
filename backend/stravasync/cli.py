"""Operator CLI: run a sync from cron, inspect stats and personal bests, disconnect."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from stravasync.config import settings
from stravasync.core.errors import StravaError
from stravasync.core.rate_limit import build_enrichment_limiter
from stravasync.db.session import async_session_maker, init_db
from stravasync.services.http_client import build_http_client
from stravasync.services.strava_service import StravaService


async def _run(command: str, args: argparse.Namespace) -> int:
    await init_db()
    async with build_http_client() as http:
        async with async_session_maker() as session:
            service = StravaService.create(session, http, settings, limiter=build_enrichment_limiter(settings))
            if command == "status":
                print(json.dumps({"connected": await service.is_connected()}))
            elif command == "auth-url":
                redirect_uri = args.redirect_uri or settings.strava_redirect_uri
                if not settings.strava_client_id or not redirect_uri:
                    print(
                        "error: Strava app not configured; set STRAVA_CLIENT_ID and pass --redirect-uri "
                        "or set STRAVA_REDIRECT_URI",
                        file=sys.stderr,
                    )
                    return 2
                print(service.authorization_url(redirect_uri))
            elif command == "connect":
                token = await service.exchange_code(args.code)
                print(f"Connected athlete {token.athlete_id}")
            elif command == "sync":
                count = await service.sync()
                print(f"Synced {count} runs")
            elif command == "stats":
                print((await service.stats()).model_dump_json(indent=2))
            elif command == "pbs":
                pbs = await service.personal_bests()
                print(json.dumps([pb.model_dump(mode="json") for pb in pbs], indent=2))
            elif command == "disconnect":
                await service.disconnect()
                print("Disconnected")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="stravasync")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status")
    auth_url = subparsers.add_parser("auth-url")
    auth_url.add_argument("--redirect-uri")
    connect = subparsers.add_parser("connect")
    connect.add_argument("code")
    subparsers.add_parser("sync")
    subparsers.add_parser("stats")
    subparsers.add_parser("pbs")
    subparsers.add_parser("disconnect")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return asyncio.run(_run(args.command, args))
    except StravaError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
