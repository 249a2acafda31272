"""Strava running-activity ingestion: OAuth connection, incremental sync, stats and personal bests."""

__version__ = "0.1.0"
