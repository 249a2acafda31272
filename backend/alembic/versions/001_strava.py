"""Strava: strava_tokens, strava_activities, strava_best_efforts

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "strava_tokens",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("athlete_id", sa.BigInteger(), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("encrypted_refresh_token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_strava_tokens_athlete_id", "strava_tokens", ["athlete_id"], unique=True)

    op.create_table(
        "strava_activities",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("athlete_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("activity_type", sa.String(64), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column("moving_time_sec", sa.Integer(), nullable=False),
        sa.Column("elapsed_time_sec", sa.Integer(), nullable=False),
        sa.Column("total_elevation_gain_m", sa.Float(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_date_local", sa.DateTime(timezone=False), nullable=False),
        sa.Column("average_speed_m_s", sa.Float(), nullable=True),
        sa.Column("max_speed_m_s", sa.Float(), nullable=True),
        sa.Column("average_heartrate", sa.Float(), nullable=True),
        sa.Column("max_heartrate", sa.Integer(), nullable=True),
        sa.Column("summary_polyline", sa.Text(), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("location_city", sa.String(255), nullable=True),
        sa.Column("location_state", sa.String(255), nullable=True),
        sa.Column("location_country", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_strava_activities_start_date", "strava_activities", ["start_date"], unique=False)

    op.create_table(
        "strava_best_efforts",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("activity_id", sa.BigInteger(), nullable=False),
        sa.Column("athlete_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column("elapsed_time_sec", sa.Integer(), nullable=False),
        sa.Column("moving_time_sec", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pr_rank", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["activity_id"], ["strava_activities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_strava_best_efforts_name", "strava_best_efforts", ["name"], unique=False)
    op.create_index("ix_strava_best_efforts_activity_id", "strava_best_efforts", ["activity_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_strava_best_efforts_activity_id", table_name="strava_best_efforts")
    op.drop_index("ix_strava_best_efforts_name", table_name="strava_best_efforts")
    op.drop_table("strava_best_efforts")
    op.drop_index("ix_strava_activities_start_date", table_name="strava_activities")
    op.drop_table("strava_activities")
    op.drop_index("ix_strava_tokens_athlete_id", table_name="strava_tokens")
    op.drop_table("strava_tokens")
