from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from stravasync.db.base import Base


class StravaActivity(Base):
    __tablename__ = "strava_activities"

    # Strava's activity id; never generated locally
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    athlete_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    activity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    distance_m: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    moving_time_sec: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    elapsed_time_sec: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_elevation_gain_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_date_local: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    average_speed_m_s: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_speed_m_s: Mapped[float | None] = mapped_column(Float, nullable=True)
    average_heartrate: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_heartrate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    summary_polyline: Mapped[str | None] = mapped_column(Text, nullable=True)
    calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_state: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_country: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    best_efforts: Mapped[list["StravaBestEffort"]] = relationship(
        "StravaBestEffort",
        back_populates="activity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
