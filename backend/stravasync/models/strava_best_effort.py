from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from stravasync.db.base import Base


class StravaBestEffort(Base):
    """Per-distance record extracted from a detailed activity. Inserted once, never updated."""

    __tablename__ = "strava_best_efforts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    activity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("strava_activities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    athlete_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # "5K", "10K", "Half-Marathon"
    distance_m: Mapped[float] = mapped_column(Float, nullable=False)
    elapsed_time_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    moving_time_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    pr_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1 = PR at time of activity
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    activity: Mapped["StravaActivity"] = relationship("StravaActivity", back_populates="best_efforts")
