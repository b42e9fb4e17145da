# strautomagic/models.py
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, BigInteger, Float, UniqueConstraint

class Base(DeclarativeBase):
    pass

class Athlete(Base):
    __tablename__ = "athletes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    strava_athlete_id: Mapped[int] = mapped_column(BigInteger, unique=True)
    name: Mapped[str] = mapped_column(String(200), default="")

    # de-dup marker: last activity id fully processed for this athlete
    last_activity_id: Mapped[int] = mapped_column(BigInteger, default=0)

    strava_access_token: Mapped[str | None] = mapped_column(String(512))
    strava_refresh_token: Mapped[str | None] = mapped_column(String(512))
    strava_token_expires_at: Mapped[int | None] = mapped_column(Integer)

class Summit(Base):
    __tablename__ = "summits"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    athlete_id: Mapped[int] = mapped_column(BigInteger, index=True)
    year: Mapped[int] = mapped_column(Integer)

    run: Mapped[float] = mapped_column(Float, default=0.0)
    ride: Mapped[float] = mapped_column(Float, default=0.0)

    __table_args__ = (
        UniqueConstraint("athlete_id", "year", name="uq_summit_year"),
    )

class SummitActivity(Base):
    """An activity whose gain is already in a Summit total."""
    __tablename__ = "summit_activities"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    athlete_id: Mapped[int] = mapped_column(BigInteger)
    activity_id: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (
        UniqueConstraint("athlete_id", "activity_id", name="uq_summit_activity"),
    )
