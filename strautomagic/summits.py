import logging

from sqlalchemy.orm import Session

from .models import Summit, SummitActivity

logger = logging.getLogger(__name__)

TRACKED = ("run", "ride")

def _gain(elevation_gain: float | None) -> float:
    return max(float(elevation_gain or 0), 0.0)

def _find(db: Session, athlete_id: int, year: int) -> Summit | None:
    return db.query(Summit).filter_by(athlete_id=athlete_id, year=year).first()

def is_counted(db: Session, athlete_id: int, activity_id: int) -> bool:
    if not activity_id:
        return False
    seen = db.query(SummitActivity).filter_by(athlete_id=athlete_id, activity_id=activity_id).first()
    return seen is not None

def update_summit(db: Session, athlete_id: int, year: int, discipline: str | None,
                  elevation_gain: float, activity_id: int = 0) -> Summit | None:
    """
    Add an activity's elevation gain to the athlete's yearly total.

    Disciplines outside TRACKED are ignored. The row is created on the first
    tracked activity of a year. An activity already counted is not added again,
    whatever else was counted since.
    """
    if discipline not in TRACKED:
        return None

    if is_counted(db, athlete_id, activity_id):
        logger.info("activity %s already counted in %s summit", activity_id, year)
        return _find(db, athlete_id, year)

    summit = _find(db, athlete_id, year)
    if not summit:
        summit = Summit(athlete_id=athlete_id, year=year, run=0.0, ride=0.0)

    setattr(summit, discipline, (getattr(summit, discipline) or 0.0) + _gain(elevation_gain))
    db.add(summit)
    if activity_id:
        db.add(SummitActivity(athlete_id=athlete_id, activity_id=activity_id))
    db.commit()
    return summit

def preview_summit(db: Session, athlete_id: int, year: int, discipline: str | None,
                   elevation_gain: float, activity_id: int = 0) -> float | None:
    """Total update_summit would leave for the discipline, without writing it."""
    if discipline not in TRACKED:
        return None
    total = read_summit(db, athlete_id, year, discipline) or 0.0
    if is_counted(db, athlete_id, activity_id):
        return total
    return total + _gain(elevation_gain)

def read_summit(db: Session, athlete_id: int, year: int, discipline: str | None) -> float | None:
    """Current total for the discipline, or None when there is nothing recorded for the year."""
    if discipline not in TRACKED:
        return None
    summit = _find(db, athlete_id, year)
    if not summit:
        return None
    return getattr(summit, discipline)
