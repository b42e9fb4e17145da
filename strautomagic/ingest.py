import enum
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .calendar_events import CalendarService
from .classify import summit_discipline
from .config import Settings
from .models import Athlete
from .rules import Lookups, construct_update
from .schemas import ActivityUpdate, WebhookEvent
from .strava import StravaClient
from .summits import preview_summit, read_summit, update_summit
from .tokens import TokenRefresher
from .weather import WeatherClient

logger = logging.getLogger(__name__)

class UnknownAthlete(Exception):
    pass

class Outcome(str, enum.Enum):
    IGNORED = "ignored"
    REPEAT = "repeat"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DRY_RUN = "dry_run"

@dataclass(frozen=True)
class ProcessResult:
    outcome: Outcome
    reason: str = ""
    update: ActivityUpdate | None = None

class EventProcessor:
    """
    Runs one webhook delivery end to end.

    Credential, fetch and update failures propagate so the delivery can be
    retried. Enrichment and bookkeeping failures are logged and swallowed.
    """

    def __init__(self, settings: Settings, db: Session, strava: StravaClient,
                 refresher: TokenRefresher, weather: WeatherClient | None = None,
                 calendar: CalendarService | None = None):
        self.settings = settings
        self.db = db
        self.strava = strava
        self.refresher = refresher
        self.weather = weather
        self.calendar = calendar

    async def handle(self, event: WebhookEvent) -> ProcessResult:
        # We only react to new activities for now
        if event.aspect_type != "create":
            logger.info("ignoring non-create webhook")
            return ProcessResult(Outcome.IGNORED)
        if event.object_type and event.object_type != "activity":
            logger.info("ignoring %s event", event.object_type)
            return ProcessResult(Outcome.IGNORED)

        athlete = self.db.query(Athlete).filter_by(strava_athlete_id=event.owner_id).first()
        if not athlete:
            raise UnknownAthlete(f"no athlete for owner {event.owner_id}")

        if self.settings.dedup_enabled and athlete.last_activity_id == event.object_id:
            logger.info("ignoring repeat event for activity %s", event.object_id)
            return ProcessResult(Outcome.REPEAT)

        token = await self.refresher.access_token(self.db, athlete)
        activity = await self.strava.get_activity(token, event.object_id)
        logger.info("activity received: %s (%s)", activity.name, activity.id)

        lookups = Lookups(
            settings=self.settings,
            weather=self.weather,
            calendar=self.calendar,
            summit_total=self._record_summit(athlete, activity),
        )
        result = await construct_update(activity, lookups)

        if self.settings.DEBUG:
            logger.debug("update: %s", result.update.payload())
            logger.debug("message: %s", result.reason)
            return ProcessResult(Outcome.DRY_RUN, result.reason, result.update)

        outcome = Outcome.UNCHANGED
        if not result.update.is_empty():
            updated = await self.strava.update_activity(token, event.object_id, result.update)
            logger.info("activity updated: %s (%s) %s", updated.name, updated.id, result.reason)
            outcome = Outcome.UPDATED
        else:
            logger.info("no changes for activity %s", event.object_id)

        self._mark_processed(athlete, event.object_id)
        return ProcessResult(outcome, result.reason, result.update)

    def _record_summit(self, athlete: Athlete, activity) -> float | None:
        discipline = summit_discipline(activity.type, activity.sport_type)
        if discipline is None:
            return None
        year = activity.start_date.year
        try:
            if self.settings.DEBUG:
                return preview_summit(self.db, athlete.strava_athlete_id, year, discipline,
                                      activity.total_elevation_gain, activity.id)
            update_summit(self.db, athlete.strava_athlete_id, year, discipline,
                          activity.total_elevation_gain, activity.id)
            return read_summit(self.db, athlete.strava_athlete_id, year, discipline)
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning("unable to update summit for athlete %s", athlete.strava_athlete_id, exc_info=True)
            return None

    def _mark_processed(self, athlete: Athlete, activity_id: int) -> None:
        try:
            athlete.last_activity_id = activity_id
            self.db.add(athlete)
            self.db.commit()
        except SQLAlchemyError:
            # the remote write already happened, a redelivery would only duplicate it
            self.db.rollback()
            logger.exception("unable to record activity %s as processed", activity_id)
