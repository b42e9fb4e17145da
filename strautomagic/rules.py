"""
Decides what to change on a freshly created activity.

Each discipline maps to one rule returning a partial update and a reason.
The weather line is a separate enrichment step whose update is merged on
top of the rule's.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from .calendar_events import CalendarError, CalendarService
from .classify import (
    HANDCYCLE, RIDE, ROWING, VIRTUAL_RIDE, WALK, WEIGHT_TRAINING,
    is_indoor, is_trainerroad,
)
from .config import Settings
from .schemas import Activity, ActivityUpdate
from .weather import WeatherClient, WeatherUnavailable, weather_line

logger = logging.getLogger(__name__)

NO_CHANGES = "no activity changes"
TR_PREFIX = "TR: "
OUTSIDE_SUFFIX = " - Outside"
ERG_ZONE_MARKER = "app.erg.zone"
WEATHER_MARKER = "AQI"

DOG_WALK_TITLE = "Emptying & Exercising the 🐶"
DOG_WALK_BEFORE_HOUR = 9
DOG_WALK_MIN_ELAPSED_S = 1200

BURPEES_TITLE = "Humane Burpees"
BURPEES_MIN_ELAPSED_S = 180
BURPEES_MAX_ELAPSED_S = 420

WARMUP_ROW = "Warm-up Row"

ROW_TITLES = {
    "v250m/1:30r...7 row": "Speed Pyramid Row w/ 1.5' Active RI per 250m work",
    "v5:00/1:00r...15 row": "Speed Pyramid Row w/ 1.5' Active RI per 250m work",
    "8x500m/3:30r row": "8x 500m w/ 3.5' Active RI Row",
    "v5:00/1:00r...17 row": "8x 500m w/ 3.5' Active RI Row",
    "5x1500m/5:00r row": "5x 1500m w/ 5' RI Row",
    "4x2000m/5:00r row": "4x 2000m w/5' Active RI Row",
    "v5:00/1:00r...9 row": "4x 2000m w/5' Active RI Row",
    "4x1000m/5:00r row": "4x 1000m /5' RI Row",
    "v3000m/5:00r...3 row": "Waterfall of 3k, 2.5k, 2k w/ 5' Active RI Row",
    "v5:00/1:00r...7 row": "Waterfall of 3k, 2.5k, 2k w/ 5' Active RI Row",
    "5:00 row": WARMUP_ROW,
}

@dataclass(frozen=True)
class RuleResult:
    update: ActivityUpdate
    reason: str = NO_CHANGES

@dataclass
class Lookups:
    """Everything a rule may consult besides the activity itself."""
    settings: Settings
    weather: WeatherClient | None = None
    calendar: CalendarService | None = None
    summit_total: float | None = None

Rule = Callable[[Activity, Lookups], Awaitable[RuleResult]]

async def no_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    return RuleResult(ActivityUpdate())

async def ride_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    settings = lookups.settings
    title = activity.name
    changes = {}

    # a TR prefix means we've already been here
    if not activity.name.startswith(TR_PREFIX) and lookups.calendar is not None:
        try:
            event = await lookups.calendar.lookup(activity.start_date_local.date())
        except CalendarError as e:
            logger.warning("unable to get TrainerRoad calendar event: %s", e)
            event = None
        if event and event.summary:
            logger.info("found TrainerRoad calendar event %r", event.summary)
            title = TR_PREFIX + event.summary
        else:
            logger.info("no TrainerRoad calendar event found")

    if is_trainerroad(activity.external_id):
        changes["gear_id"] = settings.TRAINER_GEAR_ID
        changes["trainer"] = True
    else:
        changes["gear_id"] = settings.BIKE_GEAR_ID
        if title.startswith(TR_PREFIX) and title != activity.name:
            title += OUTSIDE_SUFFIX

    if title != activity.name:
        changes["name"] = title
    return RuleResult(ActivityUpdate(**changes), "prefixed name of ride with TR and set gear")

async def virtual_ride_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    return RuleResult(
        ActivityUpdate(gear_id=lookups.settings.TRAINER_GEAR_ID, trainer=True),
        "set gear to trainer",
    )

async def rowing_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    changes = {}
    title = ""

    # ErgZone puts the workout name on the first line of the description
    if ERG_ZONE_MARKER in activity.description:
        title = activity.description.split("\n", 1)[0].strip()
        changes["description"] = ""

    if not title:
        title = ROW_TITLES.get(activity.name, "")
        if title == WARMUP_ROW:
            changes["hide_from_home"] = True

    if not title:
        return RuleResult(ActivityUpdate(**changes))
    changes["name"] = title
    return RuleResult(ActivityUpdate(**changes), f"set title to {title}")

async def walk_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    shoes = lookups.settings.SHOES_GEAR_ID
    early = activity.start_date_local.hour < DOG_WALK_BEFORE_HOUR
    if early and activity.elapsed_time >= DOG_WALK_MIN_ELAPSED_S:
        return RuleResult(
            ActivityUpdate(name=DOG_WALK_TITLE, private=False, gear_id=shoes),
            "set dog walking title and made public",
        )
    return RuleResult(ActivityUpdate(hide_from_home=True, gear_id=shoes), "muted walk")

async def weight_training_rule(activity: Activity, lookups: Lookups) -> RuleResult:
    if BURPEES_MIN_ELAPSED_S <= activity.elapsed_time <= BURPEES_MAX_ELAPSED_S:
        return RuleResult(
            ActivityUpdate(hide_from_home=True, name=BURPEES_TITLE),
            "set humane burpees title",
        )
    return RuleResult(ActivityUpdate())

RULES: dict[str, Rule] = {
    # never handcycled, used to check an unmatched rule stays empty
    HANDCYCLE: no_rule,
    RIDE: ride_rule,
    VIRTUAL_RIDE: virtual_ride_rule,
    ROWING: rowing_rule,
    WALK: walk_rule,
    WEIGHT_TRAINING: weight_training_rule,
}

# types that get nothing at all, weather included
UNTOUCHED = {HANDCYCLE}

async def weather_enrichment(activity: Activity, update: ActivityUpdate, lookups: Lookups) -> RuleResult:
    if WEATHER_MARKER in activity.description or lookups.weather is None:
        return RuleResult(ActivityUpdate())

    home = is_indoor(activity.type, activity.start_latlng)
    lat, lon = (None, None) if home else activity.start_latlng

    try:
        info = await lookups.weather.sample(activity.start_date, activity.elapsed_time, lat, lon)
    except WeatherUnavailable as e:
        logger.warning("unable to get weather for activity %s: %s", activity.id, e)
        return RuleResult(ActivityUpdate())

    if home:
        info = info.without_location()
    line = weather_line(info, lookups.summit_total)

    if "description" in update.payload():
        description = update.description + line
    elif activity.description:
        description = activity.description + "\n\n" + line
    else:
        description = line
    return RuleResult(ActivityUpdate(description=description), "added weather")

async def construct_update(activity: Activity, lookups: Lookups) -> RuleResult:
    rule = RULES.get(activity.type, no_rule)
    result = await rule(activity, lookups)
    if activity.type in UNTOUCHED:
        return result

    enrichment = await weather_enrichment(activity, result.update, lookups)
    if enrichment.update.is_empty():
        return result

    reason = enrichment.reason if result.reason == NO_CHANGES else f"{result.reason} & {enrichment.reason}"
    return RuleResult(result.update.merge(enrichment.update), reason)
