import logging
from dataclasses import dataclass
from datetime import date, datetime

import httpx
import icalendar
import recurring_ical_events

logger = logging.getLogger(__name__)

class CalendarError(Exception):
    pass

@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    description: str
    start: date | datetime | None
    end: date | datetime | None

def parse_summary(summary: str) -> str:
    """
    Drop the plan prefix TrainerRoad puts before the workout name.

    "Week 3 Day 2 - Truchas -3" -> "Truchas -3"
    """
    _, sep, rest = summary.partition(" - ")
    return rest if sep else summary

def _dt(prop):
    return prop.dt if prop is not None else None

class CalendarService:
    """Looks up the scheduled workout for a day from an ICS feed."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, calendar_id: str):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.calendar_id = calendar_id

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.calendar_id}"

    async def fetch(self) -> icalendar.Calendar:
        try:
            r = await self.http.get(self.url)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise CalendarError(f"unable to fetch calendar: {e}") from e
        try:
            return icalendar.Calendar.from_ical(r.text)
        except ValueError as e:
            raise CalendarError(f"unable to parse calendar: {e}") from e

    async def lookup(self, day: date) -> CalendarEvent | None:
        """First event on the given day, or None if the feed has nothing scheduled."""
        cal = await self.fetch()
        try:
            events = recurring_ical_events.of(cal).at(day)
        except ValueError as e:
            raise CalendarError(f"unable to expand calendar: {e}") from e

        for component in events:
            summary = str(component.get("SUMMARY", ""))
            return CalendarEvent(
                summary=parse_summary(summary),
                description=str(component.get("DESCRIPTION", "")),
                start=_dt(component.get("DTSTART")),
                end=_dt(component.get("DTEND")),
            )
        return None
