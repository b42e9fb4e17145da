import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .calendar_events import CalendarService
from .config import Settings
from .db import get_session
from .ingest import EventProcessor, UnknownAthlete
from .schemas import WebhookEvent
from .strava import StravaClient, StravaError
from .tokens import TokenRefresher, TokenRefreshError
from .weather import WeatherClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook")

def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings

def get_processor(
    request: Request,
    db: Session = Depends(get_session),
) -> EventProcessor:
    settings: Settings = request.app.state.settings
    http: httpx.AsyncClient = request.app.state.http
    strava = StravaClient(settings, http)
    calendar = None
    if settings.TRAINERROAD_CAL_ID:
        calendar = CalendarService(http, settings.TRAINERROAD_CAL_URL, settings.TRAINERROAD_CAL_ID)
    return EventProcessor(
        settings, db, strava, TokenRefresher(strava),
        weather=WeatherClient(settings, http),
        calendar=calendar,
    )

@router.get("")
async def verify_strava(
    mode: str | None = Query(None, alias="hub.mode"),
    challenge: str | None = Query(None, alias="hub.challenge"),
    verify_token: str | None = Query(None, alias="hub.verify_token"),
    settings: Settings = Depends(get_settings_from_app),
):
    if verify_token != settings.STRAVA_VERIFY_TOKEN:
        raise HTTPException(status_code=403, detail="Bad token")
    # Strava expects this exact key back
    return {"hub.challenge": challenge}

@router.post("")
async def receive_event(request: Request, processor: EventProcessor = Depends(get_processor)):
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="empty body")
    try:
        event = WebhookEvent.model_validate_json(body)
    except ValidationError as e:
        logger.error("unable to parse webhook payload: %s", e)
        raise HTTPException(status_code=400, detail="invalid payload")

    try:
        result = await processor.handle(event)
    except UnknownAthlete as e:
        logger.error("%s", e)
        raise HTTPException(status_code=500, detail="unknown athlete")
    except TokenRefreshError as e:
        logger.error("unable to get token: %s", e)
        raise HTTPException(status_code=500, detail="credential failure")
    except (StravaError, httpx.HTTPError) as e:
        logger.error("strava request failed for activity %s: %s", event.object_id, e)
        raise HTTPException(status_code=500, detail="upstream failure")

    return {"ok": True, "outcome": result.outcome.value, "reason": result.reason}
