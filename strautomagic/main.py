from contextlib import asynccontextmanager
from urllib.parse import urlencode

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from . import models
from .config import Settings, get_settings
from .db import get_session, make_engine, make_session_factory
from .logging_utils import setup_logging
from .models import Athlete
from .strava import StravaClient, StravaError
from .webhook import get_settings_from_app, router as webhook_router

SCOPES = "activity:write,activity:read_all"

def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = engine or make_engine(settings)
    models.Base.metadata.create_all(bind=engine)
    http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await http.aclose()

    app = FastAPI(title="Strautomagic", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = make_session_factory(engine)
    app.state.http = http
    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/auth/strava/start")
    async def auth_start(settings: Settings = Depends(get_settings_from_app)):
        query = urlencode({
            "client_id": settings.STRAVA_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": settings.STRAVA_REDIRECT_URI,
            "approval_prompt": "auto",
            "scope": SCOPES,
            "state": settings.STRAVA_STATE_TOKEN,
        })
        return RedirectResponse(f"{settings.STRAVA_AUTH_URL}?{query}")

    @app.get("/auth/strava/callback")
    async def auth_cb(
        request: Request,
        code: str | None = None,
        state: str | None = None,
        db: Session = Depends(get_session),
    ):
        settings: Settings = request.app.state.settings
        if state != settings.STRAVA_STATE_TOKEN:
            raise HTTPException(status_code=400, detail="state invalid")
        if not code:
            raise HTTPException(status_code=400, detail="code not found")

        try:
            token = await StravaClient(settings, request.app.state.http).exchange_code(code)
        except (StravaError, httpx.HTTPError) as e:
            raise HTTPException(status_code=500, detail=f"token exchange failed: {e}")

        athlete = token.get("athlete") or {}
        if "id" not in athlete:
            raise HTTPException(status_code=500, detail="token response has no athlete")

        a = db.query(Athlete).filter_by(strava_athlete_id=athlete["id"]).first()
        if not a:
            a = Athlete(strava_athlete_id=athlete["id"], last_activity_id=0)
        a.strava_access_token = token["access_token"]
        a.strava_refresh_token = token.get("refresh_token")
        a.strava_token_expires_at = token.get("expires_at")
        full = f"{(athlete.get('firstname') or '').strip()} {(athlete.get('lastname') or '').strip()}".strip()
        username = athlete.get("username")
        a.name = full or username or f"Strava #{athlete['id']}"

        db.add(a)
        db.commit()
        return {"ok": True, "message": "Strava connected", "athlete": a.name}

    return app
