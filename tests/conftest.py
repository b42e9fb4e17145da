"""
Shared fixtures: settings, an in-memory SQLite database and a fake upstream
that stands in for Strava, OpenWeatherMap and TrainerRoad.
"""
from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from strautomagic.config import Settings
from strautomagic.models import Athlete, Base
from strautomagic.schemas import Activity
from strautomagic.weather import WeatherClient

ATHLETE_ID = 1001

# well after every fixture activity, so air quality always comes from the history endpoint
NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

WEATHER = {
    "lat": 51.5099,
    "lon": -0.1181,
    "timezone": "Europe/London",
    "timezone_offset": 0,
    "data": [{
        "dt": 1701875045,
        "temp": 19.13,
        "feels_like": 16.44,
        "humidity": 64,
        "wind_speed": 3.6,
        "wind_deg": 340,
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
    }],
}

WEATHER_LATER = {
    "lat": 51.5099,
    "lon": -0.1181,
    "data": [{
        "dt": 1701878645,
        "temp": 23.4,
        "feels_like": 24.1,
        "humidity": 94,
        "wind_speed": 5.0,
        "wind_deg": 90,
        "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
    }],
}

AIR_POLLUTION = {
    "coord": {"lon": -0.1181, "lat": 51.5099},
    "list": [{
        "dt": 1701877200,
        "main": {"aqi": 1},
        "components": {
            "co": 201.94, "no": 0.02, "no2": 0.77, "o3": 68.66,
            "so2": 0.64, "pm2_5": 0.5, "pm10": 0.54, "nh3": 0.12,
        },
    }],
}

def activity_json(**overrides) -> dict:
    data = {
        "id": 456,
        "name": "Afternoon Ride",
        "type": "Ride",
        "sport_type": "Ride",
        "external_id": "garmin_push_12345",
        "athlete": {"id": ATHLETE_ID},
        "trainer": False,
        "commute": False,
        "private": False,
        "elapsed_time": 2400,
        "start_date": "2023-12-06T15:04:05Z",
        "start_date_local": "2023-12-06T15:04:05Z",
        "start_latlng": [51.509865, -0.118092],
        "end_latlng": [51.509865, -0.118092],
        "description": "",
        "total_elevation_gain": 120.0,
    }
    data.update(overrides)
    return data

def make_activity(**overrides) -> Activity:
    return Activity.model_validate(activity_json(**overrides))

class FakeUpstream:
    """Routes requests by (method, path) and records every call."""

    def __init__(self):
        self.routes = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, body=None, status: int = 200, handler=None):
        if handler is None:
            def handler(request, body=body, status=status):
                if isinstance(body, (dict, list)):
                    return httpx.Response(status, json=body)
                return httpx.Response(status, text=body or "")
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "Record Not Found"})
        return handler(request)

    def requests(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.method == method and r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        ENV="test",
        STRAVA_CLIENT_ID="1234",
        STRAVA_CLIENT_SECRET="secret",
        STRAVA_VERIFY_TOKEN="verify-me",
        STRAVA_STATE_TOKEN="state-token",
        STRAVA_REDIRECT_URI="http://localhost/auth/strava/callback",
        OWM_API_KEY="123456789",
        OWM_LAT=51.509865,
        OWM_LON=-0.118092,
        TRAINERROAD_CAL_ID="",
    )

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def db(engine):
    session = Session(bind=engine)
    yield session
    session.close()

@pytest.fixture
def athlete(db) -> Athlete:
    a = Athlete(
        strava_athlete_id=ATHLETE_ID,
        name="Test Athlete",
        last_activity_id=0,
        strava_access_token="access-token",
        strava_refresh_token="refresh-token",
        strava_token_expires_at=4102444800,  # 2100-01-01
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a

@pytest.fixture
def upstream() -> FakeUpstream:
    up = FakeUpstream()
    up.add("GET", "/data/3.0/onecall/timemachine", WEATHER)
    up.add("GET", "/data/2.5/air_pollution/history", AIR_POLLUTION)
    up.add("GET", "/data/2.5/air_pollution", AIR_POLLUTION)
    return up

@pytest.fixture
def weather(settings, upstream) -> WeatherClient:
    return WeatherClient(settings, upstream.client(), now=lambda: NOW)
