import httpx
from pydantic import ValidationError

from .config import Settings
from .schemas import Activity, ActivityUpdate

class StravaError(Exception):
    """Non-2xx or unreadable answer from the Strava API."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"strava returned {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

def _raise_for_status(r: httpx.Response) -> None:
    if r.is_error:
        raise StravaError(r.status_code, r.reason_phrase or r.text)

def _json(r: httpx.Response):
    _raise_for_status(r)
    try:
        return r.json()
    except ValueError as e:
        raise StravaError(r.status_code, f"invalid response body: {e}") from e

def _activity(r: httpx.Response) -> Activity:
    try:
        return Activity.model_validate(_json(r))
    except ValidationError as e:
        raise StravaError(r.status_code, f"unexpected activity payload: {e}") from e

class StravaClient:
    """Thin wrapper over the Strava v3 endpoints used by the webhook pipeline."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self.settings = settings
        self.http = http
        self.base = settings.STRAVA_BASE_URL.rstrip("/")

    async def exchange_code(self, code: str) -> dict:
        r = await self.http.post(self.settings.STRAVA_TOKEN_URL, data={
            "client_id": self.settings.STRAVA_CLIENT_ID,
            "client_secret": self.settings.STRAVA_CLIENT_SECRET,
            "code": code,
            "grant_type": "authorization_code",
        })
        return _json(r)

    async def refresh_token(self, refresh_token: str) -> dict:
        r = await self.http.post(self.settings.STRAVA_TOKEN_URL, data={
            "client_id": self.settings.STRAVA_CLIENT_ID,
            "client_secret": self.settings.STRAVA_CLIENT_SECRET,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        return _json(r)

    async def get_activity(self, access_token: str, activity_id: int) -> Activity:
        r = await self.http.get(
            f"{self.base}/activities/{activity_id}",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return _activity(r)

    async def update_activity(self, access_token: str, activity_id: int, update: ActivityUpdate) -> Activity:
        r = await self.http.put(
            f"{self.base}/activities/{activity_id}",
            headers={"Authorization": f"Bearer {access_token}"},
            json=update.payload(),
        )
        return _activity(r)
