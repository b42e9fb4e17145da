import logging
import time
from typing import Callable

import httpx
from sqlalchemy.orm import Session

from .models import Athlete
from .strava import StravaClient, StravaError

logger = logging.getLogger(__name__)

# refresh slightly early so the token cannot expire mid-request
EXPIRY_LEEWAY_S = 60

class TokenRefreshError(Exception):
    pass

class TokenRefresher:
    """
    Hands out a live access token for an athlete.

    The stored token is refreshed when it is (about to be) expired and the
    athlete row is updated before returning if Strava issued a new one.
    There is no fallback to a stale token.
    """

    def __init__(self, strava: StravaClient, clock: Callable[[], float] = time.time):
        self.strava = strava
        self.clock = clock

    def is_expired(self, athlete: Athlete) -> bool:
        expires_at = athlete.strava_token_expires_at
        if expires_at is None:
            return False
        return expires_at - EXPIRY_LEEWAY_S <= self.clock()

    async def access_token(self, db: Session, athlete: Athlete) -> str:
        if not athlete.strava_access_token:
            raise TokenRefreshError(f"no stored credential for athlete {athlete.strava_athlete_id}")
        if not self.is_expired(athlete):
            return athlete.strava_access_token
        if not athlete.strava_refresh_token:
            raise TokenRefreshError(f"token expired and no refresh token for athlete {athlete.strava_athlete_id}")

        try:
            new = await self.strava.refresh_token(athlete.strava_refresh_token)
        except (StravaError, httpx.HTTPError) as e:
            raise TokenRefreshError(f"unable to refresh token: {e}") from e

        access_token = new.get("access_token")
        if not access_token:
            raise TokenRefreshError("token endpoint returned no access_token")

        if access_token != athlete.strava_access_token:
            athlete.strava_access_token = access_token
            athlete.strava_refresh_token = new.get("refresh_token", athlete.strava_refresh_token)
            athlete.strava_token_expires_at = new.get("expires_at", athlete.strava_token_expires_at)
            db.add(athlete)
            db.commit()
            logger.info("updated token for athlete %s", athlete.strava_athlete_id)

        return access_token
