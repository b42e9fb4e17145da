from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")
    DATABASE_URL: str
    ENV: str = "prod"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    STRAVA_CLIENT_ID: str = ""
    STRAVA_CLIENT_SECRET: str = ""
    STRAVA_VERIFY_TOKEN: str = ""
    STRAVA_REDIRECT_URI: str = ""
    STRAVA_STATE_TOKEN: str = ""
    STRAVA_BASE_URL: str = "https://www.strava.com/api/v3"
    STRAVA_TOKEN_URL: str = "https://www.strava.com/oauth/token"
    STRAVA_AUTH_URL: str = "https://www.strava.com/oauth/authorize"

    OWM_API_KEY: str = ""
    OWM_LAT: float = 0.0
    OWM_LON: float = 0.0
    OWM_BASE_URL: str = "https://api.openweathermap.org"

    TRAINERROAD_CAL_URL: str = "https://api.trainerroad.com/v1/calendar/ics"
    TRAINERROAD_CAL_ID: str = ""

    TRAINER_GEAR_ID: str = "b9880609"
    BIKE_GEAR_ID: str = "b10013574"
    SHOES_GEAR_ID: str = "g10043849"

    HTTP_TIMEOUT: float = 30.0

    @property
    def dedup_enabled(self) -> bool:
        # dev deliveries are replayed by hand against the same activity
        return self.ENV != "dev"

@lru_cache
def get_settings() -> Settings:
    return Settings()
