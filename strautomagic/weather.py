"""
Point-in-time weather and air quality from OpenWeatherMap, rendered as a
single line for an activity description.
"""
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

import aqi
import httpx

from .config import Settings
from .utils_time import end_of, ended_within_last_hour, midpoint, same_hour, unix

logger = logging.getLogger(__name__)

WEATHER_ICONS = {
    "01": "☀️",  # clear
    "02": "🌤",  # few clouds
    "03": "⛅",  # scattered clouds
    "04": "🌥",  # broken clouds
    "09": "🌧",  # shower rain
    "10": "🌦",  # rain
    "11": "⛈",  # thunderstorm
    "13": "🌨",  # snow
    "50": "🌫",  # mist
}

AQI_ICONS = {
    "Good": "💚",
    "Moderate": "💛",
    "Sensitive": "🧡",
    "Unhealthy": "❤️",
    "VeryUnhealthy": "💜",
    "Hazardous": "🤎",
    "VeryHazardous": "🖤",
}
AQI_UNKNOWN = "?"

# upper bound (inclusive) of each category on the aqicn.org scale
AQI_CATEGORIES = (
    (50, "Good"),
    (100, "Moderate"),
    (150, "Sensitive"),
    (200, "Unhealthy"),
    (300, "VeryUnhealthy"),
    (400, "Hazardous"),
)

# OWM reports µg/m³, the EPA breakpoints want ppm for CO and ppb for NO2 (25°C, 1 atm)
CO_UGM3_PER_PPM = 1145.0
NO2_UGM3_PER_PPB = 1.88

MPS_TO_KPH = 3.6

# a pollution window must span at least an hour
POLLUTION_HALF_WINDOW_S = 1800

class WeatherUnavailable(Exception):
    pass

@dataclass(frozen=True)
class WeatherSample:
    """Raw reading for one point in time."""
    icon: str
    description: str
    temp: float
    feels_like: float
    humidity: int
    wind_speed: float
    wind_deg: int
    lat: float | None
    lon: float | None

@dataclass(frozen=True)
class PeriodWeather:
    icon: str
    desc: str
    temp: int
    feels_like: int
    humidity: int
    wind_speed: int
    wind_dir: str
    lat: float | None
    lon: float | None

@dataclass(frozen=True)
class WeatherInfo:
    start: PeriodWeather
    end: PeriodWeather
    aqi: str

    def without_location(self) -> "WeatherInfo":
        """Same readings with the coordinates blanked, which renders as the home line."""
        return WeatherInfo(
            start=replace(self.start, lat=None, lon=None),
            end=replace(self.end, lat=None, lon=None),
            aqi=self.aqi,
        )

def round_half_up(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))

def weather_icon(code: str) -> str:
    return WEATHER_ICONS.get(code.strip("dn"), "")

def wind_direction_icon(deg: int) -> str:
    """
    Arrow for a meteorological bearing. The bearing is where the wind comes
    from, the arrow points where it is going.
    """
    if 338 <= deg <= 360 or 0 <= deg <= 22:
        return "↓"
    if 23 <= deg <= 67:
        return "↙"
    if 68 <= deg <= 112:
        return "←"
    if 113 <= deg <= 157:
        return "↖"
    if 158 <= deg <= 202:
        return "↑"
    if 203 <= deg <= 247:
        return "↗"
    if 248 <= deg <= 292:
        return "→"
    if 293 <= deg <= 337:
        return "↘"
    return ""

def aqi_category(value: Decimal | float) -> str:
    for upper, name in AQI_CATEGORIES:
        if value <= upper:
            return name
    return "VeryHazardous"

def aqi_index(components: dict) -> Decimal:
    """US EPA AQI from OWM pollutant concentrations (PM2.5, CO, NO2)."""
    pm25 = float(components.get("pm2_5") or 0)
    co_ppm = float(components.get("co") or 0) / CO_UGM3_PER_PPM
    no2_ppb = float(components.get("no2") or 0) / NO2_UGM3_PER_PPB
    return aqi.to_aqi([
        (aqi.POLLUTANT_PM25, f"{pm25:.1f}"),
        (aqi.POLLUTANT_CO_8H, f"{co_ppm:.1f}"),
        (aqi.POLLUTANT_NO2_1H, f"{no2_ppb:.0f}"),
    ])

def aqi_icon(components: dict) -> str:
    try:
        value = aqi_index(components)
    except (ValueError, IndexError, TypeError, AttributeError, ArithmeticError) as e:
        logger.warning("unable to compute AQI from %s: %s", components, e)
        return AQI_UNKNOWN
    return AQI_ICONS[aqi_category(value)]

def to_period(sample: WeatherSample) -> PeriodWeather:
    return PeriodWeather(
        icon=weather_icon(sample.icon),
        desc=sample.description.title(),
        temp=round_half_up(sample.temp),
        feels_like=round_half_up(sample.feels_like),
        humidity=sample.humidity,
        wind_speed=round_half_up(sample.wind_speed * MPS_TO_KPH),
        wind_dir=wind_direction_icon(sample.wind_deg),
        lat=sample.lat,
        lon=sample.lon,
    )

def weather_line(info: WeatherInfo, summit: float | None = None) -> str:
    s, e = info.start, info.end
    parts = [
        f"{s.icon} {s.desc}",
        f"🌡 {s.temp}-{e.temp}°C",
        f"👌 {s.feels_like}°C",
        f"💦 {s.humidity}-{e.humidity}%",
    ]
    home = s.lat is None or s.lon is None
    if not home:
        parts.append(f"💨 {s.wind_speed}km/h {s.wind_dir}")
    parts.append(f"AQI {info.aqi}")
    if summit is not None:
        parts.append(f"⛰ {summit:,.0f}m")
    line = " | ".join(parts)
    if home:
        line = "The Pain Cave: " + line
    return line + "\n"

class WeatherClient:
    def __init__(self, settings: Settings, http: httpx.AsyncClient,
                 now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.settings = settings
        self.http = http
        self.base = settings.OWM_BASE_URL.rstrip("/")
        self.now = now

    def query_params(self, lat: float | None, lon: float | None) -> dict:
        params = {
            "lat": self.settings.OWM_LAT,
            "lon": self.settings.OWM_LON,
            "lang": "en",
            "units": "metric",
            "appid": self.settings.OWM_API_KEY,
        }
        if lat and lon:
            params["lat"], params["lon"] = lat, lon
        return params

    async def get_weather(self, ts: int, lat: float | None, lon: float | None) -> WeatherSample:
        params = self.query_params(lat, lon)
        params["dt"] = ts
        try:
            r = await self.http.get(f"{self.base}/data/3.0/onecall/timemachine", params=params)
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise WeatherUnavailable(f"weather request for {ts} failed: {e}") from e

        try:
            data = body.get("data") or []
            if not data:
                raise WeatherUnavailable(f"no weather data for {ts}")
            d = data[0]
            w = (d.get("weather") or [{}])[0]
            return WeatherSample(
                icon=w.get("icon", ""),
                description=w.get("description", ""),
                temp=float(d.get("temp", 0)),
                feels_like=float(d.get("feels_like", 0)),
                humidity=int(d.get("humidity", 0)),
                wind_speed=float(d.get("wind_speed", 0)),
                wind_deg=int(d.get("wind_deg", 0)),
                lat=body.get("lat"),
                lon=body.get("lon"),
            )
        except (AttributeError, TypeError, KeyError, IndexError, ValueError) as e:
            raise WeatherUnavailable(f"unexpected weather payload for {ts}: {e!r}") from e

    async def get_pollution(self, start: datetime, end: datetime,
                            lat: float | None, lon: float | None) -> str:
        """AQI glyph for the middle of the window, '?' when it can't be determined."""
        params = self.query_params(lat, lon)
        url = f"{self.base}/data/2.5/air_pollution"
        if not ended_within_last_hour(end, self.now()):
            url += "/history"
            mid = midpoint(unix(start), unix(end))
            params["start"] = mid - POLLUTION_HALF_WINDOW_S
            params["end"] = mid + POLLUTION_HALF_WINDOW_S

        try:
            r = await self.http.get(url, params=params)
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("unable to get pollution: %s", e)
            return AQI_UNKNOWN

        try:
            readings = body.get("list") or []
            if not readings:
                return AQI_UNKNOWN
            components = readings[0].get("components") or {}
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            logger.warning("unexpected pollution payload: %r", e)
            return AQI_UNKNOWN
        return aqi_icon(components)

    async def sample(self, start: datetime, elapsed_s: int,
                     lat: float | None, lon: float | None) -> WeatherInfo:
        end = end_of(start, elapsed_s)

        sw = await self.get_weather(unix(start), lat, lon)
        if same_hour(start, end):
            ew = sw
        else:
            try:
                ew = await self.get_weather(unix(end), lat, lon)
            except WeatherUnavailable as e:
                logger.warning("using start weather for end of activity: %s", e)
                ew = sw

        if not sw.description or not ew.description:
            raise WeatherUnavailable("weather sample has no description")

        return WeatherInfo(
            start=to_period(sw),
            end=to_period(ew),
            aqi=await self.get_pollution(start, end, lat, lon),
        )
