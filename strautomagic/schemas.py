from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

class WebhookUpdates(BaseModel):
    title: str | None = None
    type: str | None = None
    private: str | None = None
    authorized: str | None = None

class WebhookEvent(BaseModel):
    # Strava sends {object_type, object_id, aspect_type, updates, owner_id, ...}
    subscription_id: int = 0
    owner_id: int = 0
    object_id: int = 0
    object_type: str = ""
    aspect_type: str = ""
    event_time: int = 0
    updates: WebhookUpdates | None = None

class AthleteRef(BaseModel):
    id: int = 0

class Activity(BaseModel):
    """Immutable read of a Strava activity, only the fields we act on."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str = ""
    type: str = ""
    sport_type: str | None = None
    external_id: str | None = None
    athlete: AthleteRef = AthleteRef()
    trainer: bool = False
    commute: bool = False
    private: bool = False
    hide_from_home: bool = False
    gear_id: str | None = None
    elapsed_time: int = 0
    start_date: datetime
    start_date_local: datetime
    start_latlng: tuple[float, float] | None = None
    end_latlng: tuple[float, float] | None = None
    description: str = ""
    total_elevation_gain: float = 0.0

    @field_validator("start_latlng", "end_latlng", mode="before")
    @classmethod
    def _empty_latlng(cls, v):
        # Strava reports "no GPS" as an empty list
        if not v:
            return None
        return v

    @field_validator("description", "external_id", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

class ActivityUpdate(BaseModel):
    """
    Sparse set of fields to write back to Strava.

    Only fields explicitly assigned end up in the payload, so an untouched
    boolean is distinguishable from one explicitly set to False.
    """
    name: str | None = None
    description: str | None = None
    gear_id: str | None = None
    trainer: bool | None = None
    commute: bool | None = None
    hide_from_home: bool | None = None
    private: bool | None = None
    type: str | None = None

    def payload(self) -> dict:
        return self.model_dump(exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.payload()

    def merge(self, other: "ActivityUpdate") -> "ActivityUpdate":
        """Fields set on `other` win over ours."""
        return ActivityUpdate(**{**self.payload(), **other.payload()})
