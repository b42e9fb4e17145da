HANDCYCLE = "Handcycle"
RIDE = "Ride"
VIRTUAL_RIDE = "VirtualRide"
ROWING = "Rowing"
WALK = "Walk"
WEIGHT_TRAINING = "WeightTraining"

# Strava sport_type (or legacy type) -> summit discipline column
SUMMIT_DISCIPLINES = {
    "Run": "run",
    "TrailRun": "run",
    "Ride": "ride",
    "GravelRide": "ride",
    "MountainBikeRide": "ride",
}

def summit_discipline(activity_type: str, sport_type: str | None = None) -> str | None:
    # the legacy type reports trail runs as "Run", only sport_type tells them apart
    return SUMMIT_DISCIPLINES.get(sport_type or activity_type)

def is_indoor(activity_type: str, start_latlng) -> bool:
    return activity_type == VIRTUAL_RIDE or not start_latlng

def is_trainerroad(external_id: str | None) -> bool:
    return bool(external_id) and external_id.startswith("trainerroad")
