import pytest

from strautomagic.classify import summit_discipline
from strautomagic.models import Summit, SummitActivity
from strautomagic.summits import preview_summit, read_summit, update_summit

from conftest import ATHLETE_ID

def test_read_without_row_is_none(db):
    assert read_summit(db, ATHLETE_ID, 2024, "run") is None

def test_gains_accumulate_within_a_year(db):
    update_summit(db, ATHLETE_ID, 2024, "ride", 250.5, activity_id=1)
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=2)

    assert read_summit(db, ATHLETE_ID, 2024, "ride") == 350.5
    assert read_summit(db, ATHLETE_ID, 2024, "run") == 0.0
    assert db.query(Summit).count() == 1

def test_new_year_starts_from_zero(db):
    update_summit(db, ATHLETE_ID, 2024, "run", 300.0, activity_id=1)
    update_summit(db, ATHLETE_ID, 2024, "run", 200.0, activity_id=2)
    update_summit(db, ATHLETE_ID, 2025, "run", 42.0, activity_id=3)

    assert read_summit(db, ATHLETE_ID, 2024, "run") == 500.0
    assert read_summit(db, ATHLETE_ID, 2025, "run") == 42.0

def test_athletes_are_separate(db):
    update_summit(db, ATHLETE_ID, 2024, "run", 10.0, activity_id=1)
    update_summit(db, 2002, 2024, "run", 99.0, activity_id=2)
    assert read_summit(db, ATHLETE_ID, 2024, "run") == 10.0

def test_untracked_discipline_is_ignored(db):
    assert update_summit(db, ATHLETE_ID, 2024, "swim", 10.0, activity_id=1) is None
    assert update_summit(db, ATHLETE_ID, 2024, None, 10.0, activity_id=1) is None
    assert db.query(Summit).count() == 0
    assert read_summit(db, ATHLETE_ID, 2024, "swim") is None

def test_same_activity_counted_once(db):
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=7)
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=7)
    assert read_summit(db, ATHLETE_ID, 2024, "ride") == 100.0

def test_negative_gain_never_decreases_total(db):
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=1)
    update_summit(db, ATHLETE_ID, 2024, "ride", -5.0, activity_id=2)
    assert read_summit(db, ATHLETE_ID, 2024, "ride") == 100.0

def test_redelivered_activity_counted_once_after_others(db):
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=7)
    update_summit(db, ATHLETE_ID, 2024, "ride", 50.0, activity_id=8)
    update_summit(db, ATHLETE_ID, 2024, "ride", 100.0, activity_id=7)

    assert read_summit(db, ATHLETE_ID, 2024, "ride") == 150.0
    assert db.query(SummitActivity).count() == 2

def test_preview_writes_nothing(db):
    assert preview_summit(db, ATHLETE_ID, 2024, "run", 80.0, activity_id=1) == 80.0
    assert db.query(Summit).count() == 0

    update_summit(db, ATHLETE_ID, 2024, "run", 80.0, activity_id=1)
    assert preview_summit(db, ATHLETE_ID, 2024, "run", 80.0, activity_id=1) == 80.0
    assert preview_summit(db, ATHLETE_ID, 2024, "run", 20.0, activity_id=2) == 100.0
    assert preview_summit(db, ATHLETE_ID, 2024, "swim", 20.0, activity_id=2) is None
    assert read_summit(db, ATHLETE_ID, 2024, "run") == 80.0

@pytest.mark.parametrize("type_,sport_type,want", [
    ("Run", "TrailRun", "run"),
    ("Run", None, "run"),
    ("Ride", "MountainBikeRide", "ride"),
    ("Ride", "GravelRide", "ride"),
    ("VirtualRide", "VirtualRide", None),
    ("Swim", "Swim", None),
])
def test_summit_discipline_prefers_sport_type(type_, sport_type, want):
    assert summit_discipline(type_, sport_type) == want
