from datetime import datetime, timedelta, timezone

HOUR = 3600

def unix(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())

def end_of(start: datetime, elapsed_s: int) -> datetime:
    return start + timedelta(seconds=elapsed_s)

def same_hour(a: datetime, b: datetime) -> bool:
    # compare absolute hour buckets so 23:30 -> 23:10 the next day is not "the same hour"
    return unix(a) // HOUR == unix(b) // HOUR

def midpoint(start_ts: int, end_ts: int) -> int:
    return (start_ts + end_ts) // 2

def ended_within_last_hour(end: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return unix(end) >= unix(now) - HOUR
