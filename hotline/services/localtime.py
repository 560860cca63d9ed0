# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Time-zone conversion helpers. All offset and DST handling for the service
lives here; callers only ever see zone-aware local datetimes.
"""

from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo


def to_local(instant: datetime, zone: str) -> datetime:
    """Convert an aware instant to wall-clock time in ``zone``."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError("instant must be timezone-aware")
    return instant.astimezone(ZoneInfo(zone))


def next_occurrence_of_hour(instant: datetime, zone: str, hour: int) -> datetime:
    """First local ``hour``:00 in ``zone`` strictly after ``instant``."""
    local = to_local(instant, zone)
    tz = local.tzinfo
    candidate = datetime.combine(local.date(), time(hour), tzinfo=tz)
    if candidate <= local:
        candidate = datetime.combine(
            local.date() + timedelta(days=1), time(hour), tzinfo=tz,
        )
    return candidate
