# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Shift resolution, pure computation with no side effects.

A shift starts at the shift-change hour on day D and runs until the same
hour on D+1. Each weekday has an ordered list of volunteers; the N-th
occurrence of that weekday in the month selects callers[N-1].
"""

from datetime import date, datetime, timedelta
from typing import Optional

from hotline.models.domain import OnCallAssignment, Schedule, Volunteer, weekday_key
from hotline.services.localtime import next_occurrence_of_hour, to_local


def effective_date(now: datetime, timezone: str, shift_hour: int) -> date:
    """Calendar date whose roster is active at ``now``."""
    local = to_local(now, timezone)
    if local.hour < shift_hour:
        return local.date() - timedelta(days=1)
    return local.date()


def week_of_month_index(day: date) -> int:
    """0 for days 1-7, 1 for 8-14, ... 4 for 29-31."""
    return (day.day - 1) // 7


def volunteer_for_date(day: date, schedule: Schedule) -> Optional[Volunteer]:
    """Volunteer rostered for ``day``; past the end of the roster, the last one."""
    roster = schedule.roster_for(weekday_key(day))
    if roster is None:
        return None
    index = min(week_of_month_index(day), len(roster.callers) - 1)
    return roster.callers[index]


def next_volunteer(
    now: datetime, schedule: Schedule, shift_hour: int,
) -> Optional[Volunteer]:
    """
    Volunteer for the shift that starts at the next shift-change boundary.

    When that boundary's weekday has no roster, "next" means the following
    week's slot of the current weekday, wrapping to the first caller.
    """
    boundary = next_occurrence_of_hour(now, schedule.timezone, shift_hour)
    upcoming = volunteer_for_date(boundary.date(), schedule)
    if upcoming is not None:
        return upcoming

    shift_day = effective_date(now, schedule.timezone, shift_hour)
    roster = schedule.roster_for(weekday_key(shift_day))
    if roster is None:
        return None
    index = week_of_month_index(shift_day) + 1
    if index < len(roster.callers):
        return roster.callers[index]
    return roster.callers[0]


def current_and_next(
    now: datetime, schedule: Schedule, shift_hour: int,
) -> OnCallAssignment:
    """Resolve the active volunteer at ``now`` and the one after them."""
    shift_day = effective_date(now, schedule.timezone, shift_hour)
    return OnCallAssignment(
        effective_date=shift_day,
        week_index=week_of_month_index(shift_day),
        current=volunteer_for_date(shift_day, schedule),
        next=next_volunteer(now, schedule, shift_hour),
        next_shift_at=next_occurrence_of_hour(now, schedule.timezone, shift_hour),
    )
