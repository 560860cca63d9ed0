# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

from datetime import date, datetime
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

WeekdayKey = Literal[
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
]

# Indexed by date.weekday(), Monday == 0.
WEEKDAY_KEYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def weekday_key(day: date) -> str:
    """Full lower-case English weekday name for a calendar date."""
    return WEEKDAY_KEYS[day.weekday()]


def digits_only(phone: str | None) -> str:
    return "".join(ch for ch in (phone or "") if ch.isdigit())


class Volunteer(BaseModel):
    """A single hotline volunteer."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=255, description="Spoken name")
    phone: str = Field(..., pattern=r"^\+[1-9]\d{1,14}$", description="E.164 number")


class WeekdayRoster(BaseModel):
    """Volunteers for one weekday, indexed by week-of-month."""

    model_config = ConfigDict(frozen=True)

    key: WeekdayKey
    callers: tuple[Volunteer, ...] = Field(..., min_length=1)


class Schedule(BaseModel):
    """Weekly recurring roster in a named time zone. Read-only after load."""

    model_config = ConfigDict(frozen=True)

    timezone: str = "America/Chicago"
    days: tuple[WeekdayRoster, ...] = ()

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone '{value}'") from exc
        return value

    @field_validator("days")
    @classmethod
    def _one_roster_per_weekday(
        cls, value: tuple[WeekdayRoster, ...],
    ) -> tuple[WeekdayRoster, ...]:
        seen: set[str] = set()
        for roster in value:
            if roster.key in seen:
                raise ValueError(f"Weekday '{roster.key}' is listed more than once")
            seen.add(roster.key)
        return value

    def roster_for(self, key: str) -> Optional[WeekdayRoster]:
        for roster in self.days:
            if roster.key == key:
                return roster
        return None

    def find_volunteer_by_phone(self, phone: str) -> Optional[Volunteer]:
        """Match on digits only, so formatting differences are ignored."""
        target = digits_only(phone)
        if not target:
            return None
        for roster in self.days:
            for caller in roster.callers:
                if digits_only(caller.phone) == target:
                    return caller
        return None


class OnCallAssignment(BaseModel):
    """Who is on call at a given instant, and who takes the next shift."""

    model_config = ConfigDict(frozen=True)

    effective_date: date
    week_index: int = Field(..., ge=0)
    current: Optional[Volunteer] = None
    next: Optional[Volunteer] = None
    next_shift_at: datetime
