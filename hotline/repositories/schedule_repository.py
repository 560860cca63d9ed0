# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Roster file loading.
The schedule is static data; it is read once and never written.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hotline.core.logging import get_logger
from hotline.models.domain import Schedule

logger = get_logger(__name__)


class ScheduleConfigError(ValueError):
    """The roster file is missing, unreadable, or fails validation."""


def parse_schedule(data: dict[str, Any], default_timezone: str) -> Schedule:
    payload = dict(data)
    payload.setdefault("timezone", default_timezone)
    try:
        return Schedule.model_validate(payload)
    except ValidationError as exc:
        raise ScheduleConfigError(f"Invalid schedule: {exc}") from exc


def load_schedule(path: str | Path, default_timezone: str) -> Schedule:
    """Read and validate a roster file. Raises ScheduleConfigError."""
    schedule_path = Path(path)
    try:
        data = json.loads(schedule_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ScheduleConfigError(f"Schedule file not found: {schedule_path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ScheduleConfigError(f"Cannot read schedule file {schedule_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ScheduleConfigError("Schedule file must contain a JSON object")

    schedule = parse_schedule(data, default_timezone)
    logger.info(
        "Schedule loaded: file=%s, timezone=%s, weekdays=%s",
        schedule_path, schedule.timezone, ",".join(r.key for r in schedule.days),
    )
    return schedule
