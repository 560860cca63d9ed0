# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Forward number management.
Reads the stored number with a default fallback, refreshes it from the
roster on the periodic trigger, and applies administrator overrides.
An override lasts until the next scheduled refresh overwrites it.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from hotline.core.config import HotlineConfig
from hotline.core.logging import get_logger
from hotline.metrics.prometheus import (
    FORWARD_STORE_ERRORS,
    FORWARD_UPDATES,
    OVERRIDE_REJECTIONS,
    RESOLVER_RUNS,
)
from hotline.models.domain import OnCallAssignment, Schedule, digits_only
from hotline.repositories.forward_state_repository import (
    ForwardStateRepository,
    ForwardStoreError,
)
from hotline.services.phone import normalize_override_number, spell_out
from hotline.services.shift_resolver import current_and_next

logger = get_logger(__name__)

SOURCE_SCHEDULE = "schedule"
SOURCE_DEFAULT = "default"
SOURCE_ADMIN = "admin"


class ForwardService:
    """Business logic around the single stored forward number."""

    def __init__(
        self,
        forward_repo: ForwardStateRepository,
        schedule: Schedule,
        config: HotlineConfig,
    ) -> None:
        self._store = forward_repo
        self._schedule = schedule
        self._config = config

    # ── Queries ──

    def current_number(self) -> str:
        """Stored number, or the configured default when unset or unreadable."""
        try:
            stored = self._store.get()
        except ForwardStoreError:
            FORWARD_STORE_ERRORS.labels(operation="read").inc()
            logger.exception("Forward store read failed, using default number")
            return self._config.default_forward_number
        return stored or self._config.default_forward_number

    def stored_record(self) -> Optional[dict[str, Any]]:
        """Raw stored record; raises ForwardStoreError."""
        return self._store.get_record()

    def assignment(self, now: datetime | None = None) -> OnCallAssignment:
        moment = now or datetime.now(timezone.utc)
        return current_and_next(moment, self._schedule, self._config.shift_change_hour)

    def describe(self, number: str) -> str:
        """Spoken form of a number: the volunteer's name if rostered, else digits."""
        volunteer = self._schedule.find_volunteer_by_phone(number)
        return volunteer.name if volunteer else spell_out(number)

    def resolve_scheduled(self, now: datetime | None = None) -> dict[str, Any]:
        """What the periodic trigger would store at ``now``, without writing."""
        assignment = self.assignment(now)
        volunteer = assignment.current
        if volunteer is not None:
            number, source = volunteer.phone, SOURCE_SCHEDULE
        else:
            number, source = self._config.default_forward_number, SOURCE_DEFAULT
        return {
            "forward_number": number,
            "source": source,
            "volunteer": volunteer.name if volunteer else None,
            "effective_date": assignment.effective_date.isoformat(),
            "week_index": assignment.week_index,
        }

    # ── Commands ──

    def initialize_store(self) -> bool:
        """Seed the configured default when nothing is stored yet."""
        default = self._config.default_forward_number
        if not default:
            return False
        return self._store.insert_if_missing(default, SOURCE_DEFAULT)

    def refresh_from_schedule(self, now: datetime | None = None) -> dict[str, Any]:
        """Periodic trigger: store the on-call volunteer's number (or the default)."""
        result = self.resolve_scheduled(now)
        number = result["forward_number"]
        if not number:
            RESOLVER_RUNS.labels(outcome="no_number").inc()
            logger.warning(
                "No volunteer for %s and no default number configured; store unchanged",
                result["effective_date"],
            )
            return {**result, "status": "unchanged"}

        try:
            self._store.put(number, result["source"])
        except ForwardStoreError:
            FORWARD_STORE_ERRORS.labels(operation="write").inc()
            RESOLVER_RUNS.labels(outcome="error").inc()
            raise

        RESOLVER_RUNS.labels(outcome=result["source"]).inc()
        FORWARD_UPDATES.labels(source=result["source"]).inc()
        logger.info(
            "Forward refreshed from schedule: date=%s, volunteer=%s, number=%s",
            result["effective_date"], result["volunteer"], number,
        )
        return {**result, "status": "updated"}

    def override(self, entered: str) -> Optional[str]:
        """
        Store an admin-entered number. Returns the E.164 number, or None if
        the input was not a North American number (nothing is written then).
        Raises ForwardStoreError if the write fails.
        """
        number = normalize_override_number(entered)
        if number is None:
            OVERRIDE_REJECTIONS.inc()
            logger.info("Override rejected: %d digits entered", len(digits_only(entered)))
            return None

        try:
            self._store.put(number, SOURCE_ADMIN)
        except ForwardStoreError:
            FORWARD_STORE_ERRORS.labels(operation="write").inc()
            raise

        FORWARD_UPDATES.labels(source=SOURCE_ADMIN).inc()
        logger.info("Admin override applied: number=%s", number)
        return number
