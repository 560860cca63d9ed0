# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Administrator capability check.

The only authorization factor is the caller's number (the `From` field of
the webhook), which the carrier asserts but does not sign. Every admin
decision in the call flow goes through `CallerAuthorizer` so a stronger
check can replace it without touching the flow itself.
"""

from typing import Iterable, Protocol

from hotline.models.domain import digits_only


class CallerAuthorizer(Protocol):
    def is_admin(self, caller: str) -> bool: ...


class AllowListAuthorizer:
    """Admin iff the caller number is on a fixed allow-list."""

    def __init__(self, admin_numbers: Iterable[str]) -> None:
        self._allowed = frozenset(
            digits_only(n) for n in admin_numbers if digits_only(n)
        )

    def is_admin(self, caller: str) -> bool:
        normalized = digits_only(caller)
        return bool(normalized) and normalized in self._allowed
