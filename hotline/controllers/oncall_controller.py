# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: On-call status, forward number, refresh trigger.
Thin HTTP layer, delegates ALL logic to ForwardService.
Store failures propagate to the app-level ForwardStoreError handler (503).
"""

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from hotline.core.dependencies import (
    get_admin_api_token,
    get_forward_service,
    get_schedule,
)
from hotline.models.domain import Schedule
from hotline.schemas.hotline import (
    ForwardNumberResponse,
    ForwardRefreshResponse,
    OnCallCurrentResponse,
)
from hotline.services.forward_service import ForwardService


def require_admin_token(
    x_admin_token: Optional[str] = Header(default=None),
    expected: str = Depends(get_admin_api_token),
) -> None:
    if expected and not secrets.compare_digest(x_admin_token or "", expected):
        raise HTTPException(status_code=401, detail="Invalid or missing X-Admin-Token")


router = APIRouter(
    prefix="/api/v1",
    tags=["On-Call"],
    dependencies=[Depends(require_admin_token)],
)


@router.get("/oncall/current", response_model=OnCallCurrentResponse)
def get_current_oncall(
    service: ForwardService = Depends(get_forward_service),
    schedule: Schedule = Depends(get_schedule),
):
    """Who is on call now, who is next, and where calls currently go."""
    assignment = service.assignment()
    return {
        "timezone": schedule.timezone,
        "effective_date": assignment.effective_date,
        "week_index": assignment.week_index,
        "current": assignment.current,
        "next": assignment.next,
        "next_shift_at": assignment.next_shift_at,
        "forward_number": service.current_number(),
    }


@router.get("/forward", response_model=ForwardNumberResponse)
def get_forward_number(
    service: ForwardService = Depends(get_forward_service),
):
    """Stored forward number; the default when nothing is stored."""
    record = service.stored_record()
    if record is None:
        return {"forward_number": service.current_number(), "source": "default"}
    return {
        "forward_number": record["value"],
        "source": record["source"],
        "updated_at": record["updated_at"],
    }


@router.post("/forward/refresh", response_model=ForwardRefreshResponse)
def refresh_forward_number(
    service: ForwardService = Depends(get_forward_service),
):
    """Periodic trigger over HTTP: store the scheduled volunteer's number."""
    return service.refresh_from_schedule()
