# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Response schemas for the JSON admin API.
Used ONLY at the controller (HTTP) boundary.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from hotline.models.domain import Volunteer


class OnCallCurrentResponse(BaseModel):
    timezone: str
    effective_date: date
    week_index: int
    current: Optional[Volunteer] = None
    next: Optional[Volunteer] = None
    next_shift_at: datetime
    forward_number: str


class ForwardNumberResponse(BaseModel):
    forward_number: str
    source: Optional[str] = None
    updated_at: Optional[str] = None


class ForwardRefreshResponse(BaseModel):
    status: str
    forward_number: str
    source: str
    volunteer: Optional[str] = None
    effective_date: date
    week_index: int

