from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class ClockRequest(BaseModel):
    employee_id: int
    # Defaults to the server clock when omitted
    timestamp: Optional[datetime] = None
    notes: Optional[str] = None


class AttendanceEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    clock_in: datetime
    clock_out: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None


class AttendanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    date: date
    total_hours: Decimal
    status: str
    entries: List[AttendanceEntryResponse] = []
