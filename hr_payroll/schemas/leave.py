from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class LeaveRequestCreate(BaseModel):
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=500)


class LeaveStatusUpdate(BaseModel):
    status: str
    actor_id: Optional[int] = None
    notes: Optional[str] = None


class LeavePeriodUpdate(BaseModel):
    start_date: date
    end_date: date
    actor_id: Optional[int] = None


class LeaveCancelRequest(BaseModel):
    employee_id: int


class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: str
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
