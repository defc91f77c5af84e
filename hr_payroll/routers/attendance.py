from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from hr_payroll.core.exceptions import InvalidInputError
from hr_payroll.database import get_db
from hr_payroll.schemas.attendance import AttendanceRecordResponse, ClockRequest
from hr_payroll.services import attendance_service

router = APIRouter(
    prefix="/attendance",
    tags=["attendance"]
)


@router.post("/clock-in", response_model=AttendanceRecordResponse)
def clock_in(request: ClockRequest, db: Session = Depends(get_db)):
    return attendance_service.clock_in(db, request.employee_id, request.timestamp, notes=request.notes)


@router.post("/clock-out", response_model=AttendanceRecordResponse)
def clock_out(request: ClockRequest, db: Session = Depends(get_db)):
    return attendance_service.clock_out(db, request.employee_id, request.timestamp)


@router.get("/{employee_id}", response_model=List[AttendanceRecordResponse])
def list_attendance(
    employee_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db)
):
    if start_date > end_date:
        raise InvalidInputError("start_date must be on or before end_date", error_code="INVALID_DATE_RANGE")
    return attendance_service.list_attendance(db, employee_id, start_date, end_date)
