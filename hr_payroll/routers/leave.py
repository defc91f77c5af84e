from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from hr_payroll.database import get_db
from hr_payroll.schemas.leave import (
    LeaveCancelRequest,
    LeavePeriodUpdate,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveStatusUpdate,
)
from hr_payroll.services import leave_service

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


@router.post("/requests", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_leave_request(request: LeaveRequestCreate, db: Session = Depends(get_db)):
    return leave_service.submit_leave_request(
        db,
        employee_id=request.employee_id,
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason
    )


@router.get("/requests", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    employee_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return leave_service.list_leave_requests(db, employee_id=employee_id, status=status)


@router.get("/requests/{leave_id}", response_model=LeaveRequestResponse)
def get_leave_request(leave_id: int, db: Session = Depends(get_db)):
    return leave_service.get_leave_request(db, leave_id)


@router.put("/requests/{leave_id}/status", response_model=LeaveRequestResponse)
def update_leave_status(leave_id: int, request: LeaveStatusUpdate, db: Session = Depends(get_db)):
    """
    Move a leave request to a new status. Approval deducts the balance;
    rejecting or cancelling an approved request restores it.
    """
    return leave_service.update_leave_status(
        db, leave_id, request.status, actor_id=request.actor_id, notes=request.notes
    )


@router.put("/requests/{leave_id}/period", response_model=LeaveRequestResponse)
def update_leave_period(leave_id: int, request: LeavePeriodUpdate, db: Session = Depends(get_db)):
    return leave_service.update_leave_period(
        db, leave_id, request.start_date, request.end_date, actor_id=request.actor_id
    )


@router.post("/requests/{leave_id}/cancel", response_model=LeaveRequestResponse)
def cancel_leave_request(leave_id: int, request: LeaveCancelRequest, db: Session = Depends(get_db)):
    return leave_service.cancel_leave_request(db, leave_id, request.employee_id)
