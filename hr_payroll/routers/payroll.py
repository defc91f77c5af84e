"""
Payroll Router

Handles HTTP endpoints for payroll operations.
All business logic is delegated to the payroll service layer.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from hr_payroll.database import get_db
from hr_payroll.schemas.payroll import (
    BulkGenerateRequest,
    BulkGenerateResponse,
    PayrollApproveRequest,
    PayrollDeleteResponse,
    PayrollGenerateRequest,
    PayrollPayRequest,
    PayrollReportResponse,
    PayrollResponse,
    PayrollUpdateRequest,
)
from hr_payroll.services import payroll_report, payroll_service


router = APIRouter(
    prefix="/payroll",
    tags=["payroll"]
)


@router.post("/generate", response_model=PayrollResponse, status_code=status.HTTP_201_CREATED)
def generate_payroll(request: PayrollGenerateRequest, db: Session = Depends(get_db)):
    """
    Generate a draft payroll for a single employee and month.
    """
    return payroll_service.generate_payroll(
        db,
        request.employee_id,
        request.month,
        request.year,
        bonuses=request.bonuses.model_dump() if request.bonuses else None,
        notes=request.notes,
        actor_id=request.actor_id
    )


@router.post("/generate-bulk", response_model=BulkGenerateResponse)
def generate_bulk_payroll(request: BulkGenerateRequest, db: Session = Depends(get_db)):
    """
    Run payroll for all active employees. Per-employee failures are
    reported in `failed` and do not abort the batch.
    """
    return payroll_service.generate_bulk_payroll(db, request.month, request.year, actor_id=request.actor_id)


@router.get("", response_model=List[PayrollResponse])
def list_payrolls(
    month: Optional[int] = None,
    year: Optional[int] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return payroll_service.list_payrolls(db, month=month, year=year, status=status, department=department)


@router.get("/history/{employee_id}", response_model=List[PayrollResponse])
def get_payroll_history(employee_id: int, year: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Get payroll history for an employee.
    """
    return payroll_service.get_employee_payroll_history(db, employee_id, year=year)


@router.get("/report/{year}/{month}", response_model=PayrollReportResponse)
def get_payroll_report(year: int, month: int, db: Session = Depends(get_db)):
    return payroll_report.generate_payroll_report(db, month, year)


@router.get("/{payroll_id}", response_model=PayrollResponse)
def get_payroll(payroll_id: int, db: Session = Depends(get_db)):
    return payroll_service.get_payroll(db, payroll_id)


@router.get("/{payroll_id}/payslip", response_class=HTMLResponse)
def get_payslip(payroll_id: int, db: Session = Depends(get_db)):
    return HTMLResponse(payroll_report.render_payslip_html(db, payroll_id))


@router.put("/{payroll_id}", response_model=PayrollResponse)
def update_payroll(payroll_id: int, request: PayrollUpdateRequest, db: Session = Depends(get_db)):
    return payroll_service.update_payroll(db, payroll_id, request.to_fields(), actor_id=request.actor_id)


@router.post("/{payroll_id}/approve", response_model=PayrollResponse)
def approve_payroll(payroll_id: int, request: PayrollApproveRequest, db: Session = Depends(get_db)):
    return payroll_service.approve_payroll(db, payroll_id, request.approver_id, notes=request.notes)


@router.post("/{payroll_id}/pay", response_model=PayrollResponse)
def mark_payroll_paid(payroll_id: int, request: Optional[PayrollPayRequest] = None, db: Session = Depends(get_db)):
    request = request or PayrollPayRequest()
    return payroll_service.mark_payroll_paid(
        db, payroll_id, payment_date=request.payment_date, actor_id=request.actor_id
    )


@router.delete("/{payroll_id}", response_model=PayrollDeleteResponse)
def delete_payroll(payroll_id: int, actor_id: Optional[int] = None, db: Session = Depends(get_db)):
    payroll_service.delete_payroll(db, payroll_id, actor_id=actor_id)
    return {"id": payroll_id, "deleted": True}
