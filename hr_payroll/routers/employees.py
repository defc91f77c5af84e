"""
Employee Router

Employee records, salary configuration and leave balances.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from hr_payroll.database import get_db
from hr_payroll.schemas.employee import (
    EmployeeCreate,
    EmployeeResponse,
    LeaveAllotmentUpdate,
    LeaveBalanceResponse,
    SalaryConfigResponse,
    SalaryConfigUpdate,
)
from hr_payroll.services import employee_service, leave_service

router = APIRouter(
    prefix="/employees",
    tags=["employees"]
)


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(request: EmployeeCreate, db: Session = Depends(get_db)):
    return employee_service.create_employee(
        db,
        full_name=request.full_name,
        email=request.email,
        department=request.department,
        is_active=request.is_active
    )


@router.get("", response_model=List[EmployeeResponse])
def list_employees(department: Optional[str] = None, active_only: bool = False, db: Session = Depends(get_db)):
    return employee_service.list_employees(db, department=department, active_only=active_only)


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(employee_id: int, db: Session = Depends(get_db)):
    return employee_service.get_employee(db, employee_id)


@router.put("/{employee_id}/salary", response_model=SalaryConfigResponse)
def set_salary_config(
    employee_id: int,
    request: SalaryConfigUpdate,
    actor_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Create or update the salary configuration used by payroll generation.
    Payrolls already generated keep their snapshot.
    """
    return employee_service.set_salary_config(
        db, employee_id, request.model_dump(exclude_none=True), actor_id=actor_id
    )


@router.get("/{employee_id}/leave-balance", response_model=LeaveBalanceResponse)
def get_leave_balance(employee_id: int, db: Session = Depends(get_db)):
    balances = leave_service.get_leave_balances(db, employee_id)
    return {"employee_id": employee_id, "balances": balances}


@router.put("/{employee_id}/leave-balance", response_model=LeaveBalanceResponse)
def set_leave_allotment(
    employee_id: int,
    request: LeaveAllotmentUpdate,
    actor_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    balances = leave_service.set_leave_allotment(
        db, employee_id, request.leave_type, request.days, actor_id=actor_id
    )
    return {"employee_id": employee_id, "balances": balances}
