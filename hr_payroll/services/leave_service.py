"""
Leave Service Layer

Leave request workflow on top of the balance ledger. Status changes and
balance movements are committed in the same transaction; if the ledger
rejects a transition, nothing is written.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hr_payroll.core.exceptions import (
    InsufficientBalanceError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
)
from hr_payroll.models.employee import Employee
from hr_payroll.models.leave_request import LeaveRequest, LeaveStatus, inclusive_days
from hr_payroll.services.audit import AuditService
from hr_payroll.services.leave_ledger import LeaveBalanceLedger, normalize_leave_status, normalize_leave_type

logger = logging.getLogger(__name__)

EDITABLE_LEAVE_STATUSES = {LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value}


def _commit(db: Session, leave: Optional[LeaveRequest] = None):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Only the balance CHECK constraint can fail here
        if leave is not None:
            raise InsufficientBalanceError(leave.leave_type, leave.total_days, 0)
        raise
    except Exception:
        db.rollback()
        raise


def _validate_range(start_date: date, end_date: date) -> None:
    if start_date is None or end_date is None:
        raise InvalidInputError("Start and end dates are required", error_code="MISSING_REQUIRED_FIELDS")
    if start_date > end_date:
        raise InvalidInputError("Start date must be on or before end date", error_code="INVALID_DATE_RANGE")


def _leave_snapshot(leave: LeaveRequest) -> dict:
    return {
        "status": leave.status,
        "start_date": leave.start_date,
        "end_date": leave.end_date,
        "total_days": leave.total_days,
    }


def get_leave_request(db: Session, leave_id: int) -> LeaveRequest:
    leave = db.query(LeaveRequest).filter(LeaveRequest.id == leave_id).first()
    if not leave:
        raise NotFoundError("Leave request not found", error_code="LEAVE_NOT_FOUND",
                            details={"leave_id": leave_id})
    return leave


def list_leave_requests(
    db: Session,
    employee_id: Optional[int] = None,
    status: Optional[str] = None
) -> List[LeaveRequest]:
    query = db.query(LeaveRequest)
    if employee_id:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc()).all()


def submit_leave_request(
    db: Session,
    employee_id: int,
    leave_type: str,
    start_date: date,
    end_date: date,
    reason: Optional[str] = None
) -> LeaveRequest:
    """
    Create a pending leave request. The current balance gates submission but
    nothing is deducted until approval.
    """
    _validate_range(start_date, end_date)
    leave_type = normalize_leave_type(leave_type)

    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                            details={"employee_id": employee_id})

    ledger = LeaveBalanceLedger(db)
    days = inclusive_days(start_date, end_date)
    if not ledger.has_available(employee_id, leave_type, days):
        remaining = ledger.get_balance(employee_id, leave_type)
        db.rollback()
        raise InsufficientBalanceError(leave_type, days, remaining)

    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type=leave_type,
        reason=reason,
        status=LeaveStatus.PENDING.value
    )
    leave.set_period(start_date, end_date)
    db.add(leave)
    _commit(db)
    db.refresh(leave)
    logger.info(f"Leave request {leave.id} submitted by employee {employee_id} ({days} {leave_type} day(s))")
    return leave


def update_leave_status(
    db: Session,
    leave_id: int,
    new_status: str,
    actor_id: Optional[int] = None,
    notes: Optional[str] = None
) -> LeaveRequest:
    new_status = normalize_leave_status(new_status)
    leave = get_leave_request(db, leave_id)
    old_status = leave.status
    before = _leave_snapshot(leave)

    ledger = LeaveBalanceLedger(db)
    try:
        delta = ledger.on_status_change(leave, old_status, new_status)
    except Exception:
        db.rollback()
        raise

    leave.status = new_status
    leave.approval_notes = notes
    leave.approved_by = actor_id
    leave.approval_date = datetime.now(timezone.utc)

    AuditService.log(
        db,
        action=f"leave_{new_status}",
        entity_type="leave_request",
        entity_id=leave.id,
        actor_id=actor_id,
        details={"leave_type": leave.leave_type, "balance_delta": delta},
        before_state=before,
        after_state=_leave_snapshot(leave)
    )
    _commit(db, leave)
    db.refresh(leave)
    logger.info(f"Leave request {leave.id}: {old_status} -> {new_status}")
    return leave


def update_leave_period(
    db: Session,
    leave_id: int,
    start_date: date,
    end_date: date,
    actor_id: Optional[int] = None
) -> LeaveRequest:
    _validate_range(start_date, end_date)
    leave = get_leave_request(db, leave_id)
    if leave.status not in EDITABLE_LEAVE_STATUSES:
        raise InvalidStateTransitionError(
            f"Cannot edit a {leave.status} leave request",
            error_code="LEAVE_NOT_EDITABLE"
        )

    before = _leave_snapshot(leave)
    old_days = leave.total_days
    new_days = inclusive_days(start_date, end_date)
    ledger = LeaveBalanceLedger(db)

    try:
        if leave.status == LeaveStatus.APPROVED.value:
            ledger.on_period_change(leave, old_days, new_days)
        else:
            if not ledger.has_available(leave.employee_id, leave.leave_type, new_days):
                remaining = ledger.get_balance(leave.employee_id, leave.leave_type)
                raise InsufficientBalanceError(leave.leave_type, new_days, remaining)
    except Exception:
        db.rollback()
        raise

    leave.set_period(start_date, end_date)
    AuditService.log(
        db,
        action="leave_period_changed",
        entity_type="leave_request",
        entity_id=leave.id,
        actor_id=actor_id,
        before_state=before,
        after_state=_leave_snapshot(leave)
    )
    _commit(db, leave)
    db.refresh(leave)
    return leave


def cancel_leave_request(db: Session, leave_id: int, employee_id: int) -> LeaveRequest:
    """Employees may cancel only their own pending requests."""
    leave = get_leave_request(db, leave_id)
    if leave.employee_id != employee_id or leave.status != LeaveStatus.PENDING.value:
        raise InvalidStateTransitionError(
            "Cannot cancel this leave request",
            error_code="CANNOT_CANCEL_LEAVE"
        )
    return update_leave_status(db, leave_id, LeaveStatus.CANCELLED.value, actor_id=employee_id)


def get_leave_balances(db: Session, employee_id: int) -> dict:
    balances = LeaveBalanceLedger(db).get_balances(employee_id)
    _commit(db)
    return balances


def set_leave_allotment(db: Session, employee_id: int, leave_type: str, days: int,
                        actor_id: Optional[int] = None) -> dict:
    ledger = LeaveBalanceLedger(db)
    balance = ledger.set_allotment(employee_id, leave_type, days)
    AuditService.log(
        db,
        action="leave_allotment_set",
        entity_type="leave_balance",
        entity_id=balance.id,
        actor_id=actor_id,
        details={"employee_id": employee_id, "leave_type": balance.leave_type, "days": days}
    )
    _commit(db)
    return ledger.get_balances(employee_id)
