"""
Payroll Service Layer

This module provides the business logic layer for payroll operations:
generation, the draft -> approved -> paid lifecycle, and read access.

Architecture:
- Router -> Service (this module) -> Calculator/Models
- All business rules are implemented here
- Salary figures come from the salary calculator and are frozen on the
  Payroll row; later updates patch that snapshot and never re-read
  attendance or leave data
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from datetime import date, datetime, time, timezone
import logging

from hr_payroll.core.exceptions import (
    AppException,
    DuplicatePayrollError,
    InvalidInputError,
    InvalidStateTransitionError,
    NotFoundError,
)
from hr_payroll.core.money import to_decimal, quantize_money, quantize_hours
from hr_payroll.models.employee import Employee, SalaryConfiguration
from hr_payroll.models.payroll import (
    Payroll,
    PayrollStatus,
    ALLOWANCE_KEYS,
    BONUS_KEYS,
    DEDUCTION_KEYS,
)
from hr_payroll.services.attendance_aggregator import validate_period
from hr_payroll.services.audit import AuditService
from hr_payroll.services.salary_calculator import (
    calculate_employee_salary,
    normalize_bonuses,
    recalculate_totals,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"bonuses", "deductions", "notes", "late_deductions", "overtime_hours", "overtime_pay"}


def _payroll_snapshot(payroll: Payroll) -> Dict[str, Any]:
    return {
        "status": payroll.status,
        "gross_salary": payroll.gross_salary,
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
    }


def _non_negative(value: Any, field: str):
    if value is None:
        raise InvalidInputError(f"'{field}' must be a number", error_code="INVALID_AMOUNT",
                                details={"field": field})
    amount = to_decimal(value, field=field)
    if amount < 0:
        raise InvalidInputError(f"'{field}' cannot be negative", error_code="NEGATIVE_AMOUNT",
                                details={"field": field})
    return amount


def _apply_updates(payroll: Payroll, fields: Dict[str, Any]) -> None:
    if "bonuses" in fields:
        merged = {**payroll.bonuses, **fields["bonuses"]}
        for key, amount in normalize_bonuses(merged).items():
            setattr(payroll, f"bonus_{key}", quantize_money(amount))

    if "deductions" in fields:
        unknown = set(fields["deductions"]) - set(DEDUCTION_KEYS)
        if unknown:
            raise InvalidInputError(f"Unknown deduction fields: {', '.join(sorted(unknown))}")
        for key, value in fields["deductions"].items():
            setattr(payroll, f"deduction_{key}", quantize_money(_non_negative(value, key)))

    if "late_deductions" in fields:
        payroll.late_deductions = quantize_money(_non_negative(fields["late_deductions"], "late_deductions"))
    if "overtime_hours" in fields:
        payroll.overtime_hours = quantize_hours(_non_negative(fields["overtime_hours"], "overtime_hours"))
    if "overtime_pay" in fields:
        payroll.overtime_pay = quantize_money(_non_negative(fields["overtime_pay"], "overtime_pay"))
    if "notes" in fields:
        payroll.notes = fields["notes"]


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_payroll(db: Session, payroll_id: int) -> Payroll:
    payroll = db.query(Payroll).filter(Payroll.id == payroll_id).first()
    if not payroll:
        raise NotFoundError("Payroll record not found", error_code="PAYROLL_NOT_FOUND",
                            details={"payroll_id": payroll_id})
    return payroll


def generate_payroll(
    db: Session,
    employee_id: int,
    month: int,
    year: int,
    bonuses: Optional[Dict[str, Any]] = None,
    notes: Optional[str] = None,
    actor_id: Optional[int] = None
) -> Payroll:
    """
    Calculate and persist a draft payroll for a single employee.

    Args:
        db: Database session
        employee_id: ID of the employee
        month: Payroll month (1-12)
        year: Payroll year
        bonuses: Optional performance/project/other bonus amounts
        notes: Free-text notes stored on the payroll
        actor_id: ID of the user triggering generation, for the audit trail

    Returns:
        The new Payroll row in draft status

    Raises:
        DuplicatePayrollError: a payroll already exists for the period
        MissingSalaryConfigError: the employee has no basic salary configured
    """
    validate_period(month, year)
    if employee_id is None:
        raise InvalidInputError("Employee ID is required", error_code="MISSING_REQUIRED_FIELDS")

    existing = db.query(Payroll.id).filter(
        Payroll.employee_id == employee_id,
        Payroll.month == month,
        Payroll.year == year
    ).first()
    if existing:
        raise DuplicatePayrollError(employee_id, month, year)

    calc = calculate_employee_salary(db, employee_id, month, year, bonuses)

    payroll = Payroll(
        employee_id=employee_id,
        month=month,
        year=year,
        basic_salary=calc.basic_salary,
        working_days=calc.working_days,
        attended_days=calc.attended_days,
        absent_days=calc.absent_days,
        late_deductions=calc.late_deductions,
        overtime_hours=calc.overtime_hours,
        overtime_pay=calc.overtime_pay,
        gross_salary=calc.gross_salary,
        total_deductions=calc.total_deductions,
        net_salary=calc.net_salary,
        status=PayrollStatus.DRAFT.value,
        notes=notes,
    )
    for key in ALLOWANCE_KEYS:
        setattr(payroll, f"allowance_{key}", calc.allowances.get(key, 0))
    for key in BONUS_KEYS:
        setattr(payroll, f"bonus_{key}", calc.bonuses.get(key, 0))
    for key in DEDUCTION_KEYS:
        setattr(payroll, f"deduction_{key}", calc.deductions.get(key, 0))

    # The unique key is the real guard; the pre-check above only gives a fast answer
    try:
        db.add(payroll)
        db.flush()
        AuditService.log(
            db,
            action="payroll_generated",
            entity_type="payroll",
            entity_id=payroll.id,
            actor_id=actor_id,
            details={"employee_id": employee_id, "month": month, "year": year},
            after_state=_payroll_snapshot(payroll)
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicatePayrollError(employee_id, month, year)
    except Exception:
        db.rollback()
        raise

    db.refresh(payroll)
    if payroll.net_salary < 0:
        logger.warning(f"Negative net salary on payroll {payroll.id} for employee {employee_id}: {payroll.net_salary}")
    logger.info(f"Generated payroll {payroll.id} for employee {employee_id} ({month}/{year}), net {payroll.net_salary}")
    return payroll


def generate_bulk_payroll(
    db: Session,
    month: int,
    year: int,
    actor_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Generate payroll for every active employee with a salary configuration.

    Each employee is committed independently; one failure does not abort the
    batch. Re-running the batch reports already-generated employees as
    DUPLICATE_PAYROLL failures.

    Returns:
        {"success": [...], "failed": [{employee_id, name, reason, code}]}
    """
    validate_period(month, year)

    employees = db.query(Employee).join(SalaryConfiguration).filter(
        Employee.is_active.is_(True),
        SalaryConfiguration.basic_salary > 0
    ).order_by(Employee.id).all()
    targets = [(emp.id, emp.full_name) for emp in employees]

    success = []
    failed = []
    for employee_id, name in targets:
        try:
            payroll = generate_payroll(db, employee_id, month, year, actor_id=actor_id)
            success.append({
                "employee_id": employee_id,
                "name": name,
                "payroll_id": payroll.id,
                "net_salary": payroll.net_salary
            })
        except AppException as e:
            logger.warning(f"Bulk payroll skipped employee {employee_id}: {e.message}")
            failed.append({"employee_id": employee_id, "name": name, "reason": e.message, "code": e.error_code})
        except Exception as e:
            logger.exception(f"Bulk payroll failed for employee {employee_id}")
            failed.append({"employee_id": employee_id, "name": name, "reason": str(e), "code": "INTERNAL_ERROR"})

    logger.info(f"Bulk payroll {month}/{year}: {len(success)} generated, {len(failed)} failed")
    return {
        "month": month,
        "year": year,
        "processed": len(targets),
        "success": success,
        "failed": failed
    }


def update_payroll(
    db: Session,
    payroll_id: int,
    fields: Dict[str, Any],
    actor_id: Optional[int] = None
) -> Payroll:
    """
    Patch a draft/pending payroll and re-derive its totals from the stored snapshot.

    Allowed fields: bonuses, deductions (partial; merged into the stored
    deductions), notes, late_deductions, overtime_hours, overtime_pay.
    """
    payroll = get_payroll(db, payroll_id)
    if not payroll.is_editable:
        raise InvalidStateTransitionError(
            f"Cannot update a {payroll.status} payroll",
            error_code="CANNOT_UPDATE_FINALIZED",
            details={"payroll_id": payroll_id, "status": payroll.status}
        )

    fields = {k: v for k, v in (fields or {}).items() if v is not None}
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                                details={"fields": sorted(unknown)})

    before = _payroll_snapshot(payroll)
    try:
        _apply_updates(payroll, fields)
        recalculate_totals(payroll)
    except Exception:
        db.rollback()
        raise

    AuditService.log(
        db,
        action="payroll_updated",
        entity_type="payroll",
        entity_id=payroll.id,
        actor_id=actor_id,
        details={"fields": sorted(fields)},
        before_state=before,
        after_state=_payroll_snapshot(payroll)
    )
    _commit(db)
    db.refresh(payroll)
    logger.info(f"Updated payroll {payroll.id}: {', '.join(sorted(fields))}")
    return payroll


def approve_payroll(
    db: Session,
    payroll_id: int,
    approver_id: int,
    notes: Optional[str] = None
) -> Payroll:
    payroll = get_payroll(db, payroll_id)
    if not payroll.can_transition_to(PayrollStatus.APPROVED):
        raise InvalidStateTransitionError(
            f"Payroll is already {payroll.status}",
            error_code="ALREADY_FINALIZED",
            details={"payroll_id": payroll_id, "status": payroll.status}
        )

    before = _payroll_snapshot(payroll)
    payroll.status = PayrollStatus.APPROVED.value
    payroll.approved_by = approver_id
    payroll.approval_date = datetime.now(timezone.utc)
    if notes:
        payroll.notes = notes

    AuditService.log(
        db,
        action="payroll_approved",
        entity_type="payroll",
        entity_id=payroll.id,
        actor_id=approver_id,
        before_state=before,
        after_state=_payroll_snapshot(payroll)
    )
    _commit(db)
    db.refresh(payroll)
    logger.info(f"Payroll {payroll.id} approved by {approver_id}")
    return payroll


def mark_payroll_paid(
    db: Session,
    payroll_id: int,
    payment_date: Optional[datetime] = None,
    actor_id: Optional[int] = None
) -> Payroll:
    payroll = get_payroll(db, payroll_id)
    if not payroll.can_transition_to(PayrollStatus.PAID):
        raise InvalidStateTransitionError(
            "Payroll must be approved before it can be marked as paid",
            error_code="NOT_APPROVED",
            details={"payroll_id": payroll_id, "status": payroll.status}
        )

    if payment_date is None:
        payment_date = datetime.now(timezone.utc)
    elif not isinstance(payment_date, datetime) and isinstance(payment_date, date):
        payment_date = datetime.combine(payment_date, time.min)

    before = _payroll_snapshot(payroll)
    payroll.status = PayrollStatus.PAID.value
    payroll.payment_date = payment_date

    AuditService.log(
        db,
        action="payroll_paid",
        entity_type="payroll",
        entity_id=payroll.id,
        actor_id=actor_id,
        details={"payment_date": payment_date},
        before_state=before,
        after_state=_payroll_snapshot(payroll)
    )
    _commit(db)
    db.refresh(payroll)
    logger.info(f"Payroll {payroll.id} marked as paid")
    return payroll


def delete_payroll(db: Session, payroll_id: int, actor_id: Optional[int] = None) -> None:
    payroll = get_payroll(db, payroll_id)
    if payroll.status != PayrollStatus.DRAFT.value:
        raise InvalidStateTransitionError(
            f"Cannot delete a {payroll.status} payroll",
            error_code="CANNOT_DELETE_FINALIZED",
            details={"payroll_id": payroll_id, "status": payroll.status}
        )

    AuditService.log(
        db,
        action="payroll_deleted",
        entity_type="payroll",
        entity_id=payroll.id,
        actor_id=actor_id,
        details={"employee_id": payroll.employee_id, "month": payroll.month, "year": payroll.year},
        before_state=_payroll_snapshot(payroll)
    )
    db.delete(payroll)
    _commit(db)
    logger.info(f"Deleted draft payroll {payroll_id}")


def list_payrolls(
    db: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    status: Optional[str] = None,
    department: Optional[str] = None
) -> List[Payroll]:
    query = db.query(Payroll).join(Employee)
    if month is not None:
        query = query.filter(Payroll.month == month)
    if year is not None:
        query = query.filter(Payroll.year == year)
    if status:
        query = query.filter(Payroll.status == status)
    if department:
        query = query.filter(Employee.department == department)
    return query.order_by(Payroll.year.desc(), Payroll.month.desc(), Payroll.id).all()


def get_employee_payroll_history(
    db: Session,
    employee_id: int,
    year: Optional[int] = None
) -> List[Payroll]:
    """
    Get payroll history for an employee, newest period first.
    """
    if not db.query(Employee.id).filter(Employee.id == employee_id).first():
        raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                            details={"employee_id": employee_id})

    query = db.query(Payroll).filter(Payroll.employee_id == employee_id)
    if year is not None:
        query = query.filter(Payroll.year == year)
    return query.order_by(Payroll.year.desc(), Payroll.month.desc()).all()


def payroll_to_dict(payroll: Payroll) -> Dict[str, Any]:
    """Convert Payroll model to dict representation."""
    employee = payroll.employee
    return {
        "id": payroll.id,
        "employee_id": payroll.employee_id,
        "employee_name": employee.full_name if employee else None,
        "department": payroll.department,
        "month": payroll.month,
        "year": payroll.year,
        "basic_salary": payroll.basic_salary,
        "allowances": payroll.allowances,
        "bonuses": payroll.bonuses,
        "deductions": payroll.deductions,
        "working_days": payroll.working_days,
        "attended_days": payroll.attended_days,
        "absent_days": payroll.absent_days,
        "late_deductions": payroll.late_deductions,
        "overtime_hours": payroll.overtime_hours,
        "overtime_pay": payroll.overtime_pay,
        "gross_salary": payroll.gross_salary,
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
        "status": payroll.status,
        "approved_by": payroll.approved_by,
        "approval_date": payroll.approval_date.isoformat() if payroll.approval_date else None,
        "payment_date": payroll.payment_date.isoformat() if payroll.payment_date else None,
        "notes": payroll.notes,
        "created_at": payroll.created_at.isoformat() if payroll.created_at else None,
    }
