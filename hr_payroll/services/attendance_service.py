import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from hr_payroll.core.exceptions import InvalidInputError, InvalidStateTransitionError, NotFoundError
from hr_payroll.models.attendance import AttendanceRecord, AttendanceEntry
from hr_payroll.models.employee import Employee

logger = logging.getLogger(__name__)


def _get_or_create_record(db: Session, employee_id: int, day: date) -> AttendanceRecord:
    record = db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.date == day
    ).first()
    if record is None:
        record = AttendanceRecord(employee_id=employee_id, date=day)
        db.add(record)
    return record


def clock_in(db: Session, employee_id: int, at: Optional[datetime] = None, notes: Optional[str] = None) -> AttendanceRecord:
    at = at or datetime.now()
    if not db.query(Employee).filter(Employee.id == employee_id).first():
        raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                            details={"employee_id": employee_id})

    record = _get_or_create_record(db, employee_id, at.date())
    if any(e.clock_out is None for e in record.entries):
        raise InvalidStateTransitionError("Already clocked in", error_code="ALREADY_CLOCKED_IN")

    record.entries.append(AttendanceEntry(clock_in=at, notes=notes))
    record.recalculate()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    return record


def clock_out(db: Session, employee_id: int, at: Optional[datetime] = None) -> AttendanceRecord:
    at = at or datetime.now()
    record = db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.date == at.date()
    ).first()
    open_entries = [e for e in record.entries if e.clock_out is None] if record else []
    if not open_entries:
        raise InvalidStateTransitionError("No active clock-in found for today", error_code="NOT_CLOCKED_IN")

    entry = open_entries[-1]
    if at < entry.clock_in:
        raise InvalidInputError("Clock-out cannot precede clock-in", error_code="INVALID_TIME_RANGE")
    entry.close(at)
    record.recalculate()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    logger.info(f"Employee {employee_id} clocked out; {record.total_hours}h on {record.date} ({record.status})")
    return record


def list_attendance(db: Session, employee_id: int, start: date, end: date) -> List[AttendanceRecord]:
    return db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.date >= start,
        AttendanceRecord.date <= end
    ).order_by(AttendanceRecord.date).all()
