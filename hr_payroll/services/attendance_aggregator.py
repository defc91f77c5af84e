"""
Attendance/Leave Aggregator

Reduces one month of attendance records and approved leave into the day and
hour counts consumed by the salary calculator. Read-only: it never writes to
the session.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Tuple

from sqlalchemy.orm import Session

from hr_payroll.core.config import settings
from hr_payroll.core.exceptions import InvalidInputError
from hr_payroll.core.money import ZERO, to_decimal
from hr_payroll.models.attendance import AttendanceRecord, AttendanceStatus
from hr_payroll.models.leave_request import LeaveRequest, LeaveStatus, LeaveType, inclusive_days

PAID_LEAVE_TYPES = {LeaveType.ANNUAL.value, LeaveType.SICK.value}
UNPAID_LEAVE_TYPES = {LeaveType.UNPAID.value}

# Saturday, Sunday
WEEKEND_DAYS = {5, 6}


@dataclass(frozen=True)
class AttendanceSummary:
    working_days: int
    attended_days: int  # includes paid leave days
    absent_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    total_hours_worked: Decimal
    overtime_hours: Decimal
    late_days: int


def validate_period(month: int, year: int) -> None:
    if month is None or year is None:
        raise InvalidInputError("Month and year are required", error_code="MISSING_REQUIRED_FIELDS")
    if not 1 <= month <= 12:
        raise InvalidInputError("Invalid month. Must be between 1 and 12", error_code="INVALID_MONTH")
    if year < 1:
        raise InvalidInputError("Invalid year", error_code="INVALID_YEAR")


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    validate_period(month, year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def calculate_working_days(month: int, year: int) -> int:
    """Weekdays in the month. No holiday calendar."""
    start, end = month_bounds(month, year)
    day = start
    count = 0
    while day <= end:
        if day.weekday() not in WEEKEND_DAYS:
            count += 1
        day += timedelta(days=1)
    return count


def aggregate_attendance(db: Session, employee_id: int, month: int, year: int) -> AttendanceSummary:
    start, end = month_bounds(month, year)
    working_days = calculate_working_days(month, year)
    standard_hours = to_decimal(settings.payroll.standard_hours_per_day)

    records = db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.date >= start,
        AttendanceRecord.date <= end
    ).all()

    leaves = db.query(LeaveRequest).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status == LeaveStatus.APPROVED.value,
        LeaveRequest.start_date <= end,
        LeaveRequest.end_date >= start
    ).all()

    paid_leave_days = 0
    unpaid_leave_days = 0
    for leave in leaves:
        days = inclusive_days(max(leave.start_date, start), min(leave.end_date, end))
        if leave.leave_type in PAID_LEAVE_TYPES:
            paid_leave_days += days
        elif leave.leave_type in UNPAID_LEAVE_TYPES:
            unpaid_leave_days += days
        # casual, maternity, paternity and other fall in neither bucket

    attended_days = sum(
        1 for r in records
        if r.status in (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)
    )
    late_days = sum(1 for r in records if r.status == AttendanceStatus.LATE.value)

    total_hours = ZERO
    overtime_hours = ZERO
    for record in records:
        hours = to_decimal(record.total_hours)
        total_hours += hours
        overtime_hours += max(ZERO, hours - standard_hours)

    absent_days = max(0, working_days - attended_days - paid_leave_days)

    return AttendanceSummary(
        working_days=working_days,
        attended_days=attended_days + paid_leave_days,
        absent_days=absent_days,
        paid_leave_days=paid_leave_days,
        unpaid_leave_days=unpaid_leave_days,
        total_hours_worked=total_hours,
        overtime_hours=overtime_hours,
        late_days=late_days,
    )
