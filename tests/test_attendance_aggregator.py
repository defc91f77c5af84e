import pytest
from datetime import date, datetime
from decimal import Decimal

from hr_payroll.core.exceptions import InvalidInputError
from hr_payroll.models import AttendanceEntry, AttendanceRecord
from hr_payroll.services.attendance_aggregator import (
    aggregate_attendance,
    calculate_working_days,
    month_bounds,
)


@pytest.mark.parametrize("month, year, expected", [
    (3, 2024, 21),
    (2, 2024, 21),
    (6, 2024, 20),
    (2, 2023, 20),
])
def test_working_days_exclude_weekends(month, year, expected):
    assert calculate_working_days(month, year) == expected


def test_month_bounds_handles_leap_february():
    assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))


@pytest.mark.parametrize("month", [0, 13, -1])
def test_invalid_month_rejected(month):
    with pytest.raises(InvalidInputError) as exc:
        calculate_working_days(month, 2024)
    assert exc.value.error_code == "INVALID_MONTH"


def test_empty_month_is_all_absent(db_session, make_employee):
    employee = make_employee()
    summary = aggregate_attendance(db_session, employee.id, 3, 2024)

    assert summary.working_days == 21
    assert summary.attended_days == 0
    assert summary.absent_days == 21
    assert summary.overtime_hours == Decimal("0")
    assert summary.late_days == 0


def test_aggregates_attendance_and_leave(db_session, make_employee, add_attendance, add_leave):
    employee = make_employee()
    add_attendance(employee, date(2024, 3, 4), "9", "present")
    add_attendance(employee, date(2024, 3, 5), "8", "late")
    add_attendance(employee, date(2024, 3, 6), "5", "half-day")
    add_attendance(employee, date(2024, 3, 7), "2", "absent")

    add_leave(employee, "annual", date(2024, 3, 11), date(2024, 3, 12))
    add_leave(employee, "unpaid", date(2024, 3, 13), date(2024, 3, 13))
    # Neutral type: neither paid nor unpaid
    add_leave(employee, "casual", date(2024, 3, 14), date(2024, 3, 14))
    # Not approved: ignored
    add_leave(employee, "sick", date(2024, 3, 15), date(2024, 3, 15), status="pending")
    # Straddles the month start: only March 1 counts
    add_leave(employee, "annual", date(2024, 2, 28), date(2024, 3, 1))

    summary = aggregate_attendance(db_session, employee.id, 3, 2024)

    assert summary.working_days == 21
    assert summary.paid_leave_days == 3
    assert summary.unpaid_leave_days == 1
    # present + late, plus paid leave
    assert summary.attended_days == 5
    assert summary.absent_days == 21 - 2 - 3
    assert summary.late_days == 1
    assert summary.total_hours_worked == Decimal("24")
    assert summary.overtime_hours == Decimal("1")


def test_other_months_are_ignored(db_session, make_employee, add_attendance):
    employee = make_employee()
    add_attendance(employee, date(2024, 2, 29), "10", "present")
    add_attendance(employee, date(2024, 4, 1), "10", "present")

    summary = aggregate_attendance(db_session, employee.id, 3, 2024)
    assert summary.attended_days == 0
    assert summary.overtime_hours == Decimal("0")


def test_absent_days_never_negative(db_session, make_employee, add_attendance, add_leave):
    employee = make_employee()
    # Weekend work and a month-long leave push attendance past working days
    add_leave(employee, "annual", date(2024, 6, 1), date(2024, 6, 30))
    add_attendance(employee, date(2024, 6, 3), "8", "present")

    summary = aggregate_attendance(db_session, employee.id, 6, 2024)
    assert summary.absent_days == 0
    assert 0 <= summary.absent_days <= summary.working_days


def test_aggregation_does_not_write(db_session, make_employee, add_attendance):
    employee = make_employee()
    add_attendance(employee, date(2024, 3, 4), "8", "present")

    aggregate_attendance(db_session, employee.id, 3, 2024)
    assert not db_session.new
    assert not db_session.dirty


class TestAttendanceRecordStatus:
    def _record(self, *spans):
        record = AttendanceRecord(employee_id=1, date=date(2024, 3, 4))
        for start, end in spans:
            entry = AttendanceEntry(clock_in=start, notes=None)
            entry.close(end)
            record.entries.append(entry)
        record.recalculate()
        return record

    def test_full_day_is_present(self):
        record = self._record((datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 17, 30)))
        assert record.total_hours == Decimal("8.50")
        assert record.status == "present"

    def test_clock_in_after_grace_is_late(self):
        record = self._record((datetime(2024, 3, 4, 11, 5), datetime(2024, 3, 4, 20, 0)))
        assert record.status == "late"

    def test_ten_oclock_is_still_on_time(self):
        record = self._record((datetime(2024, 3, 4, 10, 59), datetime(2024, 3, 4, 18, 0)))
        assert record.status == "present"

    def test_short_day_is_half_day(self):
        record = self._record((datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 14, 0)))
        assert record.status == "half-day"

    def test_very_short_day_is_absent(self):
        record = self._record((datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 11, 0)))
        assert record.status == "absent"

    def test_split_shift_hours_are_summed(self):
        record = self._record(
            (datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 12, 0)),
            (datetime(2024, 3, 4, 13, 0), datetime(2024, 3, 4, 17, 20)),
        )
        assert record.total_hours == Decimal("7.33")
        assert record.status == "present"
