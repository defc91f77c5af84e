"""
Leave Balance Ledger

Per-employee, per-leave-type remaining-day counters. Balances move only when
a leave request enters or leaves the "approved" state, or when the period of
an approved request changes.

Every mutation first takes a row lock on the employee (SELECT ... FOR UPDATE)
so concurrent approvals for the same employee are serialized; the
ck_leave_balance_non_negative constraint backs the check at the storage
layer. The ledger never commits: the caller commits the balance movement
together with the leave status change.
"""

from typing import Dict

from sqlalchemy.orm import Session

from hr_payroll.core.config import settings
from hr_payroll.core.exceptions import InsufficientBalanceError, InvalidInputError, NotFoundError
from hr_payroll.models.employee import Employee
from hr_payroll.models.leave_balance import LeaveBalance
from hr_payroll.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from hr_payroll.services.base import BaseService


def normalize_leave_type(leave_type) -> str:
    value = leave_type.value if isinstance(leave_type, LeaveType) else str(leave_type).lower()
    if value not in {t.value for t in LeaveType}:
        raise InvalidInputError(f"Unknown leave type: {leave_type}", error_code="INVALID_LEAVE_TYPE")
    return value


def normalize_leave_status(status) -> str:
    value = status.value if isinstance(status, LeaveStatus) else str(status).lower()
    if value not in {s.value for s in LeaveStatus}:
        raise InvalidInputError(f"Unknown leave status: {status}", error_code="INVALID_LEAVE_STATUS")
    return value


class LeaveBalanceLedger(BaseService):

    def _lock_employee(self, employee_id: int) -> Employee:
        employee = self.db.query(Employee).filter(
            Employee.id == employee_id
        ).with_for_update().first()
        if not employee:
            raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                                details={"employee_id": employee_id})
        return employee

    def _ensure_balances(self, employee_id: int, lock: bool = False) -> Dict[str, LeaveBalance]:
        query = self.db.query(LeaveBalance).filter(LeaveBalance.employee_id == employee_id)
        if lock:
            query = query.with_for_update()
        rows = {b.leave_type: b for b in query.all()}

        # Seed default allotments for any type not yet tracked
        missing = [t.value for t in LeaveType if t.value not in rows]
        if missing:
            defaults = settings.payroll.default_leave_allotments
            for leave_type in missing:
                days = defaults.get(leave_type, 0)
                balance = LeaveBalance(
                    employee_id=employee_id,
                    leave_type=leave_type,
                    allotted_days=days,
                    remaining_days=days
                )
                self.db.add(balance)
                rows[leave_type] = balance
            self.db.flush()
        return rows

    def get_balances(self, employee_id: int) -> Dict[str, int]:
        self._lock_employee(employee_id)
        rows = self._ensure_balances(employee_id)
        return {t.value: rows[t.value].remaining_days for t in LeaveType}

    def get_balance(self, employee_id: int, leave_type) -> int:
        return self.get_balances(employee_id)[normalize_leave_type(leave_type)]

    def has_available(self, employee_id: int, leave_type, days: int) -> bool:
        """Submission gate: read-only check against the current remaining balance."""
        return self.get_balance(employee_id, leave_type) >= days

    def _deduct(self, balance: LeaveBalance, days: int) -> None:
        if balance.remaining_days < days:
            raise InsufficientBalanceError(balance.leave_type, days, balance.remaining_days)
        balance.remaining_days -= days

    def on_status_change(self, leave: LeaveRequest, old_status: str, new_status: str) -> int:
        """
        Apply the balance effect of a leave status transition.
        Returns the signed change applied to the balance (0 when none).
        """
        old_status = normalize_leave_status(old_status)
        new_status = normalize_leave_status(new_status)
        approved = LeaveStatus.APPROVED.value

        if new_status == approved and old_status != approved:
            self._lock_employee(leave.employee_id)
            balance = self._ensure_balances(leave.employee_id, lock=True)[normalize_leave_type(leave.leave_type)]
            self._deduct(balance, leave.total_days)
            self.log_info(
                f"Deducted {leave.total_days} {balance.leave_type} day(s) for leave {leave.id}",
                employee_id=leave.employee_id,
            )
            return -leave.total_days

        # Leaving approved for any status, pending included, returns the deduction
        if old_status == approved and new_status != approved:
            self._lock_employee(leave.employee_id)
            balance = self._ensure_balances(leave.employee_id, lock=True)[normalize_leave_type(leave.leave_type)]
            # No upper cap: restoration may exceed the original allotment
            balance.remaining_days += leave.total_days
            self.log_info(
                f"Restored {leave.total_days} {balance.leave_type} day(s) for leave {leave.id}",
                employee_id=leave.employee_id,
            )
            return leave.total_days

        return 0

    def on_period_change(self, leave: LeaveRequest, old_total_days: int, new_total_days: int) -> int:
        """
        Restore the old day count and deduct the new one as a single adjustment.
        Only approved requests hold a deduction; others are left alone.
        """
        if leave.status != LeaveStatus.APPROVED.value:
            return 0
        self._lock_employee(leave.employee_id)
        balance = self._ensure_balances(leave.employee_id, lock=True)[normalize_leave_type(leave.leave_type)]
        available = balance.remaining_days + old_total_days
        if available < new_total_days:
            raise InsufficientBalanceError(balance.leave_type, new_total_days, available)
        balance.remaining_days = available - new_total_days
        return old_total_days - new_total_days

    def set_allotment(self, employee_id: int, leave_type, days: int) -> LeaveBalance:
        if days < 0:
            raise InvalidInputError("Leave allotment cannot be negative", error_code="NEGATIVE_AMOUNT")
        self._lock_employee(employee_id)
        balance = self._ensure_balances(employee_id, lock=True)[normalize_leave_type(leave_type)]
        balance.allotted_days = days
        balance.remaining_days = days
        return balance
