# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import employee, attendance, leave_request, leave_balance, payroll, audit_log

# Explicit class exports for cleaner imports
from .employee import Employee, SalaryConfiguration
from .attendance import AttendanceRecord, AttendanceEntry, AttendanceStatus
from .leave_request import LeaveRequest, LeaveStatus, LeaveType
from .leave_balance import LeaveBalance
from .payroll import Payroll, PayrollStatus
from .audit_log import AuditLog

__all__ = [
    "Employee",
    "SalaryConfiguration",
    "AttendanceRecord",
    "AttendanceEntry",
    "AttendanceStatus",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "LeaveBalance",
    "Payroll",
    "PayrollStatus",
    "AuditLog",
]
