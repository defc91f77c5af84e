from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class InvalidInputError(AppException):
    """Missing or out-of-range input (month outside 1-12, empty ids, bad ranges)."""
    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )

class NotFoundError(AppException):
    def __init__(self, message: str, error_code: str = "NOT_FOUND", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code=error_code,
            details=details
        )

class DuplicatePayrollError(AppException):
    def __init__(self, employee_id: int, month: int, year: int):
        super().__init__(
            message=f"Payroll already exists for employee {employee_id} for {month}/{year}",
            status_code=409,
            error_code="DUPLICATE_PAYROLL",
            details={"employee_id": employee_id, "month": month, "year": year}
        )

class InsufficientBalanceError(AppException):
    def __init__(self, leave_type: str, requested: int, remaining: int):
        super().__init__(
            message=f"Insufficient {leave_type} leave balance. Requested: {requested}, Remaining: {remaining}",
            status_code=400,
            error_code="INSUFFICIENT_BALANCE",
            details={"leave_type": leave_type, "requested": requested, "remaining": remaining}
        )

class InvalidStateTransitionError(AppException):
    def __init__(self, message: str, error_code: str = "INVALID_STATE_TRANSITION", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code=error_code,
            details=details
        )

class MissingSalaryConfigError(AppException):
    def __init__(self, employee_id: int):
        super().__init__(
            message="Employee salary information not configured",
            status_code=400,
            error_code="MISSING_SALARY_CONFIG",
            details={"employee_id": employee_id}
        )
