from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional


class BonusInput(BaseModel):
    performance: Decimal = Field(Decimal("0"), ge=0)
    project: Decimal = Field(Decimal("0"), ge=0)
    other: Decimal = Field(Decimal("0"), ge=0)


class DeductionInput(BaseModel):
    """Partial deduction override; omitted keys keep their stored amount."""
    tax: Optional[Decimal] = Field(None, ge=0)
    social_insurance: Optional[Decimal] = Field(None, ge=0)
    health_insurance: Optional[Decimal] = Field(None, ge=0)
    unpaid_leave: Optional[Decimal] = Field(None, ge=0)
    other: Optional[Decimal] = Field(None, ge=0)


class PayrollGenerateRequest(BaseModel):
    employee_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    bonuses: Optional[BonusInput] = None
    notes: Optional[str] = None
    actor_id: Optional[int] = None


class BulkGenerateRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    actor_id: Optional[int] = None


class PayrollUpdateRequest(BaseModel):
    bonuses: Optional[BonusInput] = None
    deductions: Optional[DeductionInput] = None
    notes: Optional[str] = None
    late_deductions: Optional[Decimal] = Field(None, ge=0)
    overtime_hours: Optional[Decimal] = Field(None, ge=0)
    overtime_pay: Optional[Decimal] = Field(None, ge=0)
    actor_id: Optional[int] = None

    def to_fields(self) -> Dict[str, object]:
        # Nested models keep only the keys the caller sent
        return self.model_dump(exclude={"actor_id"}, exclude_none=True, exclude_unset=True)


class PayrollApproveRequest(BaseModel):
    approver_id: int
    notes: Optional[str] = None


class PayrollPayRequest(BaseModel):
    payment_date: Optional[datetime] = None
    actor_id: Optional[int] = None


class PayrollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    month: int
    year: int
    basic_salary: Decimal
    allowances: Dict[str, Decimal]
    bonuses: Dict[str, Decimal]
    deductions: Dict[str, Decimal]
    working_days: int
    attended_days: int
    absent_days: int
    late_deductions: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    status: str
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None
    department: Optional[str] = None
    created_at: Optional[datetime] = None


class BulkSuccessItem(BaseModel):
    employee_id: int
    name: str
    payroll_id: int
    net_salary: Decimal


class BulkFailureItem(BaseModel):
    employee_id: int
    name: str
    reason: str
    code: str


class BulkGenerateResponse(BaseModel):
    month: int
    year: int
    processed: int
    success: List[BulkSuccessItem]
    failed: List[BulkFailureItem]


class PayrollDeleteResponse(BaseModel):
    id: int
    deleted: bool


class ReportTotals(BaseModel):
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    overtime_pay: Decimal
    bonuses: Decimal


class DepartmentSummary(BaseModel):
    count: int
    gross_salary: Decimal
    net_salary: Decimal
    average_salary: Decimal


class PayrollReportResponse(BaseModel):
    month: int
    year: int
    working_days: int
    total_employees: int
    totals: ReportTotals
    average_salary: Decimal
    by_department: Dict[str, DepartmentSummary]
    by_status: Dict[str, int]
    payrolls: List[PayrollResponse]
