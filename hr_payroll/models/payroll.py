from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hr_payroll.database import Base
import enum

class PayrollStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"

# Forward-only lifecycle. Nothing moves a record into PENDING today.
ALLOWED_TRANSITIONS = {
    PayrollStatus.DRAFT: {PayrollStatus.APPROVED},
    PayrollStatus.PENDING: {PayrollStatus.APPROVED},
    PayrollStatus.APPROVED: {PayrollStatus.PAID},
    PayrollStatus.PAID: set(),
}

EDITABLE_STATUSES = {PayrollStatus.DRAFT, PayrollStatus.PENDING}
FINALIZED_STATUSES = {PayrollStatus.APPROVED, PayrollStatus.PAID}

ALLOWANCE_KEYS = ("transportation", "housing", "food", "mobile", "other")
BONUS_KEYS = ("performance", "project", "other")
DEDUCTION_KEYS = ("tax", "social_insurance", "health_insurance", "unpaid_leave", "other")


class Payroll(Base):
    """
    Frozen salary snapshot for one employee and one month.
    Values are written once at generation; afterwards only the narrow
    update field set may change them (see payroll_service.update_payroll).
    """
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_employee_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_payroll_month_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    basic_salary = Column(Numeric(12, 2), nullable=False)

    # Allowance snapshot (not a live reference to the salary configuration)
    allowance_transportation = Column(Numeric(12, 2), nullable=False, default=0)
    allowance_housing = Column(Numeric(12, 2), nullable=False, default=0)
    allowance_food = Column(Numeric(12, 2), nullable=False, default=0)
    allowance_mobile = Column(Numeric(12, 2), nullable=False, default=0)
    allowance_other = Column(Numeric(12, 2), nullable=False, default=0)

    working_days = Column(Integer, nullable=False)
    attended_days = Column(Integer, nullable=False)
    absent_days = Column(Integer, nullable=False, default=0)
    late_deductions = Column(Numeric(12, 2), nullable=False, default=0)

    bonus_performance = Column(Numeric(12, 2), nullable=False, default=0)
    bonus_project = Column(Numeric(12, 2), nullable=False, default=0)
    bonus_other = Column(Numeric(12, 2), nullable=False, default=0)

    overtime_hours = Column(Numeric(6, 2), nullable=False, default=0)
    overtime_pay = Column(Numeric(12, 2), nullable=False, default=0)

    deduction_tax = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_social_insurance = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_health_insurance = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_unpaid_leave = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_other = Column(Numeric(12, 2), nullable=False, default=0)

    gross_salary = Column(Numeric(12, 2), nullable=False)
    total_deductions = Column(Numeric(12, 2), nullable=False)
    net_salary = Column(Numeric(12, 2), nullable=False)

    status = Column(String, nullable=False, default=PayrollStatus.DRAFT.value, index=True)
    approved_by = Column(Integer, nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="payrolls")

    @property
    def allowances(self) -> dict:
        return {k: getattr(self, f"allowance_{k}") for k in ALLOWANCE_KEYS}

    @property
    def bonuses(self) -> dict:
        return {k: getattr(self, f"bonus_{k}") for k in BONUS_KEYS}

    @property
    def deductions(self) -> dict:
        return {k: getattr(self, f"deduction_{k}") for k in DEDUCTION_KEYS}

    @property
    def department(self):
        return self.employee.department if self.employee else None

    @property
    def status_enum(self) -> PayrollStatus:
        return PayrollStatus(self.status)

    def can_transition_to(self, target: PayrollStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status_enum]

    @property
    def is_editable(self) -> bool:
        return self.status_enum in EDITABLE_STATUSES
