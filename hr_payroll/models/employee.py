"""
Employee and salary configuration models.
The salary configuration is set once per employee and is the input to payroll generation.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr_payroll.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    department = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    salary_config = relationship("SalaryConfiguration", back_populates="employee", uselist=False, cascade="all, delete-orphan")
    leave_balances = relationship("LeaveBalance", back_populates="employee", cascade="all, delete-orphan")
    leave_requests = relationship("LeaveRequest", back_populates="employee", cascade="all, delete-orphan")
    attendance_records = relationship("AttendanceRecord", back_populates="employee", cascade="all, delete-orphan")
    payrolls = relationship("Payroll", back_populates="employee", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Employee {self.id}: {self.full_name}>"


class SalaryConfiguration(Base):
    __tablename__ = "salary_configurations"
    __table_args__ = (
        CheckConstraint("basic_salary >= 0", name="ck_salary_basic_non_negative"),
        CheckConstraint(
            "tax_rate >= 0 AND social_insurance_rate >= 0 AND health_insurance_rate >= 0",
            name="ck_salary_rates_non_negative",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), unique=True, nullable=False)

    basic_salary = Column(Numeric(12, 2), nullable=False, default=0)

    transportation_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    housing_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    food_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    mobile_allowance = Column(Numeric(12, 2), nullable=False, default=0)
    other_allowance = Column(Numeric(12, 2), nullable=False, default=0)

    # Percentages
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    social_insurance_rate = Column(Numeric(5, 2), nullable=False, default=0)
    health_insurance_rate = Column(Numeric(5, 2), nullable=False, default=0)
    overtime_multiplier = Column(Numeric(4, 2), nullable=False, default=1.5)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="salary_config")

    @property
    def allowances(self) -> dict:
        return {
            "transportation": self.transportation_allowance or 0,
            "housing": self.housing_allowance or 0,
            "food": self.food_allowance or 0,
            "mobile": self.mobile_allowance or 0,
            "other": self.other_allowance or 0,
        }
