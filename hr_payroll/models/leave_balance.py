from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from hr_payroll.database import Base

class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type", name="uq_leave_balance_employee_type"),
        CheckConstraint("remaining_days >= 0", name="ck_leave_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type = Column(String, nullable=False, index=True)  # see LeaveType
    allotted_days = Column(Integer, nullable=False, default=0)
    remaining_days = Column(Integer, nullable=False, default=0)

    employee = relationship("Employee", back_populates="leave_balances")
