from sqlalchemy import Column, Integer, String, Date, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hr_payroll.database import Base
import enum

class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

class LeaveType(str, enum.Enum):
    ANNUAL = "annual"
    SICK = "sick"
    CASUAL = "casual"
    UNPAID = "unpaid"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    OTHER = "other"


def inclusive_days(start_date, end_date) -> int:
    return (end_date - start_date).days + 1


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_leave_date_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(String, nullable=True)
    status = Column(String, nullable=False, default=LeaveStatus.PENDING.value, index=True)
    approved_by = Column(Integer, nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="leave_requests")

    def set_period(self, start_date, end_date) -> int:
        """Assign a new date range; total_days always follows the stored range."""
        self.start_date = start_date
        self.end_date = end_date
        self.total_days = inclusive_days(start_date, end_date)
        return self.total_days
