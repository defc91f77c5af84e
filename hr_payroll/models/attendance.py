from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hr_payroll.database import Base
from hr_payroll.core.config import settings
from hr_payroll.core.money import to_decimal, quantize_hours
import enum


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    HALF_DAY = "half-day"


class AttendanceRecord(Base):
    """One employee's attendance for one calendar date."""
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    total_hours = Column(Numeric(6, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default=AttendanceStatus.ABSENT.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="attendance_records")
    entries = relationship(
        "AttendanceEntry",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="AttendanceEntry.clock_in",
    )

    def calculate_total_hours(self):
        total_minutes = sum(e.duration_minutes or 0 for e in self.entries)
        self.total_hours = quantize_hours(to_decimal(total_minutes) / 60)
        return self.total_hours

    def update_status(self):
        cfg = settings.payroll
        if not self.entries:
            self.status = AttendanceStatus.ABSENT.value
            return self.status

        first = min(self.entries, key=lambda e: e.clock_in)
        hours = to_decimal(self.total_hours)

        if first.clock_in.hour > cfg.work_start_hour + cfg.late_grace_hours:
            self.status = AttendanceStatus.LATE.value
        elif hours < cfg.half_day_min_hours:
            self.status = AttendanceStatus.ABSENT.value
        elif hours < cfg.full_day_min_hours:
            self.status = AttendanceStatus.HALF_DAY.value
        else:
            self.status = AttendanceStatus.PRESENT.value
        return self.status

    def recalculate(self):
        self.calculate_total_hours()
        self.update_status()


class AttendanceEntry(Base):
    """A single clock-in/clock-out pair within an attendance record."""
    __tablename__ = "attendance_entries"

    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False, index=True)
    clock_in = Column(DateTime, nullable=False)
    clock_out = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    notes = Column(String, nullable=True)

    record = relationship("AttendanceRecord", back_populates="entries")

    def close(self, clock_out):
        self.clock_out = clock_out
        self.duration_minutes = round((clock_out - self.clock_in).total_seconds() / 60)
        return self.duration_minutes
