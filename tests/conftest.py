import pytest
import os
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import sessionmaker

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from hr_payroll.database import Base, create_db_engine, get_db, init_db
from hr_payroll.main import app
from hr_payroll.models import (
    AttendanceRecord,
    Employee,
    LeaveRequest,
    SalaryConfiguration,
)
from fastapi.testclient import TestClient

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def engine():
    """A private in-memory database per test; nothing leaks between tests."""
    engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def make_employee(db_session):
    """Factory for employees, optionally with a salary configuration."""
    counter = {"n": 0}

    def _make(basic_salary="3000", department="Engineering", is_active=True, **salary):
        counter["n"] += 1
        n = counter["n"]
        employee = Employee(
            full_name=f"Employee {n}",
            email=f"employee{n}@example.com",
            department=department,
            is_active=is_active,
        )
        if basic_salary is not None:
            employee.salary_config = SalaryConfiguration(
                basic_salary=Decimal(str(basic_salary)),
                **{k: Decimal(str(v)) for k, v in salary.items()}
            )
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee

    return _make


@pytest.fixture(scope="function")
def add_attendance(db_session):
    """Insert a finished attendance record with the given hours and status."""
    def _add(employee, day: date, hours, status="present"):
        record = AttendanceRecord(
            employee_id=employee.id,
            date=day,
            total_hours=Decimal(str(hours)),
            status=status,
        )
        db_session.add(record)
        db_session.commit()
        return record

    return _add


@pytest.fixture(scope="function")
def add_leave(db_session):
    """Insert a leave request directly, bypassing the balance ledger."""
    def _add(employee, leave_type, start: date, end: date, status="approved"):
        leave = LeaveRequest(employee_id=employee.id, leave_type=leave_type, status=status)
        leave.set_period(start, end)
        db_session.add(leave)
        db_session.commit()
        db_session.refresh(leave)
        return leave

    return _add


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
