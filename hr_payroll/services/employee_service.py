import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hr_payroll.core.exceptions import InvalidInputError, NotFoundError
from hr_payroll.core.money import to_decimal
from hr_payroll.models.employee import Employee, SalaryConfiguration
from hr_payroll.services.audit import AuditService

logger = logging.getLogger(__name__)

SALARY_FIELDS = (
    "basic_salary",
    "transportation_allowance",
    "housing_allowance",
    "food_allowance",
    "mobile_allowance",
    "other_allowance",
    "tax_rate",
    "social_insurance_rate",
    "health_insurance_rate",
    "overtime_multiplier",
)


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                            details={"employee_id": employee_id})
    return employee


def list_employees(db: Session, department: Optional[str] = None, active_only: bool = False) -> List[Employee]:
    query = db.query(Employee)
    if department:
        query = query.filter(Employee.department == department)
    if active_only:
        query = query.filter(Employee.is_active.is_(True))
    return query.order_by(Employee.id).all()


def create_employee(
    db: Session,
    full_name: str,
    email: str,
    department: Optional[str] = None,
    is_active: bool = True
) -> Employee:
    employee = Employee(full_name=full_name, email=email, department=department, is_active=is_active)
    db.add(employee)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidInputError("An employee with this email already exists",
                                error_code="DUPLICATE_EMAIL", details={"email": email})
    except Exception:
        db.rollback()
        raise
    db.refresh(employee)
    logger.info(f"Created employee {employee.id} ({employee.department or 'no department'})")
    return employee


def set_salary_config(
    db: Session,
    employee_id: int,
    values: Dict[str, Any],
    actor_id: Optional[int] = None
) -> SalaryConfiguration:
    """
    Create or replace the salary configuration of an employee.
    Only the provided fields change; missing fields keep their stored value.
    Existing payroll snapshots are not affected.
    """
    employee = get_employee(db, employee_id)

    unknown = set(values) - set(SALARY_FIELDS)
    if unknown:
        raise InvalidInputError(f"Unknown salary fields: {', '.join(sorted(unknown))}")
    for field, value in values.items():
        if value is not None and to_decimal(value, field=field) < 0:
            raise InvalidInputError(f"'{field}' cannot be negative", error_code="NEGATIVE_AMOUNT",
                                    details={"field": field})

    config = employee.salary_config
    before = {f: getattr(config, f) for f in SALARY_FIELDS} if config else None
    if config is None:
        config = SalaryConfiguration(employee_id=employee.id)
        db.add(config)

    for field, value in values.items():
        if value is not None:
            setattr(config, field, to_decimal(value))

    try:
        db.flush()
        AuditService.log(
            db,
            action="salary_config_updated",
            entity_type="salary_configuration",
            entity_id=config.id,
            actor_id=actor_id,
            details={"employee_id": employee_id},
            before_state=before,
            after_state={f: getattr(config, f) for f in SALARY_FIELDS}
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(config)
    logger.info(f"Salary configuration saved for employee {employee_id}")
    return config
