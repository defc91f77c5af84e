"""
Salary Calculator

Turns an employee's salary configuration and an AttendanceSummary into
gross salary, itemised deductions and net salary.

All arithmetic is Decimal. Daily and hourly rates stay at full precision;
each component is rounded half-up to cents, and gross, total deductions and
net are exact sums of those rounded components.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from hr_payroll.core.config import settings
from hr_payroll.core.exceptions import InvalidInputError, MissingSalaryConfigError, NotFoundError
from hr_payroll.core.money import ZERO, to_decimal, quantize_money, quantize_hours, money_sum
from hr_payroll.models.employee import Employee, SalaryConfiguration
from hr_payroll.models.payroll import Payroll, ALLOWANCE_KEYS, BONUS_KEYS, DEDUCTION_KEYS
from hr_payroll.services.attendance_aggregator import AttendanceSummary, aggregate_attendance

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class SalaryCalculation:
    basic_salary: Decimal
    allowances: Dict[str, Decimal]
    bonuses: Dict[str, Decimal]
    working_days: int
    attended_days: int
    absent_days: int
    late_deductions: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    deductions: Dict[str, Decimal]
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    unpaid_leave_days: int = 0
    paid_leave_days: int = 0
    daily_rate: Decimal = field(default=ZERO, compare=False)


def normalize_bonuses(bonuses: Optional[Dict[str, object]]) -> Dict[str, Decimal]:
    bonuses = bonuses or {}
    unknown = set(bonuses) - set(BONUS_KEYS)
    if unknown:
        raise InvalidInputError(f"Unknown bonus fields: {', '.join(sorted(unknown))}")
    result = {}
    for key in BONUS_KEYS:
        amount = to_decimal(bonuses.get(key), field=key)
        if amount < 0:
            raise InvalidInputError(f"Bonus '{key}' cannot be negative", error_code="NEGATIVE_AMOUNT")
        result[key] = amount
    return result


def daily_rate(basic_salary: Decimal, working_days: int) -> Decimal:
    if not working_days or working_days <= 0:
        raise InvalidInputError("Cannot calculate salary for a month with zero working days",
                                error_code="ZERO_WORKING_DAYS")
    return to_decimal(basic_salary) / Decimal(working_days)


def hourly_rate(basic_salary: Decimal, working_days: int) -> Decimal:
    hours = Decimal(settings.payroll.standard_hours_per_day)
    return daily_rate(basic_salary, working_days) / hours


def calculate_late_deductions(late_days: int, basic_salary: Decimal, working_days: int) -> Decimal:
    # Only complete groups count; a trailing group of 1-2 late days costs nothing
    cfg = settings.payroll
    groups = late_days // cfg.late_days_per_penalty
    return Decimal(groups) * daily_rate(basic_salary, working_days) * cfg.late_penalty_day_fraction


def calculate_overtime_pay(overtime_hours: Decimal, basic_salary: Decimal, working_days: int,
                           multiplier: Optional[Decimal] = None) -> Decimal:
    if multiplier is None:
        multiplier = settings.payroll.default_overtime_multiplier
    return to_decimal(overtime_hours) * hourly_rate(basic_salary, working_days) * to_decimal(multiplier)


def calculate_unpaid_leave_deduction(unpaid_leave_days: int, basic_salary: Decimal, working_days: int) -> Decimal:
    return Decimal(unpaid_leave_days) * daily_rate(basic_salary, working_days)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return to_decimal(amount) * to_decimal(rate) / HUNDRED


def _attendance_pay(basic: Decimal, working_days: int, absent_days: int) -> Decimal:
    # Paid leave and attendance both count as full pay; only true absence is deducted
    return quantize_money(basic - daily_rate(basic, working_days) * Decimal(absent_days or 0))


def _gross_from_parts(attendance_pay: Decimal, allowances, bonuses, overtime_pay: Decimal) -> Decimal:
    return attendance_pay + money_sum(allowances) + money_sum(bonuses) + overtime_pay


def _total_from_parts(deductions, late_deductions: Decimal) -> Decimal:
    return money_sum(deductions) + late_deductions


def calculate_salary(
    config: SalaryConfiguration,
    summary: AttendanceSummary,
    bonuses: Optional[Dict[str, object]] = None
) -> SalaryCalculation:
    """
    Every component is rounded to cents first; gross and total deductions are
    exact sums of the rounded components, so recalculating a stored payroll
    reproduces the same totals.
    """
    basic = quantize_money(config.basic_salary)
    working_days = summary.working_days
    rate = daily_rate(basic, working_days)

    allowances = {k: quantize_money(v) for k, v in config.allowances.items()}
    bonus_amounts = {k: quantize_money(v) for k, v in normalize_bonuses(bonuses).items()}

    late_deductions = quantize_money(calculate_late_deductions(summary.late_days, basic, working_days))
    overtime_pay = quantize_money(calculate_overtime_pay(summary.overtime_hours, basic, working_days,
                                                         config.overtime_multiplier))
    unpaid_leave = quantize_money(calculate_unpaid_leave_deduction(summary.unpaid_leave_days, basic, working_days))

    gross_salary = _gross_from_parts(
        _attendance_pay(basic, working_days, summary.absent_days),
        allowances.values(), bonus_amounts.values(), overtime_pay
    )

    deductions = {
        "tax": quantize_money(percent_of(gross_salary, config.tax_rate)),
        # Insurance is levied on basic salary, not gross
        "social_insurance": quantize_money(percent_of(basic, config.social_insurance_rate)),
        "health_insurance": quantize_money(percent_of(basic, config.health_insurance_rate)),
        "unpaid_leave": unpaid_leave,
        "other": quantize_money(ZERO),
    }
    total = _total_from_parts(deductions.values(), late_deductions)

    return SalaryCalculation(
        basic_salary=basic,
        allowances=allowances,
        bonuses=bonus_amounts,
        working_days=working_days,
        attended_days=summary.attended_days,
        absent_days=summary.absent_days,
        late_deductions=late_deductions,
        overtime_hours=quantize_hours(summary.overtime_hours),
        overtime_pay=overtime_pay,
        deductions=deductions,
        gross_salary=gross_salary,
        total_deductions=total,
        # Net may be negative; flagging that is the caller's job
        net_salary=gross_salary - total,
        unpaid_leave_days=summary.unpaid_leave_days,
        paid_leave_days=summary.paid_leave_days,
        daily_rate=rate,
    )


def get_salary_config(db: Session, employee_id: int) -> SalaryConfiguration:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found", error_code="EMPLOYEE_NOT_FOUND",
                            details={"employee_id": employee_id})
    config = employee.salary_config
    if config is None or not config.basic_salary or to_decimal(config.basic_salary) <= 0:
        raise MissingSalaryConfigError(employee_id)
    return config


def calculate_employee_salary(
    db: Session,
    employee_id: int,
    month: int,
    year: int,
    bonuses: Optional[Dict[str, object]] = None
) -> SalaryCalculation:
    """Aggregator then calculator for one employee and month."""
    config = get_salary_config(db, employee_id)
    summary = aggregate_attendance(db, employee_id, month, year)
    return calculate_salary(config, summary, bonuses)


def recalculate_totals(payroll: Payroll) -> Payroll:
    """
    Re-derive gross, total deductions and net from the values stored on the
    payroll snapshot. Attendance and leave data are not consulted.
    """
    basic = to_decimal(payroll.basic_salary)
    gross = _gross_from_parts(
        _attendance_pay(basic, payroll.working_days, payroll.absent_days),
        (getattr(payroll, f"allowance_{k}") for k in ALLOWANCE_KEYS),
        (getattr(payroll, f"bonus_{k}") for k in BONUS_KEYS),
        to_decimal(payroll.overtime_pay),
    )
    total = _total_from_parts(
        (getattr(payroll, f"deduction_{k}") for k in DEDUCTION_KEYS),
        to_decimal(payroll.late_deductions),
    )

    payroll.gross_salary = quantize_money(gross)
    payroll.total_deductions = quantize_money(total)
    payroll.net_salary = payroll.gross_salary - payroll.total_deductions
    return payroll
