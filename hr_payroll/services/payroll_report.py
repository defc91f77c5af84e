"""
Payroll reporting: month rollups and payslip rendering.

Everything here reads frozen Payroll snapshots only; nothing is recalculated
from attendance or leave data.
"""

import calendar
import html
import logging
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session, joinedload

from hr_payroll.core.money import ZERO, money_sum, quantize_money
from hr_payroll.models.payroll import Payroll, PayrollStatus
from hr_payroll.services.attendance_aggregator import calculate_working_days, validate_period
from hr_payroll.services.payroll_service import get_payroll, payroll_to_dict

logger = logging.getLogger(__name__)

UNASSIGNED_DEPARTMENT = "Unassigned"


def _average(total: Decimal, count: int) -> Decimal:
    if not count:
        return quantize_money(ZERO)
    return quantize_money(total / Decimal(count))


def generate_payroll_report(db: Session, month: int, year: int) -> Dict[str, Any]:
    """
    Aggregate all payrolls of a month.

    Returns totals (gross, deductions, net, overtime, bonuses), per-department
    and per-status breakdowns, the average net salary, the month's working
    days and the payroll rows themselves.
    """
    validate_period(month, year)

    payrolls = db.query(Payroll).options(joinedload(Payroll.employee)).filter(
        Payroll.month == month,
        Payroll.year == year
    ).order_by(Payroll.employee_id).all()

    totals = {
        "gross_salary": quantize_money(money_sum(p.gross_salary for p in payrolls)),
        "total_deductions": quantize_money(money_sum(p.total_deductions for p in payrolls)),
        "net_salary": quantize_money(money_sum(p.net_salary for p in payrolls)),
        "overtime_pay": quantize_money(money_sum(p.overtime_pay for p in payrolls)),
        "bonuses": quantize_money(money_sum(money_sum(p.bonuses.values()) for p in payrolls)),
    }

    by_department: Dict[str, Dict[str, Any]] = {}
    for p in payrolls:
        dept = p.department or UNASSIGNED_DEPARTMENT
        bucket = by_department.setdefault(dept, {"count": 0, "gross_salary": ZERO, "net_salary": ZERO})
        bucket["count"] += 1
        bucket["gross_salary"] += p.gross_salary
        bucket["net_salary"] += p.net_salary
    for bucket in by_department.values():
        bucket["gross_salary"] = quantize_money(bucket["gross_salary"])
        bucket["net_salary"] = quantize_money(bucket["net_salary"])
        bucket["average_salary"] = _average(bucket["net_salary"], bucket["count"])

    # All statuses are reported, including empty ones
    by_status = {s.value: 0 for s in PayrollStatus}
    for p in payrolls:
        by_status[p.status] = by_status.get(p.status, 0) + 1

    return {
        "month": month,
        "year": year,
        "working_days": calculate_working_days(month, year),
        "total_employees": len(payrolls),
        "totals": totals,
        "average_salary": _average(totals["net_salary"], len(payrolls)),
        "by_department": by_department,
        "by_status": by_status,
        "payrolls": [payroll_to_dict(p) for p in payrolls],
    }


def _money(value) -> str:
    return f"{quantize_money(value):,.2f}"


def _row(label: str, amount, sign: str = "") -> str:
    return f"<tr><td>{html.escape(label)}</td><td style='text-align:right'>{sign}{_money(amount)}</td></tr>"


def render_payslip_html(db: Session, payroll_id: int) -> str:
    """
    Generate an HTML payslip for a given payroll record.
    """
    payroll = get_payroll(db, payroll_id)
    employee = payroll.employee
    employee_name = html.escape(employee.full_name) if employee else f"Employee #{payroll.employee_id}"
    department = html.escape(payroll.department or UNASSIGNED_DEPARTMENT)
    period = f"{calendar.month_name[payroll.month]} {payroll.year}"

    earnings = [_row("Basic Salary", payroll.basic_salary)]
    if payroll.absent_days:
        absence = payroll.basic_salary / Decimal(payroll.working_days) * Decimal(payroll.absent_days)
        earnings.append(_row(f"Absence ({payroll.absent_days} day(s))", absence, "- "))
    earnings += [_row(f"{k.title()} Allowance", v, "+ ") for k, v in payroll.allowances.items() if v]
    earnings += [_row(f"{k.title()} Bonus", v, "+ ") for k, v in payroll.bonuses.items() if v]
    if payroll.overtime_pay:
        earnings.append(_row(f"Overtime ({payroll.overtime_hours}h)", payroll.overtime_pay, "+ "))

    deductions = [
        _row(k.replace("_", " ").title(), v, "- ")
        for k, v in payroll.deductions.items() if v
    ]
    if payroll.late_deductions:
        deductions.append(_row("Late Arrivals", payroll.late_deductions, "- "))

    payment = payroll.payment_date.strftime('%B %d, %Y') if payroll.payment_date else 'Pending'

    html_content = f"""<!DOCTYPE html>
<html>
<head>
    <title>Payslip - {period}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; color: #333; }}
        .header {{ text-align: center; margin-bottom: 30px; border-bottom: 2px solid #2563eb; padding-bottom: 20px; }}
        .header h1 {{ color: #2563eb; margin: 0; }}
        table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
        th, td {{ padding: 12px; text-align: left; border-bottom: 1px solid #e2e8f0; }}
        th {{ background: #f1f5f9; color: #1e40af; font-weight: 600; }}
        .total-row {{ background: #2563eb; color: white; font-weight: bold; }}
        .footer {{ margin-top: 40px; text-align: center; color: #666; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>PAYSLIP</h1>
        <p>{period}</p>
    </div>
    <p><strong>Name:</strong> {employee_name}</p>
    <p><strong>Employee ID:</strong> {payroll.employee_id}</p>
    <p><strong>Department:</strong> {department}</p>
    <p><strong>Working Days:</strong> {payroll.working_days} &middot; <strong>Attended:</strong> {payroll.attended_days}</p>
    <p><strong>Status:</strong> {payroll.status} &middot; <strong>Payment Date:</strong> {payment}</p>

    <table>
        <thead><tr><th>Earnings</th><th style="text-align: right">Amount</th></tr></thead>
        <tbody>
            {''.join(earnings)}
            <tr class="total-row"><td>GROSS SALARY</td><td style="text-align: right">{_money(payroll.gross_salary)}</td></tr>
        </tbody>
    </table>

    <table>
        <thead><tr><th>Deductions</th><th style="text-align: right">Amount</th></tr></thead>
        <tbody>
            {''.join(deductions)}
            <tr><td><strong>Total Deductions</strong></td><td style="text-align: right">{_money(payroll.total_deductions)}</td></tr>
            <tr class="total-row"><td>NET PAY</td><td style="text-align: right">{_money(payroll.net_salary)}</td></tr>
        </tbody>
    </table>

    <div class="footer">
        <p>This is a computer-generated document. No signature required.</p>
    </div>
</body>
</html>
"""
    logger.info(f"Rendered payslip for payroll {payroll.id}")
    return html_content
