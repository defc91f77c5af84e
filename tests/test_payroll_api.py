import pytest
from datetime import date
from decimal import Decimal


@pytest.fixture
def employee(make_employee, add_attendance):
    employee = make_employee(basic_salary="2100", housing_allowance="300", tax_rate="10")
    add_attendance(employee, date(2024, 3, 4), "10", "present")
    return employee


def _generate(client, employee_id, month=3, year=2024, **extra):
    return client.post("/api/payroll/generate", json={"employee_id": employee_id, "month": month, "year": year, **extra})


def test_generate_payroll(client, employee):
    response = _generate(client, employee.id, bonuses={"performance": "100"}, notes="first run")
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "draft"
    assert data["department"] == "Engineering"
    assert data["working_days"] == 21
    assert Decimal(data["bonuses"]["performance"]) == Decimal("100")
    assert Decimal(data["allowances"]["housing"]) == Decimal("300")
    # 100 basic pay + 300 housing + 100 bonus + 2h overtime at 12.5 * 1.5
    assert Decimal(data["gross_salary"]) == Decimal("537.50")
    assert Decimal(data["net_salary"]) == Decimal(data["gross_salary"]) - Decimal(data["total_deductions"])


def test_generate_twice_conflicts(client, employee):
    assert _generate(client, employee.id).status_code == 201
    response = _generate(client, employee.id)
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "DUPLICATE_PAYROLL"
    assert body["error"]["details"] == {"employee_id": employee.id, "month": 3, "year": 2024}
    assert len(client.get("/api/payroll", params={"month": 3, "year": 2024}).json()) == 1


def test_generate_without_salary(client, make_employee):
    employee = make_employee(basic_salary=None)
    response = _generate(client, employee.id)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_SALARY_CONFIG"


def test_generate_rejects_bad_month(client, employee):
    response = _generate(client, employee.id, month=13)
    assert response.status_code == 422


def test_negative_bonus_rejected(client, employee):
    response = _generate(client, employee.id, bonuses={"project": "-5"})
    assert response.status_code == 422


def test_full_lifecycle(client, employee):
    payroll_id = _generate(client, employee.id).json()["id"]

    response = client.put(f"/api/payroll/{payroll_id}", json={"deductions": {"other": "25"}, "notes": "loan"})
    assert response.status_code == 200
    assert Decimal(response.json()["deductions"]["other"]) == Decimal("25")

    response = client.post(f"/api/payroll/{payroll_id}/approve", json={"approver_id": 42})
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_by"] == 42

    response = client.put(f"/api/payroll/{payroll_id}", json={"notes": "again"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CANNOT_UPDATE_FINALIZED"

    response = client.delete(f"/api/payroll/{payroll_id}")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CANNOT_DELETE_FINALIZED"

    response = client.post(f"/api/payroll/{payroll_id}/pay", json={"payment_date": "2024-04-01T09:00:00"})
    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert response.json()["payment_date"].startswith("2024-04-01")


def test_pay_requires_approval(client, employee):
    payroll_id = _generate(client, employee.id).json()["id"]
    response = client.post(f"/api/payroll/{payroll_id}/pay")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_APPROVED"


def test_delete_draft(client, employee):
    payroll_id = _generate(client, employee.id).json()["id"]
    response = client.delete(f"/api/payroll/{payroll_id}")
    assert response.status_code == 200
    assert response.json() == {"id": payroll_id, "deleted": True}

    response = client.get(f"/api/payroll/{payroll_id}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "PAYROLL_NOT_FOUND"


def test_bulk_generation(client, make_employee):
    make_employee(basic_salary="3000")
    make_employee(basic_salary="4000")
    response = client.post("/api/payroll/generate-bulk", json={"month": 3, "year": 2024})
    assert response.status_code == 200
    data = response.json()
    assert data["processed"] == 2
    assert len(data["success"]) == 2
    assert data["failed"] == []

    rerun = client.post("/api/payroll/generate-bulk", json={"month": 3, "year": 2024}).json()
    assert rerun["success"] == []
    assert [f["code"] for f in rerun["failed"]] == ["DUPLICATE_PAYROLL", "DUPLICATE_PAYROLL"]


def test_history(client, employee):
    _generate(client, employee.id, month=1)
    _generate(client, employee.id, month=2)
    response = client.get(f"/api/payroll/history/{employee.id}", params={"year": 2024})
    assert response.status_code == 200
    assert [p["month"] for p in response.json()] == [2, 1]


def test_payslip(client, employee):
    payroll_id = _generate(client, employee.id).json()["id"]
    response = client.get(f"/api/payroll/{payroll_id}/payslip")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "PAYSLIP" in response.text
    assert "March 2024" in response.text
    assert employee.full_name in response.text


def test_salary_configuration_endpoint(client):
    created = client.post(
        "/api/employees",
        json={"full_name": "Dana Reyes", "email": "dana@acme.io", "department": "Finance"}
    )
    assert created.status_code == 201
    employee_id = created.json()["id"]

    response = client.put(f"/api/employees/{employee_id}/salary", json={"basic_salary": "4200", "tax_rate": "12.5"})
    assert response.status_code == 200
    assert Decimal(response.json()["basic_salary"]) == Decimal("4200")
    assert Decimal(response.json()["overtime_multiplier"]) == Decimal("1.5")

    response = _generate(client, employee_id)
    assert response.status_code == 201


def test_duplicate_employee_email(client):
    payload = {"full_name": "Sam Okafor", "email": "sam@acme.io"}
    assert client.post("/api/employees", json=payload).status_code == 201
    response = client.post("/api/employees", json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "DUPLICATE_EMAIL"
