import pytest
from datetime import date


def _submit(client, employee_id, start, end, leave_type="annual"):
    return client.post(
        "/api/leave/requests",
        json={
            "employee_id": employee_id,
            "leave_type": leave_type,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "reason": "Family trip",
        }
    )


def _balance(client, employee_id, leave_type="annual"):
    response = client.get(f"/api/employees/{employee_id}/leave-balance")
    assert response.status_code == 200
    return response.json()["balances"][leave_type]


def test_create_leave_request(client, make_employee):
    """Test creating a leave request."""
    employee = make_employee()
    response = _submit(client, employee.id, date(2024, 3, 4), date(2024, 3, 8))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["total_days"] == 5
    assert _balance(client, employee.id) == 20


def test_approval_and_rejection_move_balance(client, make_employee):
    employee = make_employee()
    req_id = _submit(client, employee.id, date(2024, 3, 4), date(2024, 3, 8)).json()["id"]

    response = client.put(f"/api/leave/requests/{req_id}/status", json={"status": "approved", "actor_id": 1})
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_by"] == 1
    assert _balance(client, employee.id) == 15

    response = client.put(f"/api/leave/requests/{req_id}/status", json={"status": "rejected", "notes": "Peak season"})
    assert response.status_code == 200
    assert response.json()["approval_notes"] == "Peak season"
    assert _balance(client, employee.id) == 20


def test_insufficient_balance_is_reported(client, make_employee):
    employee = make_employee()
    response = _submit(client, employee.id, date(2024, 3, 1), date(2024, 3, 25))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INSUFFICIENT_BALANCE"
    assert body["error"]["details"]["requested"] == 25
    assert _balance(client, employee.id) == 20


def test_inverted_dates_rejected(client, make_employee):
    employee = make_employee()
    response = _submit(client, employee.id, date(2024, 3, 8), date(2024, 3, 4))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"


def test_period_edit(client, make_employee):
    employee = make_employee()
    req_id = _submit(client, employee.id, date(2024, 3, 4), date(2024, 3, 8)).json()["id"]
    client.put(f"/api/leave/requests/{req_id}/status", json={"status": "approved"})

    response = client.put(
        f"/api/leave/requests/{req_id}/period",
        json={"start_date": "2024-03-04", "end_date": "2024-03-06"}
    )
    assert response.status_code == 200
    assert response.json()["total_days"] == 3
    assert _balance(client, employee.id) == 17


def test_cancel_by_owner(client, make_employee):
    owner = make_employee()
    other = make_employee()
    req_id = _submit(client, owner.id, date(2024, 3, 4), date(2024, 3, 5)).json()["id"]

    response = client.post(f"/api/leave/requests/{req_id}/cancel", json={"employee_id": other.id})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CANNOT_CANCEL_LEAVE"

    response = client.post(f"/api/leave/requests/{req_id}/cancel", json={"employee_id": owner.id})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_list_and_filter(client, make_employee):
    employee = make_employee()
    first = _submit(client, employee.id, date(2024, 3, 4), date(2024, 3, 5)).json()["id"]
    _submit(client, employee.id, date(2024, 4, 1), date(2024, 4, 2), leave_type="sick")
    client.put(f"/api/leave/requests/{first}/status", json={"status": "approved"})

    response = client.get("/api/leave/requests", params={"employee_id": employee.id})
    assert len(response.json()) == 2

    response = client.get("/api/leave/requests", params={"status": "approved"})
    assert [r["id"] for r in response.json()] == [first]


def test_unknown_leave_request(client):
    response = client.put("/api/leave/requests/999/status", json={"status": "approved"})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "LEAVE_NOT_FOUND"


def test_admin_sets_allotment(client, make_employee):
    employee = make_employee()
    response = client.put(
        f"/api/employees/{employee.id}/leave-balance",
        json={"leave_type": "unpaid", "days": 5}
    )
    assert response.status_code == 200
    assert response.json()["balances"]["unpaid"] == 5


@pytest.mark.parametrize("payload", [
    {"leave_type": "annual"},
    {"leave_type": "annual", "start_date": "not-a-date", "end_date": "2024-03-04"},
])
def test_malformed_request_returns_422(client, make_employee, payload):
    employee = make_employee()
    response = client.post("/api/leave/requests", json={"employee_id": employee.id, **payload})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
