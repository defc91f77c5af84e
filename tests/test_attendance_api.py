from decimal import Decimal


def _clock(client, action, employee_id, timestamp):
    return client.post(f"/api/attendance/{action}", json={"employee_id": employee_id, "timestamp": timestamp})


def test_clock_in_and_out(client, make_employee):
    employee = make_employee()
    response = _clock(client, "clock-in", employee.id, "2024-03-04T09:00:00")
    assert response.status_code == 200
    assert len(response.json()["entries"]) == 1

    response = _clock(client, "clock-out", employee.id, "2024-03-04T17:30:00")
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_hours"]) == Decimal("8.5")
    assert data["status"] == "present"
    assert data["entries"][0]["duration_minutes"] == 510


def test_late_arrival(client, make_employee):
    employee = make_employee()
    _clock(client, "clock-in", employee.id, "2024-03-04T11:15:00")
    data = _clock(client, "clock-out", employee.id, "2024-03-04T19:15:00").json()
    assert data["status"] == "late"


def test_double_clock_in_rejected(client, make_employee):
    employee = make_employee()
    _clock(client, "clock-in", employee.id, "2024-03-04T09:00:00")
    response = _clock(client, "clock-in", employee.id, "2024-03-04T09:05:00")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_CLOCKED_IN"


def test_clock_out_without_clock_in(client, make_employee):
    employee = make_employee()
    response = _clock(client, "clock-out", employee.id, "2024-03-04T17:00:00")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_CLOCKED_IN"


def test_split_shift_accumulates(client, make_employee):
    employee = make_employee()
    _clock(client, "clock-in", employee.id, "2024-03-04T09:00:00")
    _clock(client, "clock-out", employee.id, "2024-03-04T12:00:00")
    _clock(client, "clock-in", employee.id, "2024-03-04T13:00:00")
    data = _clock(client, "clock-out", employee.id, "2024-03-04T16:00:00").json()
    assert Decimal(data["total_hours"]) == Decimal("6")
    assert data["status"] == "present"
    assert len(data["entries"]) == 2


def test_clock_in_unknown_employee(client):
    response = _clock(client, "clock-in", 999, "2024-03-04T09:00:00")
    assert response.status_code == 404


def test_list_attendance(client, make_employee):
    employee = make_employee()
    for day in ("04", "05", "06"):
        _clock(client, "clock-in", employee.id, f"2024-03-{day}T09:00:00")
        _clock(client, "clock-out", employee.id, f"2024-03-{day}T17:00:00")

    response = client.get(
        f"/api/attendance/{employee.id}",
        params={"start_date": "2024-03-05", "end_date": "2024-03-31"}
    )
    assert response.status_code == 200
    assert [r["date"] for r in response.json()] == ["2024-03-05", "2024-03-06"]


def test_clocked_hours_feed_payroll(client, make_employee):
    employee = make_employee(basic_salary="2100")
    _clock(client, "clock-in", employee.id, "2024-03-04T09:00:00")
    _clock(client, "clock-out", employee.id, "2024-03-04T19:00:00")

    response = client.post("/api/payroll/generate", json={"employee_id": employee.id, "month": 3, "year": 2024})
    data = response.json()
    assert data["attended_days"] == 1
    assert Decimal(data["overtime_hours"]) == Decimal("2")
