from helpdesk.models.user import ROLE_ADMIN, ROLE_USER
from helpdesk.models.work_order import WorkOrderStatus


def _by_key(items):
    return {i["key"]: i["count"] for i in items}


def test_ticket_report(client, login, make_user):
    staff = make_user(ROLE_USER, name="Sam")
    login(make_user(ROLE_ADMIN))
    client.post("/tickets", json={"subject": "a", "details": "a", "assigned_to": staff.id, "priority": "high"})
    uid = client.post("/tickets", json={"subject": "b", "details": "b"}).json()["uid"]
    client.post(f"/tickets/{uid}/close")

    report = client.get("/reports/tickets").json()
    assert report["total"] == 2
    assert report["open_count"] == 1
    assert report["unassigned_count"] == 1
    assert _by_key(report["by_status"]) == {"pending": 1, "closed": 1}
    assert _by_key(report["by_priority"]) == {"high": 1, "low": 1}
    assert _by_key(report["by_staff"]) == {"Sam": 1, "unassigned": 1}
    assert _by_key(report["by_category"]) == {"uncategorized": 2}


def test_staff_performance(client, login, make_user):
    staff = make_user(ROLE_USER, name="Sam")
    login(make_user(ROLE_ADMIN))
    for _ in range(2):
        client.post("/tickets", json={"subject": "a", "details": "a", "assigned_to": staff.id})

    rows = client.get("/reports/staff-performance").json()
    assert len(rows) == 1
    assert rows[0]["user_id"] == staff.id
    assert rows[0]["assigned"] == 2
    assert rows[0]["open"] == 2


def test_work_order_report(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    wo = client.post("/work-orders", json={"title": "Paint"}).json()
    client.post(f"/work-orders/{wo['id']}/expenses", json={"description": "Paint", "amount": "12.25"})
    client.patch(f"/work-orders/{wo['id']}/status", json={"status": int(WorkOrderStatus.APPROVED)})

    report = client.get("/reports/work-orders").json()
    assert report["total"] == 1
    assert _by_key(report["by_status"]) == {"approved": 1}
    assert report["total_expenses"] == 12.25


def test_bad_dates(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    assert client.get("/reports/tickets", params={"start_date": "yesterday"}).status_code == 422
    assert client.get(
        "/reports/tickets",
        params={"start_date": "2026-02-01T00:00:00Z", "end_date": "2026-01-01T00:00:00Z"},
    ).status_code == 422


def test_reports_need_manager_or_admin(client, login, make_user):
    login(make_user(ROLE_USER))
    assert client.get("/reports/tickets").status_code == 403
