import requests

from helpdesk.core import broadcast
from helpdesk.models.audit_log import AuditLog
from helpdesk.models.user import ROLE_ADMIN, ROLE_CONTACT, ROLE_USER
from helpdesk.services import ticket_lifecycle as lifecycle


def _events(published, name):
    return [e for e in published if e["event"] == name]


def _create(client, **overrides):
    body = {"subject": "Email bouncing", "details": "All mail to sales bounces"}
    body.update(overrides)
    return client.post("/tickets", json=body)


def test_staff_create_assigns_uid_and_broadcasts(client, login, make_user, published, db):
    admin = login(make_user(ROLE_ADMIN))
    res = _create(client, priority="HIGH")
    assert res.status_code == 201
    data = res.json()
    assert data["uid"] == str(100000 + data["id"])
    assert data["priority"] == "high"
    assert data["status"] == "pending"
    assert data["source"] == "dashboard"
    assert data["created_user_id"] == admin.id

    created = _events(published, "ticket-created")
    assert created[0]["channel"] == broadcast.TICKETS_CHANNEL
    assert created[0]["data"]["uid"] == data["uid"]
    assert db.query(AuditLog).filter(AuditLog.entity_id == data["uid"]).count() == 1


def test_invalid_priority_is_rejected(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    assert _create(client, priority="critical").status_code == 422


def test_contacts_cannot_use_staff_endpoints(client, login, make_user):
    login(make_user(ROLE_CONTACT))
    assert _create(client).status_code == 403


def test_staff_only_see_assigned_tickets(client, login, make_user):
    staff = make_user(ROLE_USER)
    other = make_user(ROLE_USER)
    login(make_user(ROLE_ADMIN))
    mine = _create(client, assigned_to=staff.id).json()
    theirs = _create(client, assigned_to=other.id).json()

    login(staff)
    listed = [t["uid"] for t in client.get("/tickets").json()]
    assert listed == [mine["uid"]]
    assert client.get(f"/tickets/{mine['uid']}").status_code == 200
    assert client.get(f"/tickets/{theirs['uid']}").status_code == 404


def test_list_filters(client, login, make_user):
    staff = make_user(ROLE_USER)
    login(make_user(ROLE_ADMIN))
    _create(client, subject="Printer on fire", assigned_to=staff.id)
    _create(client, subject="Coffee machine")

    unassigned = client.get("/tickets", params={"type": "un_assigned"}).json()
    assert [t["subject"] for t in unassigned] == ["Coffee machine"]
    searched = client.get("/tickets", params={"q": "printer"}).json()
    assert [t["subject"] for t in searched] == ["Printer on fire"]


def test_update_broadcasts_reason(client, login, make_user, published):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]

    res = client.patch(f"/tickets/{uid}", json={"status": "closed", "priority": "urgent"})
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "closed"
    assert body["close"] is not None
    assert body["response"] is not None

    updated = _events(published, "ticket-updated")
    assert updated[-1]["channel"] == f"ticket.{body['id']}"
    assert updated[-1]["data"]["update_message"] == lifecycle.CLOSED_MESSAGE


def test_update_without_status_or_priority_change_is_silent(client, login, make_user, published):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]
    client.patch(f"/tickets/{uid}", json={"subject": "Email bouncing (sales)"})
    assert _events(published, "ticket-updated") == []


def test_assignment_change_broadcasts(client, login, make_user, published):
    staff = make_user(ROLE_USER)
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]
    client.patch(f"/tickets/{uid}", json={"assigned_to": staff.id})
    assigned = _events(published, "ticket-assigned")
    assert assigned[-1]["data"]["assigned_to"] == staff.id


def test_staff_comment_reopens_closed_ticket(client, login, make_user, published):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]
    client.post(f"/tickets/{uid}/close")

    res = client.post(f"/tickets/{uid}/comments", json={"comment": "Reopening, the fix did not stick"})
    assert res.status_code == 201
    comment = res.json()

    ticket = client.get(f"/tickets/{uid}").json()
    assert ticket["status"] == "open"
    assert ticket["close"] is None
    assert ticket["response"] == comment["created_at"]

    new_comment = _events(published, "new-comment")[-1]
    assert new_comment["data"]["status"] == "open"
    assert new_comment["data"]["comment"]["details"] == "Reopening, the fix did not stick"

    listed = client.get(f"/tickets/{uid}/comments").json()
    assert [c["id"] for c in listed] == [comment["id"]]


def test_blank_comment_rejected(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]
    assert client.post(f"/tickets/{uid}/comments", json={"comment": "   "}).status_code == 422


def test_resolve_then_close_keeps_resolve(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]

    resolved = client.post(f"/tickets/{uid}/resolve", json={"resolution_details": "Cleared the queue"}).json()
    assert resolved["status"] == "resolved"
    assert resolved["resolution_details"] == "Cleared the queue"

    closed = client.post(f"/tickets/{uid}/close").json()
    assert closed["status"] == "closed"
    assert closed["resolve"] == resolved["resolve"]


def test_soft_delete_and_restore(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]

    assert client.delete(f"/tickets/{uid}").json() == {"ok": True}
    assert client.get(f"/tickets/{uid}").status_code == 404
    assert client.get("/tickets").json() == []

    restored = client.post(f"/tickets/{uid}/restore")
    assert restored.status_code == 200
    assert restored.json()["deleted_at"] is None


def test_broadcast_failure_does_not_fail_request(client, login, make_user, monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("relay down")

    monkeypatch.setattr(broadcast.requests, "post", refuse)
    login(make_user(ROLE_ADMIN))
    res = _create(client)
    assert res.status_code == 201
    assert client.get(f"/tickets/{res.json()['uid']}").status_code == 200


def test_update_rejects_null_for_required_fields(client, login, make_user):
    login(make_user(ROLE_ADMIN))
    uid = _create(client).json()["uid"]

    for field in ("priority", "status", "subject", "details"):
        res = client.patch(f"/tickets/{uid}", json={field: None})
        assert res.status_code == 422, field
        assert res.json()["detail"][0]["loc"] == ["body", field]

    assert client.get(f"/tickets/{uid}").json()["priority"] == "low"


def test_unknown_references_are_field_errors(client, login, make_user, db):
    login(make_user(ROLE_ADMIN))

    res = _create(client, region_id=9999)
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "region_id"]
    assert db.query(AuditLog).count() == 0

    res = _create(client, category_id=41, assigned_to=42)
    assert res.status_code == 422
    assert sorted(e["loc"][1] for e in res.json()["detail"]) == ["assigned_to", "category_id"]

    uid = _create(client).json()["uid"]
    res = client.patch(f"/tickets/{uid}", json={"assigned_to": 9999})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "assigned_to"]
    assert client.get(f"/tickets/{uid}").json()["assigned_to"] is None
