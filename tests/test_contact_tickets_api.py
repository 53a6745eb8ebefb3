from helpdesk.models.ticket import Ticket
from helpdesk.models.user import ROLE_ADMIN, ROLE_CONTACT, ROLE_USER, User


def test_public_form_creates_contact_and_auto_assigns(client, db, make_region, make_user, published):
    north = make_region("North")
    first_staff = make_user(ROLE_USER, region=north)
    second_staff = make_user(ROLE_USER, region=north)

    form = {"subject": "Broken door", "details": "Back door lock", "region_id": north.id}
    first = client.post("/public/tickets", json={**form, "name": "Ana", "email": "ana@example.com"})
    assert first.status_code == 201
    assert first.json()["assigned_to"] == first_staff.id
    assert first.json()["source"] == "web"

    second = client.post("/public/tickets", json={**form, "name": "Ana", "email": "ana@example.com"})
    assert second.json()["assigned_to"] == second_staff.id

    contacts = db.query(User).filter(User.email == "ana@example.com").all()
    assert len(contacts) == 1
    assert contacts[0].has_role(ROLE_CONTACT)
    assert second.json()["contact_id"] == contacts[0].id

    assigned = [e for e in published if e["event"] == "ticket-assigned"]
    assert [e["data"]["assigned_to"] for e in assigned] == [first_staff.id, second_staff.id]


def test_public_form_without_region_is_unassigned(client, make_user):
    make_user(ROLE_USER)
    res = client.post(
        "/public/tickets",
        json={"subject": "Hello", "details": "Question", "name": "Bo", "email": "bo@example.com"},
    )
    assert res.status_code == 201
    assert res.json()["assigned_to"] is None


def test_public_form_validates_email(client):
    res = client.post(
        "/public/tickets",
        json={"subject": "Hello", "details": "Question", "name": "Bo", "email": "not-an-email"},
    )
    assert res.status_code == 422


def test_portal_ticket_uses_contact_region(client, login, make_region, make_user):
    north = make_region("North")
    staff = make_user(ROLE_USER, region=north)
    login(make_user(ROLE_CONTACT, region=north))

    res = client.post("/contact/tickets", json={"subject": "Wifi", "details": "Slow"})
    assert res.status_code == 201
    assert res.json()["assigned_to"] == staff.id
    assert res.json()["region_id"] == north.id
    assert res.json()["priority"] == "low"
    assert res.json()["status"] == "pending"


def test_contacts_see_only_their_tickets(client, login, make_user):
    me = make_user(ROLE_CONTACT)
    other = make_user(ROLE_CONTACT)

    login(other)
    theirs = client.post("/contact/tickets", json={"subject": "Theirs", "details": "x"}).json()
    login(me)
    mine = client.post("/contact/tickets", json={"subject": "Mine", "details": "y"}).json()

    assert [t["uid"] for t in client.get("/contact/tickets").json()] == [mine["uid"]]
    assert client.get(f"/contact/tickets/{theirs['uid']}").status_code == 404
    assert client.get(f"/tickets/{mine['uid']}").status_code == 200


def test_contact_reply_reopens_without_touching_response(client, login, make_user):
    contact = make_user(ROLE_CONTACT)
    admin = make_user(ROLE_ADMIN)

    login(contact)
    uid = client.post("/contact/tickets", json={"subject": "Mouse", "details": "Dead"}).json()["uid"]
    login(admin)
    client.post(f"/tickets/{uid}/close")

    login(contact)
    res = client.post(f"/contact/tickets/{uid}/comments", json={"comment": "Still dead"})
    assert res.status_code == 201

    ticket = client.get(f"/contact/tickets/{uid}").json()
    assert ticket["status"] == "open"
    assert ticket["response"] is None
    assert len(client.get(f"/contact/tickets/{uid}/comments").json()) == 1


def test_staff_cannot_use_contact_portal(client, login, make_user):
    login(make_user(ROLE_USER))
    assert client.get("/contact/tickets").status_code == 403


def test_public_form_unknown_region_is_field_error(client, db):
    res = client.post(
        "/public/tickets",
        json={"subject": "Hi", "details": "Help", "name": "Cy", "email": "cy@example.com", "region_id": 404},
    )
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "region_id"]
    # nothing is created for a rejected form
    assert db.query(User).filter(User.email == "cy@example.com").count() == 0


def test_portal_unknown_category_is_field_error(client, login, make_user):
    login(make_user(ROLE_CONTACT))
    res = client.post("/contact/tickets", json={"subject": "Wifi", "details": "Slow", "category_id": 77})
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["body", "category_id"]


def test_public_form_refuses_staff_email(client, db, make_user):
    admin = make_user(ROLE_ADMIN)
    res = client.post(
        "/public/tickets",
        json={"subject": "Hi", "details": "Help", "name": "Imposter", "email": admin.email.upper()},
    )
    assert res.status_code == 409
    assert db.query(Ticket).count() == 0
    db.refresh(admin)
    assert admin.role_names == [ROLE_ADMIN]
