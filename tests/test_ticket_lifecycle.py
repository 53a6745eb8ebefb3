from datetime import timedelta

import pytest

from helpdesk.models.comment import Comment
from helpdesk.models.user import ROLE_CONTACT, ROLE_USER
from helpdesk.services import ticket_lifecycle as lifecycle
from helpdesk.services.settings_store import LifecycleSettings, set_setting, load_lifecycle_settings
from helpdesk.utils.time import ensure_utc, utcnow


@pytest.fixture
def ticket(db, policy):
    t = lifecycle.create_ticket(db, subject="Laptop", details="Won't boot", policy=policy, source="dashboard")
    db.commit()
    return t


@pytest.mark.parametrize(
    "old_status,new_status,old_priority,new_priority,expected",
    [
        ("open", "closed", "low", "high", lifecycle.CLOSED_MESSAGE),
        ("open", "resolved", "low", "high", lifecycle.STATUS_MESSAGE),
        ("open", None, "low", "high", lifecycle.PRIORITY_MESSAGE),
        ("open", "open", "low", "low", None),
        ("closed", "closed", "low", None, None),
        ("open", None, "low", None, None),
    ],
)
def test_update_reason_first_match(old_status, new_status, old_priority, new_priority, expected):
    assert lifecycle.update_reason(old_status, new_status, old_priority, new_priority) == expected


def test_uid_is_offset_id(ticket):
    assert ticket.uid == str(100000 + ticket.id)
    assert ticket.status == "pending"
    assert ticket.priority == "low"


def test_policy_is_copied_onto_new_tickets(db):
    policy = LifecycleSettings(escalate_value=4, escalate_unit="hours", autoclose_value=3, autoclose_unit="days")
    t = lifecycle.create_ticket(db, subject="s", details="d", policy=policy, source="web")
    assert (t.escalate_value, t.escalate_unit) == (4, "hours")
    assert (t.autoclose_value, t.autoclose_unit) == (3, "days")


def test_find_ticket_by_uid_or_id(db, ticket):
    from helpdesk.models.ticket import Ticket

    assert lifecycle.find_ticket(db.query(Ticket), ticket.uid).id == ticket.id
    assert lifecycle.find_ticket(db.query(Ticket), str(ticket.id)).id == ticket.id
    assert lifecycle.find_ticket(db.query(Ticket), "nope") is None


def test_set_status_keeps_timestamps_consistent(ticket):
    now = utcnow()
    lifecycle.set_status(ticket, "resolved", now)
    assert ticket.resolve == now

    later = now + timedelta(hours=1)
    lifecycle.set_status(ticket, "closed", later)
    assert ticket.close == later
    assert ticket.resolve == now

    lifecycle.set_status(ticket, "open", later)
    assert ticket.close is None
    assert ticket.resolve is None


def test_staff_update_stamps_first_response_once(ticket):
    first = utcnow()
    reason, _ = lifecycle.apply_staff_update(ticket, {"priority": "high"}, first)
    assert reason == lifecycle.PRIORITY_MESSAGE
    assert ticket.response == first

    lifecycle.apply_staff_update(ticket, {"subject": "Laptop (spare)"}, first + timedelta(minutes=5))
    assert ticket.response == first


def test_staff_update_reports_new_assignee(db, ticket, make_user):
    staff = make_user(ROLE_USER)
    reason, assignee_changed = lifecycle.apply_staff_update(ticket, {"assigned_to": staff.id})
    assert reason is None
    assert assignee_changed


@pytest.mark.parametrize("status", ["closed", "pending"])
def test_staff_comment_reopens_and_sets_response(db, ticket, make_user, status):
    staff = make_user(ROLE_USER)
    lifecycle.set_status(ticket, status)
    db.commit()

    locked = lifecycle.lock_ticket(db, ticket.id)
    comment, reopened = lifecycle.add_comment(db, locked, author_id=staff.id, details="On it", staff=True)
    db.commit()

    assert reopened
    assert locked.status == "open"
    assert locked.close is None
    assert ensure_utc(locked.response) == ensure_utc(comment.created_at)


def test_contact_comment_reopens_without_response(db, ticket, make_user):
    contact = make_user(ROLE_CONTACT)
    lifecycle.set_status(ticket, "closed")
    db.commit()

    comment, reopened = lifecycle.add_comment(db, ticket, author_id=contact.id, details="Still broken", staff=False)
    db.commit()

    assert reopened
    assert ticket.status == "open"
    assert ticket.response is None
    assert db.query(Comment).filter(Comment.ticket_id == ticket.id).count() == 1


def test_reopening_clears_stale_resolve(db, ticket, make_user):
    lifecycle.resolve_ticket(ticket, "Reset the router")
    lifecycle.close_ticket(ticket)
    db.commit()
    assert ticket.resolve is not None

    locked = lifecycle.lock_ticket(db, ticket.id)
    _, reopened = lifecycle.add_comment(db, locked, author_id=make_user(ROLE_USER).id, details="Back again", staff=True)
    db.commit()

    assert reopened
    assert locked.status == "open"
    assert locked.resolve is None
    assert locked.close is None


def test_comment_on_open_ticket_does_not_reopen(db, ticket, make_user):
    lifecycle.set_status(ticket, "waiting_on_customer")
    _, reopened = lifecycle.add_comment(db, ticket, author_id=make_user(ROLE_USER).id, details="x", staff=True)
    assert not reopened
    assert ticket.status == "waiting_on_customer"


def test_close_and_resolve_helpers(ticket):
    assert lifecycle.resolve_ticket(ticket, "Replaced the disk") == lifecycle.STATUS_MESSAGE
    assert ticket.resolution_details == "Replaced the disk"
    assert lifecycle.close_ticket(ticket) == lifecycle.CLOSED_MESSAGE
    assert lifecycle.close_ticket(ticket) is None


def test_auto_close_uses_ticket_window(db, ticket, policy):
    resolved_at = utcnow() - timedelta(days=2)
    ticket.autoclose_value, ticket.autoclose_unit = 1, "days"
    lifecycle.set_status(ticket, "resolved", resolved_at)
    db.commit()

    closed = lifecycle.auto_close_resolved(db, policy)
    assert closed == [ticket]
    assert ticket.status == "closed"
    assert ticket.close is not None


def test_auto_close_falls_back_to_settings(db, ticket):
    lifecycle.set_status(ticket, "resolved", utcnow() - timedelta(hours=3))
    set_setting(db, "autoclose_value", "2")
    set_setting(db, "autoclose_unit", "hours")
    db.commit()

    assert lifecycle.auto_close_resolved(db, load_lifecycle_settings(db)) == [ticket]


def test_auto_close_waits_for_window(db, ticket):
    ticket.autoclose_value, ticket.autoclose_unit = 5, "days"
    lifecycle.set_status(ticket, "resolved", utcnow() - timedelta(days=1))
    db.commit()

    assert lifecycle.auto_close_resolved(db, LifecycleSettings()) == []
    assert ticket.status == "resolved"


def test_auto_close_skips_without_window(db, ticket, policy):
    lifecycle.set_status(ticket, "resolved", utcnow() - timedelta(days=30))
    db.commit()
    assert lifecycle.auto_close_resolved(db, policy) == []


def test_escalate_overdue(db, ticket, make_user):
    staff = make_user(ROLE_USER)
    ticket.assigned_to = staff.id
    ticket.escalate_value, ticket.escalate_unit = 1, "hours"
    ticket.status = "open"
    db.commit()

    assert lifecycle.escalate_overdue(db, utcnow() + timedelta(hours=2)) == [ticket]
    assert ticket.escalated_at is not None
    # already escalated tickets are not picked again
    assert lifecycle.escalate_overdue(db, utcnow() + timedelta(hours=3)) == []
