from helpdesk.models.user import ROLE_ADMIN, ROLE_CONTACT, ROLE_USER
from helpdesk.services.assignment import open_ticket_counts, pick_least_busy_user
from helpdesk.services.ticket_lifecycle import create_ticket


def _ticket(db, policy, region, assignee, status="open", **fields):
    ticket = create_ticket(
        db,
        subject="Printer jam",
        details="Tray 2 keeps jamming",
        policy=policy,
        source="dashboard",
        status=status,
        assigned_to=assignee.id,
        region_id=region.id,
        **fields,
    )
    db.commit()
    return ticket


def test_no_region_means_no_assignee(db):
    assert pick_least_busy_user(db, None) is None


def test_region_without_candidates(db, make_region, make_user):
    north = make_region("North")
    make_user(ROLE_ADMIN, region=north)
    make_user(ROLE_CONTACT, region=north)
    assert pick_least_busy_user(db, north.id) is None


def test_picks_user_with_fewest_open_tickets(db, policy, make_region, make_user):
    north = make_region("North")
    busy = make_user(ROLE_USER, region=north)
    idle = make_user(ROLE_USER, region=north)
    _ticket(db, policy, north, busy)
    _ticket(db, policy, north, busy)
    _ticket(db, policy, north, idle)

    assert pick_least_busy_user(db, north.id) == idle.id


def test_tie_goes_to_lowest_id(db, make_region, make_user):
    north = make_region("North")
    first = make_user(ROLE_USER, region=north)
    make_user(ROLE_USER, region=north)
    assert pick_least_busy_user(db, north.id) == first.id


def test_closed_and_deleted_tickets_do_not_count(db, policy, make_region, make_user):
    north = make_region("North")
    first = make_user(ROLE_USER, region=north)
    second = make_user(ROLE_USER, region=north)
    _ticket(db, policy, north, first, status="closed")
    deleted = _ticket(db, policy, north, first)
    deleted.deleted_at = deleted.created_at
    _ticket(db, policy, north, second)
    db.commit()

    assert open_ticket_counts(db, [first.id, second.id]) == {second.id: 1}
    assert pick_least_busy_user(db, north.id) == first.id


def test_only_active_users_in_the_region(db, policy, make_region, make_user):
    north = make_region("North")
    south = make_region("South")
    make_user(ROLE_USER, region=north, is_active=False)
    make_user(ROLE_USER, region=south)
    chosen = make_user(ROLE_USER, region=north)
    _ticket(db, policy, north, chosen)

    assert pick_least_busy_user(db, north.id) == chosen.id


def test_auto_assign_on_create(db, policy, make_region, make_user):
    north = make_region("North")
    staff = make_user(ROLE_USER, region=north)
    ticket = create_ticket(
        db,
        subject="VPN down",
        details="Cannot connect",
        policy=policy,
        source="portal",
        region_id=north.id,
        auto_assign=True,
    )
    db.commit()
    assert ticket.assigned_to == staff.id


def test_explicit_assignee_wins_over_auto_assign(db, policy, make_region, make_user):
    north = make_region("North")
    make_user(ROLE_USER, region=north)
    manager = make_user(ROLE_ADMIN, region=north)
    ticket = create_ticket(
        db,
        subject="VPN down",
        details="Cannot connect",
        policy=policy,
        source="portal",
        region_id=north.id,
        assigned_to=manager.id,
        auto_assign=True,
    )
    assert ticket.assigned_to == manager.id


def test_busiest_first_user_is_skipped_for_next_idle_one(db, policy, make_region, make_user):
    region = make_region("R")
    a = make_user(ROLE_USER, region=region)
    b = make_user(ROLE_USER, region=region)
    make_user(ROLE_USER, region=region)
    _ticket(db, policy, region, a)
    _ticket(db, policy, region, a)

    assert pick_least_busy_user(db, region.id) == b.id
