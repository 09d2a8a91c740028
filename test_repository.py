import pytest
import threading
from datetime import date, datetime
from models import (
    NewUser, NewEvent, NewRegistration, NewCertificate, NewAward,
    UserUpdate, EventUpdate, RegistrationStatus,
)
from repository import Repository, NotFoundError, InvalidPatchError, UsernameTakenError

@pytest.fixture
def repo():
    return Repository()

def make_user(username="alice", fullname="Alice Smith"):
    return NewUser(username=username, password="secret", fullname=fullname, email=f"{username}@example.com")

def make_event(organizer_id=1, start=datetime(2025, 5, 1), title="Python Workshop", limit=10):
    return NewEvent(
        title=title,
        description="Hands-on session",
        start_date=start,
        end_date=start,
        location="Online",
        image="https://example.com/img.png",
        event_type="Workshop",
        organizer_id=organizer_id,
        participant_limit=limit,
    )

def test_create_user_assigns_ids_and_member_since(repo):
    a = repo.create_user(make_user("a"))
    b = repo.create_user(make_user("b"))
    assert (a.id, b.id) == (1, 2)
    assert isinstance(a.member_since, datetime)
    assert repo.get_user(1) == a
    assert repo.get_user(99) is None

def test_create_user_keeps_given_member_since(repo):
    joined = datetime(2023, 1, 1)
    user = repo.create_user(NewUser(username="x", password="p", fullname="X", email="x@example.com", member_since=joined))
    assert user.member_since == joined

def test_get_user_by_username_is_case_sensitive(repo):
    repo.create_user(make_user("Alice"))
    assert repo.get_user_by_username("Alice").id == 1
    assert repo.get_user_by_username("alice") is None

def test_create_user_does_not_check_duplicates(repo):
    repo.create_user(make_user("dup"))
    second = repo.create_user(make_user("dup"))
    assert second.id == 2

def test_create_user_if_absent_rejects_taken_username(repo):
    assert repo.create_user_if_absent(make_user("dup")).id == 1
    assert repo.create_user_if_absent(make_user("dup")) is None
    assert repo.create_user_if_absent(make_user("other")).id == 2

def test_create_user_if_absent_under_threads(repo):
    results = []
    def worker():
        results.append(repo.create_user_if_absent(make_user("racer")))
    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len([r for r in results if r is not None]) == 1

def test_update_user_is_partial_and_idempotent(repo):
    user = repo.create_user(make_user())
    patch = UserUpdate(location="Berlin", about="Hello")
    once = repo.update_user(user.id, patch)
    snapshot = once.to_dict()
    twice = repo.update_user(user.id, patch)
    assert twice.to_dict() == snapshot
    assert twice.location == "Berlin"
    assert twice.fullname == "Alice Smith"
    assert twice.id == user.id

def test_update_user_rejects_taken_username(repo):
    repo.create_user(make_user("alice"))
    bob = repo.create_user(make_user("bob"))
    with pytest.raises(UsernameTakenError):
        repo.update_user_if_username_free(bob.id, UserUpdate(username="alice"))
    assert repo.get_user(bob.id).username == "bob"
    assert repo.get_user_by_username("alice").id == 1
    # keeping its own name is not a conflict
    assert repo.update_user_if_username_free(bob.id, UserUpdate(username="bob", about="Hi")).about == "Hi"
    assert repo.update_user_if_username_free(99, UserUpdate(username="carol")) is None

def test_update_user_unknown_id(repo):
    assert repo.update_user(42, UserUpdate(fullname="Nobody")) is None

def test_update_rejects_untyped_patch(repo):
    repo.create_user(make_user())
    repo.create_event(make_event())
    with pytest.raises(InvalidPatchError):
        repo.update_user(1, {"fullname": "Dict Patch"})
    with pytest.raises(InvalidPatchError):
        repo.update_event(1, UserUpdate(fullname="Wrong type"))

def test_event_ids_never_reused_after_delete(repo):
    first = repo.create_event(make_event())
    assert repo.delete_event(first.id) is True
    assert repo.get_event(first.id) is None
    second = repo.create_event(make_event())
    assert second.id == 2

def test_delete_unknown_event_returns_false(repo):
    repo.create_event(make_event())
    assert repo.delete_event(7) is False
    assert len(repo.get_events()) == 1

def test_update_event(repo):
    event = repo.create_event(make_event())
    created_at = event.created_at
    updated = repo.update_event(event.id, EventUpdate(title="Advanced Python", participant_limit=20))
    assert updated.title == "Advanced Python"
    assert updated.participant_limit == 20
    assert updated.location == "Online"
    assert updated.created_at == created_at
    assert repo.update_event(99, EventUpdate(title="Ghost")) is None

def test_featured_events_sorted_by_start_date(repo):
    for day in (3, 1, 5, 2, 4):
        repo.create_event(make_event(start=datetime(2025, 1, day), title=f"Day {day}"))
    featured = repo.get_featured_events(3)
    assert [e.title for e in featured] == ["Day 5", "Day 4", "Day 3"]
    assert len(repo.get_featured_events()) == 5

def test_event_with_details_resolves_organizer_and_count(repo):
    organizer = repo.create_user(make_user("org"))
    event = repo.create_event(make_event(organizer_id=organizer.id))
    repo.register_for_event(NewRegistration(user_id=5, event_id=event.id))
    repo.register_for_event(NewRegistration(user_id=6, event_id=event.id, status=RegistrationStatus.CANCELLED))
    details = repo.get_event_with_details(event.id)
    assert details.organizer == organizer
    assert details.participant_count == 2
    assert repo.get_event_with_details(999) is None

def test_event_with_details_dangling_organizer(repo):
    event = repo.create_event(make_event(organizer_id=77))
    details = repo.get_event_with_details(event.id)
    assert details.organizer is None
    assert details.to_dict()["organizer"] is None

def test_registration_lookups(repo):
    r1 = repo.register_for_event(NewRegistration(user_id=1, event_id=1))
    repo.register_for_event(NewRegistration(user_id=1, event_id=2))
    repo.register_for_event(NewRegistration(user_id=2, event_id=1))
    assert repo.get_registration(1, 1) == r1
    assert repo.get_registration(3, 1) is None
    assert len(repo.get_registrations_by_user(1)) == 2
    assert len(repo.get_registrations_by_event(1)) == 2
    assert r1.status == RegistrationStatus.PENDING

def test_register_for_event_if_absent(repo):
    assert repo.register_for_event_if_absent(NewRegistration(user_id=1, event_id=1)) is not None
    assert repo.register_for_event_if_absent(NewRegistration(user_id=1, event_id=1)) is None
    assert len(repo.get_registrations_by_event(1)) == 1

def test_register_for_event_if_absent_under_threads(repo):
    results = []
    def worker():
        results.append(repo.register_for_event_if_absent(NewRegistration(user_id=1, event_id=1)))
    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len([r for r in results if r is not None]) == 1
    assert len(repo.get_registrations_by_event(1)) == 1

def test_update_registration_status_any_transition(repo):
    reg = repo.register_for_event(NewRegistration(user_id=1, event_id=1, status=RegistrationStatus.CANCELLED))
    assert repo.update_registration_status(reg.id, "Pending").status == RegistrationStatus.PENDING
    assert repo.update_registration_status(reg.id, RegistrationStatus.CONFIRMED).status == RegistrationStatus.CONFIRMED
    assert repo.update_registration_status(99, "Confirmed") is None
    with pytest.raises(InvalidPatchError):
        repo.update_registration_status(reg.id, "Waitlisted")

def test_dashboard_scenario(repo):
    a = repo.create_user(make_user("a", "User A"))
    b = repo.create_user(make_user("b", "User B"))
    assert (a.id, b.id) == (1, 2)
    event = repo.create_event(make_event(organizer_id=b.id, limit=10))
    reg = repo.register_for_event(NewRegistration(user_id=a.id, event_id=event.id, status=RegistrationStatus.PENDING))

    details = repo.get_event_with_details(event.id)
    assert details.organizer.id == b.id
    assert details.participant_count == 1

    registered = repo.get_user_registered_events(a.id)
    assert len(registered) == 1
    assert registered[0].event.id == event.id
    assert registered[0].status == RegistrationStatus.PENDING
    assert registered[0].to_dict()["status"] == "Pending"

    repo.update_registration_status(reg.id, RegistrationStatus.CONFIRMED)
    registered = repo.get_user_registered_events(a.id)
    assert registered[0].status == RegistrationStatus.CONFIRMED
    assert repo.get_event_with_details(event.id).participant_count == 1

def test_registered_events_skip_deleted_events(repo):
    e1 = repo.create_event(make_event())
    e2 = repo.create_event(make_event())
    repo.register_for_event(NewRegistration(user_id=1, event_id=e1.id))
    repo.register_for_event(NewRegistration(user_id=1, event_id=e2.id))
    repo.delete_event(e1.id)
    registered = repo.get_user_registered_events(1)
    assert [d.event.id for d in registered] == [e2.id]
    # no cascade: the registration itself is still there
    assert len(repo.get_registrations_by_user(1)) == 2

def test_organized_events(repo):
    e1 = repo.create_event(make_event(organizer_id=2))
    repo.create_event(make_event(organizer_id=3))
    repo.register_for_event(NewRegistration(user_id=1, event_id=e1.id))
    organized = repo.get_user_organized_events(2)
    assert [d.event.id for d in organized] == [e1.id]
    assert organized[0].participant_count == 1

def test_organized_events_skip_deleted_events(repo):
    e1 = repo.create_event(make_event(organizer_id=2))
    e2 = repo.create_event(make_event(organizer_id=2))
    repo.delete_event(e1.id)
    organized = repo.get_user_organized_events(2)
    assert [d.event.id for d in organized] == [e2.id]

def test_stats_match_underlying_queries(repo):
    user = repo.create_user(make_user())
    e1 = repo.create_event(make_event(organizer_id=user.id))
    e2 = repo.create_event(make_event(organizer_id=2))
    repo.register_for_event(NewRegistration(user_id=user.id, event_id=e2.id))
    repo.create_certificate(NewCertificate(user_id=user.id, event_id=e2.id, name="Certificate"))
    repo.create_certificate(NewCertificate(user_id=user.id, event_id=e1.id, name="Certificate"))
    repo.create_award(NewAward(user_id=user.id, event_id=e2.id, name="Best Hack"))
    stats = repo.get_user_event_stats(user.id)
    assert stats.events_attended == len(repo.get_user_registered_events(user.id)) == 1
    assert stats.events_organized == len(repo.get_user_organized_events(user.id)) == 1
    assert stats.certificates_earned == len(repo.get_user_certificates(user.id)) == 2
    assert stats.awards_won == len(repo.get_user_awards(user.id)) == 1

    repo.delete_event(e2.id)
    assert repo.get_user_event_stats(user.id).events_attended == 0

def test_certificates_and_awards(repo):
    cert = repo.create_certificate(NewCertificate(user_id=1, event_id=1, name="Participation"))
    award = repo.create_award(NewAward(user_id=1, event_id=1, name="First Place"))
    assert cert.id == 1 and award.id == 1
    assert isinstance(cert.awarded_at, datetime)
    assert repo.get_user_certificates(2) == []
    assert repo.get_user_awards(1) == [award]

def test_report_is_deterministic(repo):
    user = repo.create_user(make_user(fullname="Alex Johnson"))
    repo.create_event(make_event(organizer_id=user.id))
    repo.create_award(NewAward(user_id=user.id, event_id=1, name="MVP"))
    day = date(2025, 3, 14)
    report = repo.generate_ai_report(user.id, today=day)
    assert report == repo.generate_ai_report(user.id, today=day)
    assert "Alex Johnson" in report
    assert "- Total Events Attended: 0" in report
    assert "- Events Organized: 1" in report
    assert "- Certificates Earned: 0" in report
    assert "- Awards Won: 1" in report
    assert "Generated on: 2025-03-14" in report

def test_report_unknown_user(repo):
    with pytest.raises(NotFoundError):
        repo.generate_ai_report(12)

def test_seeded_repository():
    repo = Repository(seed=True)
    assert repo.get_user_by_username("alexjohnson").id == 1
    assert repo.get_user_by_username("techcorp").id == 2
    assert len(repo.get_events()) == 5
    assert repo.get_featured_events(1)[0].title == "Product Design Meetup"
    stats = repo.get_user_event_stats(1)
    assert stats.to_dict() == {
        "events_attended": 2,
        "events_organized": 2,
        "certificates_earned": 8,
        "awards_won": 3,
    }
    assert repo.get_registration(1, 2).status == RegistrationStatus.PENDING

def test_close_clears_collections():
    repo = Repository(seed=True)
    repo.close()
    assert repo.get_events() == []
    assert repo.get_user(1) is None
