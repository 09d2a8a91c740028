import logging
import threading
from dataclasses import asdict
from datetime import date, datetime
from typing import Optional

from models import (
    Award, Certificate, Event, EventUpdate, EventWithDetails, NewAward, NewCertificate,
    NewEvent, NewRegistration, NewUser, Registration, RegistrationStatus, User,
    UserEventStats, UserUpdate,
)
from report import render_report
from seed import seed_demo_data

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "events", "registrations", "certificates", "awards")


class RepositoryError(Exception):
    """Base class for faults raised by the repository."""


class NotFoundError(RepositoryError, LookupError):
    """An entity required to complete the operation does not exist."""


class InvalidPatchError(RepositoryError, ValueError):
    """An update was given something other than the matching update structure."""


class UsernameTakenError(RepositoryError, ValueError):
    """The requested username already belongs to another user."""


class Repository:
    def __init__(self, seed: bool = False):
        """
        Initialize the in-memory collections.
        Each collection has its own lock and id counter; ids start at 1 and are never reused.
        """
        self._users: dict[int, User] = {}
        self._events: dict[int, Event] = {}
        self._registrations: dict[int, Registration] = {}
        self._certificates: dict[int, Certificate] = {}
        self._awards: dict[int, Award] = {}
        self._locks = {name: threading.RLock() for name in COLLECTIONS}
        self._next_ids = {name: 1 for name in COLLECTIONS}
        if seed:
            seed_demo_data(self)
            logger.info(f"Repository seeded with {len(self._users)} users and {len(self._events)} events")

    def _allocate_id(self, collection: str) -> int:
        # caller holds the collection lock
        new_id = self._next_ids[collection]
        self._next_ids[collection] = new_id + 1
        return new_id

    # -------------------------------
    # Users
    # -------------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Retrieve a user by username (case-sensitive)."""
        with self._locks["users"]:
            return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, new_user: NewUser) -> User:
        """Add a user. Username uniqueness is not checked here."""
        with self._locks["users"]:
            return self._insert_user(new_user)

    def create_user_if_absent(self, new_user: NewUser) -> Optional[User]:
        """Add a user unless the username is taken; returns None when it is."""
        with self._locks["users"]:
            if self.get_user_by_username(new_user.username) is not None:
                return None
            return self._insert_user(new_user)

    def _insert_user(self, new_user: NewUser) -> User:
        data = asdict(new_user)
        data["member_since"] = new_user.member_since or datetime.now()
        user = User(id=self._allocate_id("users"), **data)
        self._users[user.id] = user
        return user

    def update_user(self, user_id: int, patch: UserUpdate) -> Optional[User]:
        """Apply a partial update to a user."""
        if not isinstance(patch, UserUpdate):
            raise InvalidPatchError(f"Expected UserUpdate, got {type(patch).__name__}")
        with self._locks["users"]:
            user = self._users.get(user_id)
            if user is None:
                return None
            for name, value in patch.changes().items():
                setattr(user, name, value)
            return user

    def update_user_if_username_free(self, user_id: int, patch: UserUpdate) -> Optional[User]:
        """Apply a partial update unless it renames the user to a taken username."""
        if not isinstance(patch, UserUpdate):
            raise InvalidPatchError(f"Expected UserUpdate, got {type(patch).__name__}")
        with self._locks["users"]:
            if patch.username is not None:
                owner = self.get_user_by_username(patch.username)
                if owner is not None and owner.id != user_id:
                    raise UsernameTakenError(f"Username {patch.username!r} already exists")
            return self.update_user(user_id, patch)

    # -------------------------------
    # Events
    # -------------------------------
    def get_event(self, event_id: int) -> Optional[Event]:
        """Retrieve an event by ID."""
        return self._events.get(event_id)

    def get_events(self) -> list[Event]:
        """Retrieve all events in insertion order."""
        with self._locks["events"]:
            return list(self._events.values())

    def get_event_with_details(self, event_id: int) -> Optional[EventWithDetails]:
        """Retrieve an event with its organizer and participant count."""
        event = self.get_event(event_id)
        if event is None:
            return None
        return EventWithDetails(
            event=event,
            organizer=self.get_user(event.organizer_id),
            participant_count=len(self.get_registrations_by_event(event_id)),
        )

    def get_featured_events(self, limit: int = 6) -> list[Event]:
        """Retrieve the events with the latest start dates, newest first."""
        events = sorted(self.get_events(), key=lambda e: e.start_date, reverse=True)
        return events[:max(limit, 0)]

    def create_event(self, new_event: NewEvent) -> Event:
        """Add an event."""
        with self._locks["events"]:
            event = Event(id=self._allocate_id("events"), created_at=datetime.now(), **asdict(new_event))
            self._events[event.id] = event
            return event

    def update_event(self, event_id: int, patch: EventUpdate) -> Optional[Event]:
        """Apply a partial update to an event."""
        if not isinstance(patch, EventUpdate):
            raise InvalidPatchError(f"Expected EventUpdate, got {type(patch).__name__}")
        with self._locks["events"]:
            event = self._events.get(event_id)
            if event is None:
                return None
            for name, value in patch.changes().items():
                setattr(event, name, value)
            return event

    def delete_event(self, event_id: int) -> bool:
        """Delete an event. Registrations, certificates and awards that point at it are kept."""
        with self._locks["events"]:
            return self._events.pop(event_id, None) is not None

    # -------------------------------
    # Registrations
    # -------------------------------
    def register_for_event(self, new_registration: NewRegistration) -> Registration:
        """Register a user for an event. Duplicate (user, event) pairs are not checked here."""
        with self._locks["registrations"]:
            return self._insert_registration(new_registration)

    def register_for_event_if_absent(self, new_registration: NewRegistration) -> Optional[Registration]:
        """Register a user for an event unless already registered; returns None when they are."""
        with self._locks["registrations"]:
            if self.get_registration(new_registration.user_id, new_registration.event_id) is not None:
                return None
            return self._insert_registration(new_registration)

    def _insert_registration(self, new_registration: NewRegistration) -> Registration:
        registration = Registration(
            id=self._allocate_id("registrations"),
            user_id=new_registration.user_id,
            event_id=new_registration.event_id,
            status=self._coerce_status(new_registration.status),
            registered_at=datetime.now(),
        )
        self._registrations[registration.id] = registration
        return registration

    def get_registration(self, user_id: int, event_id: int) -> Optional[Registration]:
        """Retrieve the registration of a user for an event."""
        with self._locks["registrations"]:
            return next(
                (r for r in self._registrations.values() if r.user_id == user_id and r.event_id == event_id),
                None,
            )

    def get_registrations_by_user(self, user_id: int) -> list[Registration]:
        """Retrieve all registrations of a user."""
        with self._locks["registrations"]:
            return [r for r in self._registrations.values() if r.user_id == user_id]

    def get_registrations_by_event(self, event_id: int) -> list[Registration]:
        """Retrieve all registrations for an event, whatever their status."""
        with self._locks["registrations"]:
            return [r for r in self._registrations.values() if r.event_id == event_id]

    def update_registration_status(self, registration_id: int, status) -> Optional[Registration]:
        """Overwrite a registration's status. Any status may replace any other."""
        new_status = self._coerce_status(status)
        with self._locks["registrations"]:
            registration = self._registrations.get(registration_id)
            if registration is None:
                return None
            registration.status = new_status
            return registration

    @staticmethod
    def _coerce_status(status) -> RegistrationStatus:
        try:
            return RegistrationStatus(status)
        except ValueError:
            raise InvalidPatchError(f"Unknown registration status: {status!r}")

    # -------------------------------
    # Dashboard
    # -------------------------------
    def get_user_registered_events(self, user_id: int) -> list[EventWithDetails]:
        """Retrieve the events a user registered for, each carrying the registration status."""
        events = []
        for registration in self.get_registrations_by_user(user_id):
            details = self.get_event_with_details(registration.event_id)
            if details is None:
                continue  # event was deleted
            details.status = registration.status
            events.append(details)
        return events

    def get_user_organized_events(self, user_id: int) -> list[EventWithDetails]:
        """Retrieve the events organized by a user with their participant counts."""
        return [
            EventWithDetails(
                event=e,
                organizer=self.get_user(e.organizer_id),
                participant_count=len(self.get_registrations_by_event(e.id)),
            )
            for e in self.get_events() if e.organizer_id == user_id
        ]

    def get_user_event_stats(self, user_id: int) -> UserEventStats:
        """Count a user's attended and organized events, certificates and awards."""
        return UserEventStats(
            events_attended=len(self.get_user_registered_events(user_id)),
            events_organized=len(self.get_user_organized_events(user_id)),
            certificates_earned=len(self.get_user_certificates(user_id)),
            awards_won=len(self.get_user_awards(user_id)),
        )

    # -------------------------------
    # Certificates and awards
    # -------------------------------
    def get_user_certificates(self, user_id: int) -> list[Certificate]:
        """Retrieve all certificates of a user."""
        with self._locks["certificates"]:
            return [c for c in self._certificates.values() if c.user_id == user_id]

    def get_user_awards(self, user_id: int) -> list[Award]:
        """Retrieve all awards of a user."""
        with self._locks["awards"]:
            return [a for a in self._awards.values() if a.user_id == user_id]

    def create_certificate(self, new_certificate: NewCertificate) -> Certificate:
        """Add a certificate."""
        with self._locks["certificates"]:
            certificate = Certificate(
                id=self._allocate_id("certificates"), awarded_at=datetime.now(), **asdict(new_certificate)
            )
            self._certificates[certificate.id] = certificate
            return certificate

    def create_award(self, new_award: NewAward) -> Award:
        """Add an award."""
        with self._locks["awards"]:
            award = Award(id=self._allocate_id("awards"), awarded_at=datetime.now(), **asdict(new_award))
            self._awards[award.id] = award
            return award

    # -------------------------------
    # Report
    # -------------------------------
    def generate_ai_report(self, user_id: int, today: Optional[date] = None) -> str:
        """Generate the text participation report for a user."""
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        stats = self.get_user_event_stats(user_id)
        return render_report(user, stats, today or date.today())

    def close(self):
        """Drop all collections."""
        for name in COLLECTIONS:
            with self._locks[name]:
                getattr(self, f"_{name}").clear()
        logger.info("Repository closed")
