from dataclasses import dataclass, field, asdict, fields
from datetime import datetime
from enum import Enum
from typing import Optional


class RegistrationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


@dataclass
class User:
    id: int
    username: str
    password: str
    fullname: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    profile_image: Optional[str] = None
    member_since: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Event:
    id: int
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: str
    image: str
    event_type: str
    organizer_id: int  # user id, not checked
    participant_limit: int
    prize_pool: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Registration:
    id: int
    user_id: int
    event_id: int
    status: RegistrationStatus
    registered_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class Certificate:
    id: int
    user_id: int
    event_id: int
    name: str
    awarded_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Award:
    id: int
    user_id: int
    event_id: int
    name: str
    awarded_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return asdict(self)


# Insert types: everything the caller supplies, nothing the repository generates.

@dataclass
class NewUser:
    username: str
    password: str
    fullname: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    profile_image: Optional[str] = None
    member_since: Optional[datetime] = None


@dataclass
class NewEvent:
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: str
    image: str
    event_type: str
    organizer_id: int
    participant_limit: int
    prize_pool: Optional[str] = None


@dataclass
class NewRegistration:
    user_id: int
    event_id: int
    status: RegistrationStatus = RegistrationStatus.PENDING


@dataclass
class NewCertificate:
    user_id: int
    event_id: int
    name: str


@dataclass
class NewAward:
    user_id: int
    event_id: int
    name: str


# Update structures: only the mutable fields. None means "leave as is".

@dataclass
class UserUpdate:
    username: Optional[str] = None
    password: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    profile_image: Optional[str] = None
    member_since: Optional[datetime] = None

    def changes(self) -> dict:
        """Return the fields present in this patch."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class EventUpdate:
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    image: Optional[str] = None
    event_type: Optional[str] = None
    organizer_id: Optional[int] = None
    participant_limit: Optional[int] = None
    prize_pool: Optional[str] = None

    def changes(self) -> dict:
        """Return the fields present in this patch."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


# Derived views, computed on read and never stored.

@dataclass
class EventWithDetails:
    event: Event
    organizer: Optional[User] = None
    participant_count: int = 0
    status: Optional[RegistrationStatus] = None  # caller's registration status, if any

    def to_dict(self) -> dict:
        """Flatten the event and its annotations into one mapping."""
        data = self.event.to_dict()
        data["organizer"] = self.organizer.to_dict() if self.organizer else None
        data["participant_count"] = self.participant_count
        if self.status is not None:
            data["status"] = self.status.value
        return data


@dataclass
class UserEventStats:
    events_attended: int
    events_organized: int
    certificates_earned: int
    awards_won: int

    def to_dict(self) -> dict:
        return asdict(self)
