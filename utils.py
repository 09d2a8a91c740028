from datetime import datetime, timezone
from fastapi import HTTPException
from models import EventWithDetails, User

def parse_date(date_str: str) -> datetime:
    """Parse a date string into a naive UTC datetime object."""
    try:
        parsed = datetime.fromisoformat(date_str)
    except ValueError:
        try:
            parsed = datetime.strptime(date_str, "%Y-%m-%d %H:%M")
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date format")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def parse_id(raw: str, label: str) -> int:
    """Parse a numeric path id, rejecting anything else with a 400."""
    if not (raw.isascii() and raw.isdigit()):
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID")
    value = int(raw)
    if value < 1:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID")
    return value

def public_user(user: User) -> dict:
    """Return a user record without its password."""
    data = user.to_dict()
    data.pop("password", None)
    return data

def public_event_details(details: EventWithDetails) -> dict:
    """Return event details with the organizer's password stripped."""
    data = details.to_dict()
    if details.organizer is not None:
        data["organizer"] = public_user(details.organizer)
    return data
