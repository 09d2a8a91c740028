from fastapi import FastAPI, HTTPException, Depends, Request, Response, APIRouter, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi import status
from pydantic import BaseModel, Field
from typing import Optional
from io import StringIO
from models import (
    NewUser, NewEvent, NewRegistration, NewCertificate, NewAward,
    UserUpdate, EventUpdate, RegistrationStatus,
)
from repository import Repository, NotFoundError, InvalidPatchError, UsernameTakenError
from utils import parse_date, parse_id, public_user, public_event_details
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
import os

load_dotenv()  # Load variables from .env file
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() in ("1", "true", "yes")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
FEATURED_EVENTS_LIMIT = int(os.getenv("FEATURED_EVENTS_LIMIT", "6"))

# Logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# -------------------------------
# Schemas
# -------------------------------
class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    fullname: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    profile_image: Optional[str] = None
    member_since: Optional[str] = None

class UserPatch(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    fullname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    about: Optional[str] = None
    profile_image: Optional[str] = None
    member_since: Optional[str] = None

    class Config:
        extra = "forbid"

class EventCreate(BaseModel):
    title: str
    description: str
    start_date: str
    end_date: str
    location: str
    image: str
    event_type: str
    organizer_id: int
    participant_limit: int = Field(ge=0)
    prize_pool: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Tech Innovate Hackathon",
                "description": "A 48-hour coding challenge.",
                "start_date": "2025-06-15T09:00:00",
                "end_date": "2025-06-17T18:00:00",
                "location": "San Francisco, CA",
                "image": "https://images.unsplash.com/photo-1540575467063-178a50c2df87",
                "event_type": "Hackathon",
                "organizer_id": 2,
                "participant_limit": 300,
                "prize_pool": "$5,000"
            }
        }

class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    image: Optional[str] = None
    event_type: Optional[str] = None
    organizer_id: Optional[int] = None
    participant_limit: Optional[int] = Field(default=None, ge=0)
    prize_pool: Optional[str] = None

    class Config:
        extra = "forbid"

class RegistrationCreate(BaseModel):
    user_id: int
    event_id: int
    status: RegistrationStatus = RegistrationStatus.PENDING

class StatusUpdate(BaseModel):
    status: RegistrationStatus

class CertificateCreate(BaseModel):
    user_id: int
    event_id: int
    name: str

class AwardCreate(BaseModel):
    user_id: int
    event_id: int
    name: str

# -------------------------------
# Dependencies
# -------------------------------
def get_repository(request: Request) -> Repository:
    """Return the repository the app was started with."""
    return request.app.state.repository

router = APIRouter(prefix="/api")

# -------------------------------
# User Routes
# -------------------------------
@router.get("/users/by-username/{username}", response_model=dict, summary="Get a user by username")
def get_user_by_username(username: str, repo: Repository = Depends(get_repository)):
    """Retrieve a user by username."""
    user = repo.get_user_by_username(username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User retrieved", "data": public_user(user)}

@router.get("/users/{user_id}", response_model=dict, summary="Get a user")
def get_user(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve a user by ID."""
    user = repo.get_user(parse_id(user_id, "user"))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User retrieved", "data": public_user(user)}

@router.post("/users", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Register a new user")
def create_user(user: UserCreate, repo: Repository = Depends(get_repository)):
    """Register a new user with a unique username."""
    data = user.model_dump()
    data["member_since"] = parse_date(user.member_since) if user.member_since else None
    created = repo.create_user_if_absent(NewUser(**data))
    if created is None:
        raise HTTPException(status_code=409, detail="Username already exists")
    logger.info(f"User {created.username} registered with id {created.id}")
    return {"message": "User registered", "data": public_user(created)}

@router.put("/users/{user_id}", response_model=dict, summary="Update a user")
def update_user(user_id: str, user: UserPatch, repo: Repository = Depends(get_repository)):
    """Update a user's profile fields."""
    uid = parse_id(user_id, "user")
    data = user.model_dump()
    data["member_since"] = parse_date(user.member_since) if user.member_since else None
    try:
        updated = repo.update_user_if_username_free(uid, UserUpdate(**data))
    except UsernameTakenError:
        raise HTTPException(status_code=409, detail="Username already exists")
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(f"User {uid} updated")
    return {"message": f"User {uid} updated", "data": public_user(updated)}

# -------------------------------
# Event Routes
# -------------------------------
@router.get("/events", response_model=dict, summary="List all events")
def list_events(repo: Repository = Depends(get_repository)):
    """Retrieve a list of all events."""
    return {"message": "Events retrieved", "data": [e.to_dict() for e in repo.get_events()]}

@router.get("/events/featured", response_model=dict, summary="List featured events")
def list_featured_events(limit: int = Query(default=FEATURED_EVENTS_LIMIT, ge=0), repo: Repository = Depends(get_repository)):
    """Retrieve the events with the latest start dates."""
    return {"message": "Featured events retrieved", "data": [e.to_dict() for e in repo.get_featured_events(limit)]}

@router.get("/events/{event_id}", response_model=dict, summary="Get an event with details")
def get_event(event_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve an event with its organizer and participant count."""
    details = repo.get_event_with_details(parse_id(event_id, "event"))
    if not details:
        raise HTTPException(status_code=404, detail="Event not found")
    return {"message": "Event retrieved", "data": public_event_details(details)}

@router.post("/events", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Create a new event")
def create_event(event: EventCreate, repo: Repository = Depends(get_repository)):
    """Create a new event."""
    data = event.model_dump()
    data["start_date"] = parse_date(event.start_date)
    data["end_date"] = parse_date(event.end_date)
    created = repo.create_event(NewEvent(**data))
    logger.info(f"Event {created.id} created by organizer {created.organizer_id}")
    return {"message": "Event created", "data": created.to_dict()}

@router.put("/events/{event_id}", response_model=dict, summary="Update an event")
def update_event(event_id: str, event: EventPatch, repo: Repository = Depends(get_repository)):
    """Update an existing event."""
    eid = parse_id(event_id, "event")
    data = event.model_dump()
    data["start_date"] = parse_date(event.start_date) if event.start_date else None
    data["end_date"] = parse_date(event.end_date) if event.end_date else None
    updated = repo.update_event(eid, EventUpdate(**data))
    if not updated:
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info(f"Event {eid} updated")
    return {"message": f"Event {eid} updated", "data": updated.to_dict()}

@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an event")
def delete_event(event_id: str, repo: Repository = Depends(get_repository)):
    """Delete an event."""
    eid = parse_id(event_id, "event")
    if not repo.delete_event(eid):
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info(f"Event {eid} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# -------------------------------
# Registration Routes
# -------------------------------
@router.post("/registrations", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Register for an event")
def register_for_event(registration: RegistrationCreate, repo: Repository = Depends(get_repository)):
    """Register a user for an event, once per user and event."""
    created = repo.register_for_event_if_absent(NewRegistration(**registration.model_dump()))
    if created is None:
        raise HTTPException(status_code=409, detail="User is already registered for this event")
    logger.info(f"User {created.user_id} registered for event {created.event_id}")
    return {"message": "Registered for event", "data": created.to_dict()}

@router.put("/registrations/{registration_id}/status", response_model=dict, summary="Update a registration status")
def update_registration_status(registration_id: str, body: StatusUpdate, repo: Repository = Depends(get_repository)):
    """Overwrite the status of a registration."""
    rid = parse_id(registration_id, "registration")
    try:
        updated = repo.update_registration_status(rid, body.status)
    except InvalidPatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Registration not found")
    logger.info(f"Registration {rid} set to {updated.status.value}")
    return {"message": f"Registration {rid} updated", "data": updated.to_dict()}

# -------------------------------
# Dashboard Routes
# -------------------------------
@router.get("/dashboard/registered/{user_id}", response_model=dict, summary="Events a user registered for")
def dashboard_registered(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve the events a user registered for, with their registration status."""
    events = repo.get_user_registered_events(parse_id(user_id, "user"))
    return {"message": "Registered events retrieved", "data": [public_event_details(e) for e in events]}

@router.get("/dashboard/organized/{user_id}", response_model=dict, summary="Events a user organized")
def dashboard_organized(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve the events a user organized, with participant counts."""
    events = repo.get_user_organized_events(parse_id(user_id, "user"))
    return {"message": "Organized events retrieved", "data": [public_event_details(e) for e in events]}

@router.get("/dashboard/stats/{user_id}", response_model=dict, summary="Participation stats of a user")
def dashboard_stats(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve the participation stats of a user."""
    stats = repo.get_user_event_stats(parse_id(user_id, "user"))
    return {"message": "Stats retrieved", "data": stats.to_dict()}

# -------------------------------
# Certificate and Award Routes
# -------------------------------
@router.get("/users/{user_id}/certificates", response_model=dict, summary="Certificates of a user")
def list_certificates(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve the certificates earned by a user."""
    certificates = repo.get_user_certificates(parse_id(user_id, "user"))
    return {"message": "Certificates retrieved", "data": [c.to_dict() for c in certificates]}

@router.get("/users/{user_id}/awards", response_model=dict, summary="Awards of a user")
def list_awards(user_id: str, repo: Repository = Depends(get_repository)):
    """Retrieve the awards won by a user."""
    awards = repo.get_user_awards(parse_id(user_id, "user"))
    return {"message": "Awards retrieved", "data": [a.to_dict() for a in awards]}

@router.post("/certificates", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Issue a certificate")
def create_certificate(certificate: CertificateCreate, repo: Repository = Depends(get_repository)):
    """Issue a certificate to a user for an event."""
    created = repo.create_certificate(NewCertificate(**certificate.model_dump()))
    logger.info(f"Certificate {created.id} issued to user {created.user_id}")
    return {"message": "Certificate created", "data": created.to_dict()}

@router.post("/awards", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Grant an award")
def create_award(award: AwardCreate, repo: Repository = Depends(get_repository)):
    """Grant an award to a user for an event."""
    created = repo.create_award(NewAward(**award.model_dump()))
    logger.info(f"Award {created.id} granted to user {created.user_id}")
    return {"message": "Award created", "data": created.to_dict()}

@router.get("/users/{user_id}/ai-report", response_model=None, summary="Download the participation report")
def download_report(user_id: str, repo: Repository = Depends(get_repository)):
    """Download the participation report of a user as a text file."""
    uid = parse_id(user_id, "user")
    try:
        content = repo.generate_ai_report(uid)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Report generation failed for user {uid}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate AI report")
    logger.info(f"Report generated for user {uid}")
    return StreamingResponse(
        StringIO(content),
        media_type="text/plain",
        headers={"Content-Disposition": 'attachment; filename="ai-event-report.txt"'},
    )

# -------------------------------
# App
# -------------------------------
def create_app(repository: Optional[Repository] = None) -> FastAPI:
    """Build the API around a repository, creating one at startup if none is given."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "repository", None) is None:
            app.state.repository = Repository(seed=SEED_DEMO_DATA)
            logger.info(f"Repository created (seeded: {SEED_DEMO_DATA})")
        yield
        logger.info("Closing repository")
        app.state.repository.close()

    app = FastAPI(lifespan=lifespan)
    app.state.repository = repository
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_model=dict, summary="API root endpoint")
    def root():
        """Welcome message for the Event Dashboard API."""
        return {"message": "Welcome to Event Dashboard API", "data": {}}

    app.include_router(router)
    return app

app = create_app()
