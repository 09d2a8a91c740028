from datetime import datetime
from models import NewAward, NewCertificate, NewEvent, NewRegistration, NewUser, RegistrationStatus

SAMPLE_IMAGE = "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e"

SAMPLE_USERS = [
    NewUser(
        username="alexjohnson",
        password="password123",
        fullname="Alex Johnson",
        email="alex.johnson@example.com",
        phone="(555) 123-4567",
        location="San Francisco, California",
        about="Frontend developer passionate about creating intuitive user experiences. "
              "Interested in hackathons and tech conferences.",
        profile_image=SAMPLE_IMAGE,
        member_since=datetime(2023, 1, 1),
    ),
    NewUser(
        username="techcorp",
        password="password123",
        fullname="TechCorp",
        email="info@techcorp.com",
        phone="(555) 987-6543",
        location="San Francisco, California",
        about="Leading tech company organizing innovative events and hackathons.",
        profile_image=SAMPLE_IMAGE,
        member_since=datetime(2022, 5, 15),
    ),
]

SAMPLE_EVENTS = [
    NewEvent(
        title="Tech Innovate Hackathon",
        description="A 48-hour coding challenge to build innovative solutions for real-world problems. "
                    "Cash prizes and networking opportunities.",
        start_date=datetime(2023, 6, 15),
        end_date=datetime(2023, 6, 17),
        location="San Francisco, CA",
        image="https://images.unsplash.com/photo-1540575467063-178a50c2df87",
        event_type="Hackathon",
        organizer_id=2,
        participant_limit=300,
        prize_pool="$5,000",
    ),
    NewEvent(
        title="AI Summit 2023",
        description="Explore the latest advancements in artificial intelligence with industry leaders. "
                    "Workshops, keynotes, and networking.",
        start_date=datetime(2023, 7, 10),
        end_date=datetime(2023, 7, 12),
        location="New York, NY",
        image="https://images.unsplash.com/photo-1517048676732-d65bc937f952",
        event_type="Conference",
        organizer_id=2,
        participant_limit=1200,
    ),
    NewEvent(
        title="Code for Good",
        description="Build technology solutions for nonprofit organizations. "
                    "Make a positive impact while showcasing your programming skills.",
        start_date=datetime(2023, 8, 5),
        end_date=datetime(2023, 8, 7),
        location="Austin, TX",
        image="https://images.unsplash.com/photo-1505373877841-8d25f7d46678",
        event_type="Hackathon",
        organizer_id=2,
        participant_limit=250,
    ),
    NewEvent(
        title="Web Development Workshop",
        description="Learn modern web development techniques from industry experts.",
        start_date=datetime(2023, 5, 5),
        end_date=datetime(2023, 5, 5),
        location="Online",
        image="https://images.unsplash.com/photo-1523580494863-6f3031224c94",
        event_type="Workshop",
        organizer_id=1,
        participant_limit=100,
    ),
    NewEvent(
        title="Product Design Meetup",
        description="Connect with product designers and learn about the latest design trends.",
        start_date=datetime(2023, 9, 12),
        end_date=datetime(2023, 9, 12),
        location="Chicago, IL",
        image="https://images.unsplash.com/photo-1543269865-cbf427effbad",
        event_type="Meetup",
        organizer_id=1,
        participant_limit=50,
    ),
]


def seed_demo_data(repository):
    """Load the demo dataset. Ids come out sequential from 1 on an empty repository."""
    for user in SAMPLE_USERS:
        repository.create_user(user)
    for event in SAMPLE_EVENTS:
        repository.create_event(event)

    repository.register_for_event(NewRegistration(user_id=1, event_id=1, status=RegistrationStatus.CONFIRMED))
    repository.register_for_event(NewRegistration(user_id=1, event_id=2, status=RegistrationStatus.PENDING))

    for i in range(8):
        event_id = i % 3 + 1
        repository.create_certificate(NewCertificate(user_id=1, event_id=event_id, name=f"Certificate for Event {event_id}"))
    for i in range(3):
        event_id = i % 3 + 1
        repository.create_award(NewAward(user_id=1, event_id=event_id, name=f"Award for Event {event_id}"))
