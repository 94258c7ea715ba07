"""Pytest fixtures — per-test SQLite database and an in-memory relationship store."""
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventfeed.database import Base, get_session_factory
from eventfeed.exceptions import RelationshipLookupError
from eventfeed.main import app
from eventfeed.schemas.event import AttendeeOut, EventOut
from eventfeed.schemas.social import InvitationSummary

# Import all models so they register with Base.metadata
from eventfeed.models.user import User              # noqa: F401
from eventfeed.models.event import Event            # noqa: F401
from eventfeed.models.attendee import Attendee      # noqa: F401
from eventfeed.models.friendship import Friendship  # noqa: F401
from eventfeed.models.invitation import Invitation  # noqa: F401


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create a fresh SQLite database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """Yield a database session for direct assertions against the tables."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client with the session factory dependency pointed at the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# In-memory store implementing RelationshipProvider and EventRepository
# ---------------------------------------------------------------------------
class FakeStore:
    """Dict-backed relationship provider / event repository.

    Add a method name to ``failing`` to make it raise RelationshipLookupError.
    ``calls`` counts invocations per method.
    """

    def __init__(self):
        self.events: dict[str, EventOut] = {}
        self.friendships: list[tuple[str, str, str]] = []
        self.attendees: dict[str, list[AttendeeOut]] = {}
        self.invitations: list[tuple[str, str, str]] = []
        self.pending: dict[str, list[InvitationSummary]] = {}
        self.failing: set[str] = set()
        self.calls: Counter = Counter()

    def _enter(self, name: str, user_id: Optional[str] = None) -> None:
        self.calls[name] += 1
        if name in self.failing:
            raise RelationshipLookupError(name, user_id)

    # setup helpers
    def add_event(self, event: EventOut) -> EventOut:
        self.events[event.event_id] = event
        return event

    def befriend(self, user_id: str, friend_id: str, status: str = "accepted") -> None:
        self.friendships.append((user_id, friend_id, status))

    def attend(self, event_id: str, user_id: str, name: Optional[str] = None,
               created_at: Optional[datetime] = None, username: Optional[str] = None) -> AttendeeOut:
        attendee = AttendeeOut(
            event_id=event_id,
            user_id=user_id,
            avatar_url=f"https://img.example/{user_id}.png",
            created_at=created_at,
            display_name=name,
            username=username,
        )
        self.attendees.setdefault(event_id, []).append(attendee)
        return attendee

    def invite(self, event_id: str, invitee_id: str, status: str = "pending") -> None:
        self.invitations.append((event_id, invitee_id, status))

    # RelationshipProvider
    async def friend_ids_of(self, user_id: str) -> set[str]:
        self._enter("friend_ids_of", user_id)
        ids = set()
        for sender, receiver, status in self.friendships:
            if status != "accepted":
                continue
            if sender == user_id:
                ids.add(receiver)
            elif receiver == user_id:
                ids.add(sender)
        return ids

    async def attending_event_ids_of(self, user_id: str) -> set[str]:
        self._enter("attending_event_ids_of", user_id)
        return {eid for eid, rows in self.attendees.items() if any(a.user_id == user_id for a in rows)}

    async def is_invited(self, event_id: str, user_id: str) -> bool:
        self._enter("is_invited", user_id)
        return any(
            e == event_id and u == user_id and s in ("pending", "accepted")
            for e, u, s in self.invitations
        )

    async def invited_event_ids_of(self, user_id: str) -> set[str]:
        self._enter("invited_event_ids_of", user_id)
        return {e for e, u, s in self.invitations if u == user_id and s in ("pending", "accepted")}

    # EventRepository
    async def list_attending_events(self, user_id: str, since=None) -> list[EventOut]:
        self._enter("list_attending_events", user_id)
        ids = {eid for eid, rows in self.attendees.items() if any(a.user_id == user_id for a in rows)}
        return [
            ev for eid, ev in self.events.items()
            if eid in ids and (since is None or ev.event_date >= since)
        ]

    async def list_hosted_events(self, user_id: str) -> list[EventOut]:
        self._enter("list_hosted_events", user_id)
        return [ev for ev in self.events.values() if ev.creator_id == user_id]

    async def list_attendees(self, event_id: str) -> list[AttendeeOut]:
        self._enter("list_attendees")
        return list(self.attendees.get(event_id, []))

    async def list_pending_invitations(self, user_id: str) -> list[InvitationSummary]:
        self._enter("list_pending_invitations", user_id)
        return list(self.pending.get(user_id, []))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


def make_event(event_id: str, creator_id: str, visibility=None, starts_at: Optional[datetime] = None,
               title: Optional[str] = None) -> EventOut:
    """Helper — build an EventOut starting at ``starts_at`` (UTC wall clock)."""
    starts_at = starts_at or datetime(2030, 1, 1, 18, 0, tzinfo=timezone.utc)
    return EventOut(
        event_id=event_id,
        creator_id=creator_id,
        title=title or f"Event {event_id}",
        event_date=starts_at.date(),
        event_time=starts_at.time().replace(tzinfo=None),
        cover_image=f"https://img.example/{event_id}-cover.png",
        visibility=visibility,
    )


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------
async def create_test_user(client: AsyncClient, username: str, display_name: Optional[str] = None) -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = await client.post("/api/users/", json={
        "username": username,
        "display_name": display_name,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_test_event(client: AsyncClient, creator_id: str, title: str = "Test Event",
                            visibility: str = "public", starts_at: Optional[datetime] = None) -> dict:
    """Helper — POST /api/events and return response JSON."""
    starts_at = starts_at or datetime(2030, 1, 1, 18, 0, tzinfo=timezone.utc)
    resp = await client.post("/api/events/", json={
        "creator_id": creator_id,
        "title": title,
        "event_date": starts_at.date().isoformat(),
        "event_time": starts_at.strftime("%H:%M:%S"),
        "visibility": visibility,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


async def make_friends(client: AsyncClient, user_id: str, friend_id: str) -> dict:
    """Helper — send and accept a friend request from ``user_id`` to ``friend_id``."""
    resp = await client.post("/api/friends/requests", json={"user_id": user_id, "friend_id": friend_id})
    assert resp.status_code == 201, resp.text
    resp = await client.post(f"/api/friends/requests/{resp.json()['friendship_id']}/accept")
    assert resp.status_code == 200, resp.text
    return resp.json()
