"""Relationship Provider and event repository.

The visibility evaluator and the feed composer only ever read. They talk to
the store through the two protocols below; ``SqlRelationshipProvider`` is the
SQLAlchemy implementation of both.

Every method opens its own session from the factory, so callers may issue
independent lookups concurrently with ``asyncio.gather``. Nothing is cached:
batching within one logical operation is the caller's job.
"""
import logging
from datetime import date
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventfeed.exceptions import RelationshipLookupError
from eventfeed.models.attendee import Attendee
from eventfeed.models.event import Event
from eventfeed.models.friendship import Friendship, FriendshipStatus
from eventfeed.models.invitation import Invitation, InvitationStatus
from eventfeed.models.user import User
from eventfeed.schemas.event import AttendeeOut, EventOut
from eventfeed.schemas.social import InvitationSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Invitation states that grant access to a private event.
ACTIVE_INVITATION_STATUSES = (InvitationStatus.pending, InvitationStatus.accepted)


class RelationshipProvider(Protocol):
    async def friend_ids_of(self, user_id: str) -> set[str]: ...

    async def attending_event_ids_of(self, user_id: str) -> set[str]: ...

    async def is_invited(self, event_id: str, user_id: str) -> bool: ...

    async def invited_event_ids_of(self, user_id: str) -> set[str]: ...


class EventRepository(Protocol):
    async def list_attending_events(self, user_id: str, since: Optional[date] = None) -> list[EventOut]: ...

    async def list_hosted_events(self, user_id: str) -> list[EventOut]: ...

    async def list_attendees(self, event_id: str) -> list[AttendeeOut]: ...

    async def list_pending_invitations(self, user_id: str) -> list[InvitationSummary]: ...


class SqlRelationshipProvider:
    """Relationship Provider and event repository backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def _run(
        self,
        query: str,
        user_id: Optional[str],
        fn: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        try:
            async with self._session_factory() as session:
                return await fn(session)
        except SQLAlchemyError as exc:
            logger.warning("Store error during %s for user %s: %s", query, user_id, exc)
            raise RelationshipLookupError(query, user_id) from exc

    # ── Relationship queries ──────────────────────────────────────

    async def friend_ids_of(self, user_id: str) -> set[str]:
        """Accepted friends of ``user_id``, whichever side sent the request."""

        async def _query(session: AsyncSession) -> set[str]:
            stmt = select(Friendship.user_id, Friendship.friend_id).where(
                Friendship.status == FriendshipStatus.accepted,
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
            )
            rows = (await session.execute(stmt)).all()
            ids = {friend if sender == user_id else sender for sender, friend in rows}
            ids.discard(user_id)
            return ids

        return await self._run("friend_ids_of", user_id, _query)

    async def attending_event_ids_of(self, user_id: str) -> set[str]:
        async def _query(session: AsyncSession) -> set[str]:
            stmt = select(Attendee.event_id).where(Attendee.user_id == user_id)
            return set((await session.scalars(stmt)).all())

        return await self._run("attending_event_ids_of", user_id, _query)

    async def is_invited(self, event_id: str, user_id: str) -> bool:
        async def _query(session: AsyncSession) -> bool:
            stmt = (
                select(Invitation.invitation_id)
                .where(
                    Invitation.event_id == event_id,
                    Invitation.invitee_id == user_id,
                    Invitation.status.in_(ACTIVE_INVITATION_STATUSES),
                )
                .limit(1)
            )
            return (await session.scalar(stmt)) is not None

        return await self._run("is_invited", user_id, _query)

    async def invited_event_ids_of(self, user_id: str) -> set[str]:
        async def _query(session: AsyncSession) -> set[str]:
            stmt = select(Invitation.event_id).where(
                Invitation.invitee_id == user_id,
                Invitation.status.in_(ACTIVE_INVITATION_STATUSES),
            )
            return set((await session.scalars(stmt)).all())

        return await self._run("invited_event_ids_of", user_id, _query)

    # ── Event repository ──────────────────────────────────────────

    async def list_attending_events(self, user_id: str, since: Optional[date] = None) -> list[EventOut]:
        """Events the user has RSVP'd to, optionally only those dated on/after ``since``."""

        async def _query(session: AsyncSession) -> list[EventOut]:
            stmt = (
                select(Event)
                .join(Attendee, Attendee.event_id == Event.event_id)
                .where(Attendee.user_id == user_id)
            )
            if since is not None:
                stmt = stmt.where(Event.event_date >= since)
            events = (await session.scalars(stmt.order_by(Event.event_date))).all()
            return [EventOut.model_validate(ev) for ev in events]

        return await self._run("list_attending_events", user_id, _query)

    async def list_hosted_events(self, user_id: str) -> list[EventOut]:
        async def _query(session: AsyncSession) -> list[EventOut]:
            stmt = select(Event).where(Event.creator_id == user_id).order_by(Event.event_date)
            events = (await session.scalars(stmt)).all()
            return [EventOut.model_validate(ev) for ev in events]

        return await self._run("list_hosted_events", user_id, _query)

    async def list_attendees(self, event_id: str) -> list[AttendeeOut]:
        """Attendees of an event in join order (oldest RSVP first)."""

        async def _query(session: AsyncSession) -> list[AttendeeOut]:
            stmt = (
                select(Attendee, User.display_name, User.username)
                .outerjoin(User, User.user_id == Attendee.user_id)
                .where(Attendee.event_id == event_id)
                .order_by(Attendee.created_at, Attendee.attendee_id)
            )
            rows = (await session.execute(stmt)).all()
            return [
                AttendeeOut(
                    event_id=att.event_id,
                    user_id=att.user_id,
                    avatar_url=att.avatar_url,
                    created_at=att.created_at,
                    display_name=display_name,
                    username=username,
                )
                for att, display_name, username in rows
            ]

        return await self._run("list_attendees", None, _query)

    async def list_pending_invitations(self, user_id: str) -> list[InvitationSummary]:
        async def _query(session: AsyncSession) -> list[InvitationSummary]:
            stmt = (
                select(Invitation, Event, User)
                .join(Event, Event.event_id == Invitation.event_id)
                .outerjoin(User, User.user_id == Invitation.inviter_id)
                .where(
                    Invitation.invitee_id == user_id,
                    Invitation.status == InvitationStatus.pending,
                )
                .order_by(Invitation.created_at.desc())
            )
            rows = (await session.execute(stmt)).all()
            return [
                InvitationSummary(
                    invitation_id=inv.invitation_id,
                    event_id=inv.event_id,
                    inviter_id=inv.inviter_id,
                    created_at=inv.created_at,
                    event_title=ev.title,
                    event_date=ev.event_date,
                    event_time=ev.event_time,
                    event_location=ev.location,
                    event_cover_image=ev.cover_image,
                    inviter_name=(inviter.display_name or inviter.username) if inviter else "Someone",
                    inviter_avatar_url=inviter.avatar_url if inviter else None,
                )
                for inv, ev, inviter in rows
            ]

        return await self._run("list_pending_invitations", user_id, _query)
