"""Event write service: creation, edits, RSVPs and invitations.

Responsibilities:
- Authorization hook: only the creator may update, delete or invite to an event
- RSVPs and attendee lists answer 404 for events the user may not see
- RSVP rows are unique per (event, user); a repeat RSVP is a no-op
- Accepting an invitation also creates the attendance row, in the same commit
- Deleting an event removes its attendance and invitation rows
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.models.attendee import Attendee
from eventfeed.models.event import Event, Visibility
from eventfeed.models.invitation import Invitation, InvitationStatus
from eventfeed.models.user import User
from eventfeed.schemas.event import EventOut
from eventfeed.services.access_control import can_view, normalize_id
from eventfeed.services.relationships import RelationshipProvider

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("event_id", "creator_id", "created_at")


async def _get_event_or_404(db: AsyncSession, event_id: str) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


async def _get_user_or_404(db: AsyncSession, user_id: str, role: str = "User") -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail=f"{role} not found")
    return user


def _check_authorization(event: Event, actor_user_id: str) -> None:
    """Only the creator may modify or delete an event."""
    if normalize_id(event.creator_id) != normalize_id(actor_user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the event creator may modify this event.",
        )


async def get_visible_event(
    db: AsyncSession,
    event_id: str,
    viewer_id: Optional[str],
    provider: RelationshipProvider,
) -> EventOut:
    """Load an event, answering 404 both when it is missing and when the viewer may not see it."""
    event = EventOut.model_validate(await _get_event_or_404(db, event_id))
    if not await can_view(event, viewer_id, provider):
        raise HTTPException(status_code=404, detail="Event not found")
    return event


async def create_event(db: AsyncSession, creator_id: str, **fields: Any) -> Event:
    """Create an event owned by ``creator_id``."""
    await _get_user_or_404(db, creator_id, role="Creator")
    visibility = fields.pop("visibility", None)
    event = Event(
        creator_id=creator_id,
        visibility=Visibility.parse(visibility).value,
        **fields,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Created event '%s' (%s) by %s [%s]", event.title, event.event_id, creator_id, event.visibility)
    return event


async def update_event(db: AsyncSession, event_id: str, actor_user_id: str, updates: dict[str, Any]) -> Event:
    event = await _get_event_or_404(db, event_id)
    _check_authorization(event, actor_user_id)

    for field, value in updates.items():
        if field in IMMUTABLE_FIELDS or not hasattr(event, field):
            continue
        if field == "visibility":
            value = Visibility.parse(value).value
        setattr(event, field, value)
    event.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(event)
    logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(updates)) or "no fields")
    return event


async def delete_event(db: AsyncSession, event_id: str, actor_user_id: str) -> None:
    """Hard delete; attendance and invitation rows go with it."""
    event = await _get_event_or_404(db, event_id)
    _check_authorization(event, actor_user_id)

    await db.execute(delete(Attendee).where(Attendee.event_id == event_id))
    await db.execute(delete(Invitation).where(Invitation.event_id == event_id))
    await db.execute(delete(Event).where(Event.event_id == event_id))
    await db.commit()
    logger.info("Deleted event %s by %s", event_id, actor_user_id)


# ── RSVPs ─────────────────────────────────────────────────────────

async def _find_attendance(db: AsyncSession, event_id: str, user_id: str) -> Optional[Attendee]:
    stmt = select(Attendee).where(Attendee.event_id == event_id, Attendee.user_id == user_id)
    return (await db.scalars(stmt)).first()


async def rsvp(
    db: AsyncSession,
    event_id: str,
    user_id: str,
    provider: RelationshipProvider,
    avatar_url: Optional[str] = None,
) -> Attendee:
    """Add the user to the event's attendees. Idempotent.

    Attendance grants access to private events, so the user must already be
    able to see the event.
    """
    await get_visible_event(db, event_id, user_id, provider)
    user = await _get_user_or_404(db, user_id)

    existing = await _find_attendance(db, event_id, user_id)
    if existing:
        return existing

    attendee = Attendee(event_id=event_id, user_id=user_id, avatar_url=avatar_url or user.avatar_url)
    db.add(attendee)
    await db.commit()
    await db.refresh(attendee)
    logger.info("User %s RSVP'd to event %s", user_id, event_id)
    return attendee


async def cancel_rsvp(db: AsyncSession, event_id: str, user_id: str) -> None:
    result = await db.execute(
        delete(Attendee).where(Attendee.event_id == event_id, Attendee.user_id == user_id)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="User is not attending this event")
    await db.commit()
    logger.info("User %s cancelled RSVP to event %s", user_id, event_id)


# ── Invitations ───────────────────────────────────────────────────

async def invite_users(db: AsyncSession, event_id: str, inviter_id: str, invitee_ids: list[str]) -> list[Invitation]:
    """Invite users to an event (creator only).

    Users holding a pending or accepted invitation are skipped; a declined
    invitee may be invited again.
    """
    event = await _get_event_or_404(db, event_id)
    _check_authorization(event, inviter_id)
    await _get_user_or_404(db, inviter_id, role="Inviter")

    candidates = [uid for uid in dict.fromkeys(invitee_ids) if normalize_id(uid) != normalize_id(inviter_id)]
    if not candidates:
        detail = "Cannot invite yourself to your own event" if invitee_ids else "No invitees given"
        raise HTTPException(status_code=400, detail=detail)

    stmt = select(Invitation.invitee_id).where(
        Invitation.event_id == event_id,
        Invitation.status != InvitationStatus.declined,
    )
    already_invited = set((await db.scalars(stmt)).all())

    created = []
    for invitee_id in candidates:
        if invitee_id in already_invited:
            continue
        await _get_user_or_404(db, invitee_id, role="Invitee")
        invitation = Invitation(event_id=event_id, inviter_id=inviter_id, invitee_id=invitee_id)
        db.add(invitation)
        created.append(invitation)

    if not created:
        raise HTTPException(status_code=409, detail="Every invitee already has an open invitation")

    await db.commit()
    for invitation in created:
        await db.refresh(invitation)
    logger.info("User %s invited %d user(s) to event %s", inviter_id, len(created), event_id)
    return created


async def respond_to_invitation(
    db: AsyncSession,
    invitation_id: str,
    response: str,
    avatar_url: Optional[str] = None,
) -> Invitation:
    """Accept or decline. Accepting also RSVPs the invitee."""
    invitation = await db.get(Invitation, invitation_id)
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")

    try:
        new_status = InvitationStatus(response)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid invitation response: {response}")
    if new_status is InvitationStatus.pending:
        raise HTTPException(status_code=400, detail="Response must be 'accepted' or 'declined'")
    if invitation.status is not InvitationStatus.pending:
        raise HTTPException(status_code=400, detail=f"Invitation already {invitation.status.value}")

    invitation.status = new_status
    invitation.responded_at = datetime.now(timezone.utc)

    if new_status is InvitationStatus.accepted:
        existing = await _find_attendance(db, invitation.event_id, invitation.invitee_id)
        if not existing:
            invitee = await _get_user_or_404(db, invitation.invitee_id, role="Invitee")
            db.add(Attendee(
                event_id=invitation.event_id,
                user_id=invitation.invitee_id,
                avatar_url=avatar_url or invitee.avatar_url,
            ))

    await db.commit()
    await db.refresh(invitation)
    logger.info("Invitation %s %s by %s", invitation_id, new_status.value, invitation.invitee_id)
    return invitation
