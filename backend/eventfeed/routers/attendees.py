"""Attendee / RSVP API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.database import get_db
from eventfeed.dependencies import get_relationship_provider
from eventfeed.schemas.event import AttendeeOut, RSVPPayload
from eventfeed.services import event_service
from eventfeed.services.relationships import SqlRelationshipProvider

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/rsvp", status_code=status.HTTP_201_CREATED)
async def rsvp(
    payload: RSVPPayload,
    db: AsyncSession = Depends(get_db),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """RSVP a user to an event they can see. Repeating an RSVP is harmless."""
    attendee = await event_service.rsvp(db, payload.event_id, payload.user_id, provider, payload.avatar_url)
    return {"status": "ok", "event_id": attendee.event_id, "user_id": attendee.user_id}


@router.delete("/rsvp", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_rsvp(
    event_id: str = Query(...),
    user_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a user's RSVP."""
    await event_service.cancel_rsvp(db, event_id, user_id)


@router.get("/{event_id}", response_model=list[AttendeeOut])
async def list_attendees(
    event_id: str,
    viewer_id: Optional[str] = Query(None, description="Omit for anonymous browsing"),
    db: AsyncSession = Depends(get_db),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """Attendees in the order they RSVP'd. Hidden events answer 404."""
    await event_service.get_visible_event(db, event_id, viewer_id, provider)
    return await provider.list_attendees(event_id)
