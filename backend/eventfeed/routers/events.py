"""Event API routes: writes go through event_service, reads through the visibility evaluator."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.database import get_db
from eventfeed.dependencies import get_relationship_provider
from eventfeed.models.event import Event
from eventfeed.schemas.event import AccessOut, EventCreate, EventOut, EventUpdate
from eventfeed.services import event_service
from eventfeed.services.access_control import can_view, filter_visible
from eventfeed.services.relationships import SqlRelationshipProvider

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, db: AsyncSession = Depends(get_db)):
    """Create a new event."""
    fields = payload.model_dump(exclude={"creator_id"})
    return await event_service.create_event(db, payload.creator_id, **fields)


@router.get("/", response_model=list[EventOut])
async def list_events(
    viewer_id: Optional[str] = Query(None, description="Omit for anonymous browsing"),
    creator_id: Optional[str] = Query(None),
    start_after: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """List events the viewer is allowed to see."""
    query = select(Event)
    if creator_id:
        query = query.where(Event.creator_id == creator_id)
    if start_after:
        query = query.where(Event.event_date >= start_after)
    events = (await db.scalars(query.order_by(Event.event_date, Event.event_time))).all()
    return await filter_visible([EventOut.model_validate(ev) for ev in events], viewer_id, provider)


async def _load_event(db: AsyncSession, event_id: str) -> EventOut:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return EventOut.model_validate(event)


@router.get("/{event_id}", response_model=EventOut)
async def get_event(
    event_id: str,
    viewer_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """Fetch a single event. Hidden events answer 404 so their existence is not disclosed."""
    return await event_service.get_visible_event(db, event_id, viewer_id, provider)


@router.get("/{event_id}/access", response_model=AccessOut)
async def check_access(
    event_id: str,
    viewer_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """Report whether the viewer may open the event."""
    event = await _load_event(db, event_id)
    allowed = await can_view(event, viewer_id, provider)
    logger.debug("Access check for event %s by %s: %s", event_id, viewer_id, allowed)
    return AccessOut(event_id=event_id, viewer_id=viewer_id, can_view=allowed)


@router.put("/{event_id}", response_model=EventOut)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    actor_user_id: str = Query(..., description="ID of the user performing the update"),
    db: AsyncSession = Depends(get_db),
):
    """Update an event (creator only)."""
    updates = payload.model_dump(exclude_unset=True)
    return await event_service.update_event(db, event_id, actor_user_id, updates)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    actor_user_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event with its RSVPs and invitations (creator only)."""
    await event_service.delete_event(db, event_id, actor_user_id)
