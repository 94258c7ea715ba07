"""Event invitation API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.database import get_db
from eventfeed.dependencies import get_relationship_provider
from eventfeed.schemas.social import InvitationCreate, InvitationOut, InvitationRespond, InvitationSummary
from eventfeed.services import event_service
from eventfeed.services.relationships import SqlRelationshipProvider

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=list[InvitationOut], status_code=status.HTTP_201_CREATED)
async def invite(payload: InvitationCreate, db: AsyncSession = Depends(get_db)):
    """Invite one or more users to an event."""
    return await event_service.invite_users(db, payload.event_id, payload.inviter_id, payload.invitee_ids)


@router.post("/{invitation_id}/respond", response_model=InvitationOut)
async def respond(invitation_id: str, payload: InvitationRespond, db: AsyncSession = Depends(get_db)):
    """Accept (which also RSVPs) or decline an invitation."""
    return await event_service.respond_to_invitation(db, invitation_id, payload.status, payload.avatar_url)


@router.get("/pending/{user_id}", response_model=list[InvitationSummary])
async def pending(
    user_id: str,
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    return await provider.list_pending_invitations(user_id)
