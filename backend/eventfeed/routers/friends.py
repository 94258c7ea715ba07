"""Friendship API routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.database import get_db
from eventfeed.models.friendship import FriendshipStatus
from eventfeed.schemas.social import FriendOut, FriendPinUpdate, FriendRequestCreate, FriendshipOut
from eventfeed.services import friend_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/requests", response_model=FriendshipOut, status_code=status.HTTP_201_CREATED)
async def send_request(payload: FriendRequestCreate, db: AsyncSession = Depends(get_db)):
    return await friend_service.send_friend_request(db, payload.user_id, payload.friend_id)


@router.post("/requests/{friendship_id}/accept", response_model=FriendshipOut)
async def accept_request(friendship_id: str, db: AsyncSession = Depends(get_db)):
    return await friend_service.respond_to_friend_request(db, friendship_id, FriendshipStatus.accepted)


@router.post("/requests/{friendship_id}/decline", response_model=FriendshipOut)
async def decline_request(friendship_id: str, db: AsyncSession = Depends(get_db)):
    return await friend_service.respond_to_friend_request(db, friendship_id, FriendshipStatus.declined)


@router.patch("/requests/{friendship_id}/pin", response_model=FriendshipOut)
async def pin_friend(friendship_id: str, payload: FriendPinUpdate, db: AsyncSession = Depends(get_db)):
    return await friend_service.set_pinned(db, friendship_id, payload.pinned)


@router.get("/requests/incoming/{user_id}", response_model=list[FriendOut])
async def incoming_requests(user_id: str, db: AsyncSession = Depends(get_db)):
    """Pending requests sent to the user; the ids feed the accept/decline routes."""
    return await friend_service.list_incoming_requests(db, user_id)


@router.get("/requests/outgoing/{user_id}", response_model=list[FriendOut])
async def outgoing_requests(user_id: str, db: AsyncSession = Depends(get_db)):
    return await friend_service.list_outgoing_requests(db, user_id)


@router.get("/{user_id}", response_model=list[FriendOut])
async def list_friends(user_id: str, db: AsyncSession = Depends(get_db)):
    """Accepted friends of the user, regardless of who sent the request. Pinned friends first."""
    return await friend_service.list_friends(db, user_id)
