"""Friendship lifecycle: request, accept/decline, pin, plus friend lists and user search."""
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.models.friendship import Friendship, FriendshipStatus
from eventfeed.models.user import User
from eventfeed.schemas.social import FriendOut

logger = logging.getLogger(__name__)


async def send_friend_request(db: AsyncSession, user_id: str, friend_id: str) -> Friendship:
    if user_id == friend_id:
        raise HTTPException(status_code=400, detail="Cannot send a friend request to yourself")
    for uid in (user_id, friend_id):
        if not await db.get(User, uid):
            raise HTTPException(status_code=404, detail="User not found")

    # A row in either direction that is pending or accepted blocks a new request
    stmt = select(Friendship).where(
        or_(
            and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
            and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
        ),
        Friendship.status != FriendshipStatus.declined,
    )
    if (await db.scalars(stmt)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Friendship or request already exists")

    request = Friendship(user_id=user_id, friend_id=friend_id, status=FriendshipStatus.pending)
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info("Friend request %s: %s -> %s", request.friendship_id, user_id, friend_id)
    return request


async def respond_to_friend_request(db: AsyncSession, friendship_id: str, response: FriendshipStatus) -> Friendship:
    request = await db.get(Friendship, friendship_id)
    if not request:
        raise HTTPException(status_code=404, detail="Friend request not found")
    if request.status is not FriendshipStatus.pending:
        raise HTTPException(status_code=400, detail=f"Friend request already {request.status.value}")

    request.status = response
    await db.commit()
    await db.refresh(request)
    logger.info("Friend request %s %s", friendship_id, response.value)
    return request


async def set_pinned(db: AsyncSession, friendship_id: str, pinned: bool) -> Friendship:
    friendship = await db.get(Friendship, friendship_id)
    if not friendship:
        raise HTTPException(status_code=404, detail="Friendship not found")
    friendship.pinned = pinned
    await db.commit()
    await db.refresh(friendship)
    return friendship


async def _as_seen_by(db: AsyncSession, user_id: str, rows: list[Friendship]) -> list[FriendOut]:
    """Attach the other party's profile to each row."""
    other_ids = {row.friend_id if row.user_id == user_id else row.user_id for row in rows}
    profiles = {}
    if other_ids:
        users = (await db.scalars(select(User).where(User.user_id.in_(other_ids)))).all()
        profiles = {user.user_id: user for user in users}

    entries = []
    for row in rows:
        other_id = row.friend_id if row.user_id == user_id else row.user_id
        profile = profiles.get(other_id)
        entries.append(FriendOut(
            friendship_id=row.friendship_id,
            user_id=other_id,
            username=profile.username if profile else None,
            display_name=profile.display_name if profile else None,
            avatar_url=profile.avatar_url if profile else None,
            status=row.status,
            pinned=bool(row.pinned),
            created_at=row.created_at,
        ))
    return entries


async def list_friends(db: AsyncSession, user_id: str) -> list[FriendOut]:
    """Accepted friendships in either direction, pinned friends first."""
    stmt = select(Friendship).where(
        Friendship.status == FriendshipStatus.accepted,
        or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
    )
    friends = await _as_seen_by(db, user_id, list((await db.scalars(stmt)).all()))
    friends.sort(key=lambda f: (not f.pinned, (f.display_name or f.username or "").lower()))
    return friends


async def list_incoming_requests(db: AsyncSession, user_id: str) -> list[FriendOut]:
    stmt = (
        select(Friendship)
        .where(Friendship.friend_id == user_id, Friendship.status == FriendshipStatus.pending)
        .order_by(Friendship.created_at.desc())
    )
    return await _as_seen_by(db, user_id, list((await db.scalars(stmt)).all()))


async def list_outgoing_requests(db: AsyncSession, user_id: str) -> list[FriendOut]:
    stmt = (
        select(Friendship)
        .where(Friendship.user_id == user_id, Friendship.status == FriendshipStatus.pending)
        .order_by(Friendship.created_at.desc())
    )
    return await _as_seen_by(db, user_id, list((await db.scalars(stmt)).all()))


async def search_users(db: AsyncSession, query: str, viewer_id: Optional[str] = None, limit: int = 20) -> list[User]:
    """Users whose username or display name contains ``query``.

    With a viewer, the viewer and anyone they already have a pending or
    accepted friendship with are left out.
    """
    pattern = f"%{query.strip()}%"
    stmt = select(User).where(or_(User.username.ilike(pattern), User.display_name.ilike(pattern)))
    if viewer_id:
        linked = select(Friendship.user_id, Friendship.friend_id).where(
            Friendship.status != FriendshipStatus.declined,
            or_(Friendship.user_id == viewer_id, Friendship.friend_id == viewer_id),
        )
        excluded = {viewer_id}
        for sender, receiver in (await db.execute(linked)).all():
            excluded.update((sender, receiver))
        stmt = stmt.where(User.user_id.not_in(excluded))
    return list((await db.scalars(stmt.order_by(User.username).limit(limit))).all())
