"""User API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventfeed.database import get_db
from eventfeed.models.user import User
from eventfeed.schemas.user import UserCreate, UserUpdate, UserOut
from eventfeed.services import friend_service

logger = logging.getLogger(__name__)
router = APIRouter()


async def _commit_or_409(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a user profile."""
    user = User(**payload.model_dump())
    db.add(user)
    await _commit_or_409(db)
    await db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.username)
    return user


@router.get("/", response_model=list[UserOut])
async def list_users(db: AsyncSession = Depends(get_db)):
    """List all users."""
    return (await db.scalars(select(User).order_by(User.username))).all()


@router.get("/search", response_model=list[UserOut])
async def search_users(
    q: str = Query(..., min_length=1, description="Matched against username and display name"),
    viewer_id: Optional[str] = Query(None, description="Exclude the viewer and their friends or pending requests"),
    db: AsyncSession = Depends(get_db),
):
    """Find people to send friend requests to."""
    return await friend_service.search_users(db, q, viewer_id)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """Fetch a single user by ID."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, payload: UserUpdate, db: AsyncSession = Depends(get_db)):
    """Update profile fields (partial update)."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await _commit_or_409(db)
    await db.refresh(user)
    logger.info("Updated user %s", user_id)
    return user
