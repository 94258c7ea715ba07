"""Pydantic schemas for friendships and event invitations."""
from __future__ import annotations
from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, field_validator

from eventfeed.models.friendship import FriendshipStatus
from eventfeed.models.invitation import InvitationStatus
from eventfeed.schemas.common import as_utc


class FriendRequestCreate(BaseModel):
    user_id: str
    friend_id: str


class FriendPinUpdate(BaseModel):
    pinned: bool


class FriendshipOut(BaseModel):
    friendship_id: str
    user_id: str
    friend_id: str
    status: FriendshipStatus
    pinned: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FriendOut(BaseModel):
    """A friendship row seen from one side, carrying the other party's profile."""

    friendship_id: str
    user_id: str  # the other party
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    status: FriendshipStatus
    pinned: bool = False
    created_at: Optional[datetime] = None


class InvitationCreate(BaseModel):
    event_id: str
    inviter_id: str
    invitee_ids: list[str]


class InvitationRespond(BaseModel):
    status: str  # accepted or declined
    avatar_url: Optional[str] = None


class InvitationOut(BaseModel):
    invitation_id: str
    event_id: str
    inviter_id: str
    invitee_id: str
    status: InvitationStatus
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvitationSummary(BaseModel):
    """A pending invitation joined with just enough event and inviter data to render it."""

    invitation_id: str
    event_id: str
    inviter_id: str
    created_at: Optional[datetime] = None
    event_title: str
    event_date: Optional[date] = None
    event_time: Optional[time] = None
    event_location: Optional[str] = None
    event_cover_image: Optional[str] = None
    inviter_name: str = "Someone"
    inviter_avatar_url: Optional[str] = None

    @field_validator("created_at", mode="after")
    @classmethod
    def _created_at_utc(cls, value):
        return as_utc(value)
