"""Pydantic schemas for Events and their attendees."""
from __future__ import annotations
from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, field_validator

from eventfeed.models.event import Visibility
from eventfeed.schemas.common import as_utc


class EventCreate(BaseModel):
    creator_id: str
    title: str
    event_date: date
    event_time: Optional[time] = None
    location: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    visibility: Visibility = Visibility.public


class EventUpdate(BaseModel):
    title: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[time] = None
    location: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    visibility: Optional[Visibility] = None


class EventOut(BaseModel):
    event_id: str
    creator_id: str
    title: str
    event_date: date
    event_time: Optional[time] = None
    location: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    visibility: Visibility = Visibility.public
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("visibility", mode="before")
    @classmethod
    def _parse_visibility(cls, value):
        return Visibility.parse(value)


class AttendeeOut(BaseModel):
    """An RSVP row joined with the attendee's profile names."""

    event_id: str
    user_id: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    display_name: Optional[str] = None
    username: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at", mode="after")
    @classmethod
    def _created_at_utc(cls, value):
        return as_utc(value)


class RSVPPayload(BaseModel):
    event_id: str
    user_id: str
    avatar_url: Optional[str] = None


class AccessOut(BaseModel):
    event_id: str
    viewer_id: Optional[str] = None
    can_view: bool
