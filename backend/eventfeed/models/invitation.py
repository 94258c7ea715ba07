"""Invitation ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventfeed.database import Base


class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Invitation(Base):
    __tablename__ = "event_invitations"

    invitation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False, index=True)
    inviter_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    invitee_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(SAEnum(InvitationStatus), nullable=False, default=InvitationStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    responded_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", back_populates="invitations")
