"""Coach/client chat messages and shared documents."""
from enum import Enum

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, Text, Index
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class SenderType(str, Enum):
    CLIENT = "client"
    COACH = "coach"


class Message(Base):
    """A chat message within a business conversation."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=lambda: generate_id("msg"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sender_type = Column(String, nullable=False)  # "client" | "coach"
    recipient_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    content = Column(Text, nullable=False, default="")
    read = Column(Boolean, nullable=False, default=False)

    # Attachment (stored externally, referenced by URL)
    attachment_url = Column(String, nullable=True)
    attachment_name = Column(String, nullable=True)
    attachment_size = Column(Integer, nullable=True)
    attachment_type = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_messages_business_created", "business_id", "created_at"),
    )


class SharedDocument(Base):
    """Document shared between a coach and a client business."""

    __tablename__ = "shared_documents"

    id = Column(String, primary_key=True, default=lambda: generate_id("doc"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    folder = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
