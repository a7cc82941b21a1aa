"""Message request and response schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class MessageCreate(BaseModel):
    """A chat message. Text, an attachment, or both."""
    content: str = Field(default="", max_length=10000)
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_size: Optional[int] = Field(None, ge=0)
    attachment_type: Optional[str] = None


class MessageResponse(BaseModel):
    id: str
    business_id: str
    sender_id: Optional[str] = None
    sender_type: str
    recipient_id: Optional[str] = None
    content: str
    read: bool
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_size: Optional[int] = None
    attachment_type: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    total: int


class UnreadMessagesResponse(BaseModel):
    count: int
