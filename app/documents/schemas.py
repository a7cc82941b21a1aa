"""Shared document schemas."""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class DocumentCreate(BaseModel):
    """A document reference. Files live in external storage; only the URL is kept."""
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1)
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    folder: Optional[str] = None
    description: Optional[str] = None


class DocumentUpdate(BaseModel):
    file_name: Optional[str] = Field(None, min_length=1, max_length=255)
    folder: Optional[str] = None
    description: Optional[str] = None

    @field_validator("file_name")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class DocumentResponse(BaseModel):
    id: str
    business_id: str
    uploaded_by: Optional[str] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    folder: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
