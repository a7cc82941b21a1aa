"""Coach question library schemas."""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class QuestionCreate(BaseModel):
    question: str = Field(..., min_length=1)
    category: str = Field(default="discovery", min_length=1, max_length=100)
    subcategory: Optional[str] = None
    is_template: bool = False


class QuestionUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    subcategory: Optional[str] = None
    is_template: Optional[bool] = None

    @field_validator("question", "category", "is_template")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class QuestionResponse(BaseModel):
    id: str
    coach_id: str
    question: str
    category: str
    subcategory: Optional[str] = None
    is_template: bool
    use_count: int
    created_at: datetime

    model_config = {"from_attributes": True}
