"""Assessment request and response schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List


class AssessmentSubmit(BaseModel):
    """Answers keyed by question id, each the value of the chosen option."""
    answers: Dict[str, str]
    annual_revenue: Optional[Decimal] = Field(None, ge=0)


class EngineScoreResponse(BaseModel):
    score: int
    max: int
    percentage: int


class AssessmentResponse(BaseModel):
    id: str
    business_id: str
    user_id: Optional[str] = None
    answers: Dict[str, str]
    engine_scores: Dict[str, EngineScoreResponse]
    total_score: int
    total_max: int
    percentage: int
    health_status: str
    revenue_stage: Optional[str] = None
    strengths: List[str] = []
    improvement_areas: List[str] = []
    recommendations: List[str] = []
    completed_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class AssessmentListResponse(BaseModel):
    assessments: List[AssessmentResponse]
    count: int


# ============================================================================
# QUESTION BANK
# ============================================================================

class OptionResponse(BaseModel):
    value: str
    label: str
    points: int


class QuestionResponse(BaseModel):
    id: str
    engine: str
    text: str
    options: List[OptionResponse]


class EngineResponse(BaseModel):
    id: str
    name: str
    subtitle: str
    max_score: int
    questions: List[QuestionResponse]


class QuestionBankResponse(BaseModel):
    engines: List[EngineResponse]
    total_max: int
