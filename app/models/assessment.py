"""Business health assessments: the submitted answers and their scored result."""
from enum import Enum

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id, JSONBCompat


class HealthStatus(str, Enum):
    THRIVING = "THRIVING"
    STRONG = "STRONG"
    STABLE = "STABLE"
    BUILDING = "BUILDING"
    STRUGGLING = "STRUGGLING"


class Assessment(Base):
    """
    One completed assessment.

    engine_scores holds {engine_id: {"score": int, "max": int, "percentage": int}}
    for the eight business engines.
    """

    __tablename__ = "assessments"

    id = Column(String, primary_key=True, default=lambda: generate_id("asmt"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    answers = Column(JSONBCompat, nullable=False, default=dict)
    engine_scores = Column(JSONBCompat, nullable=False, default=dict)
    total_score = Column(Integer, nullable=False, default=0)
    total_max = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False, default=0)
    health_status = Column(String, nullable=False)
    revenue_stage = Column(String, nullable=True)

    strengths = Column(JSONBCompat, nullable=False, default=list)
    improvement_areas = Column(JSONBCompat, nullable=False, default=list)
    recommendations = Column(JSONBCompat, nullable=False, default=list)

    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_assessments_business_created", "business_id", "created_at"),
    )
