"""
Business Models

A business is the tenant of the platform: the client's company that a
coach works with. Membership and per-business roles live in
business_users; one row per (business, user).
"""
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Date, Numeric, Integer, ForeignKey, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id, JSONBCompat


class BusinessStatus(str, Enum):
    ACTIVE = "active"
    ONBOARDING = "onboarding"
    PAUSED = "paused"
    ARCHIVED = "archived"


class MemberRole(str, Enum):
    """Role of a user inside a single business."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INVITED = "invited"
    REMOVED = "removed"


class Business(Base):
    """Business model - a coaching client's company."""

    __tablename__ = "businesses"

    id = Column(String, primary_key=True, default=lambda: generate_id("biz"))
    name = Column(String, nullable=False)
    owner_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_coach_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    industry = Column(String, nullable=True)
    status = Column(String, nullable=False, default=BusinessStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="owned_businesses", foreign_keys=[owner_id])
    members = relationship("BusinessUser", back_populates="business", cascade="all, delete-orphan")
    profile = relationship(
        "BusinessProfile", back_populates="business", uselist=False, cascade="all, delete-orphan"
    )


class BusinessProfile(Base):
    """Descriptive profile of a business (one per business)."""

    __tablename__ = "business_profiles"

    id = Column(String, primary_key=True, default=lambda: generate_id("prof"))
    business_id = Column(
        String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    company_name = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    annual_revenue = Column(Numeric(precision=15, scale=2), nullable=True)
    employee_count = Column(Integer, nullable=True)
    founded_date = Column(Date, nullable=True)
    website = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    business = relationship("Business", back_populates="profile")


class BusinessUser(Base):
    """Team membership: one role per user per business."""

    __tablename__ = "business_users"

    id = Column(String, primary_key=True, default=lambda: generate_id("member"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False, default=MemberRole.MEMBER.value)  # "owner" | "admin" | "member" | "viewer"
    status = Column(String, nullable=False, default=MemberStatus.ACTIVE.value)  # "active" | "invited" | "removed"
    position = Column(String, nullable=True)
    invited_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    invited_at = Column(DateTime(timezone=True), nullable=True)
    section_permissions = Column(JSONBCompat, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    business = relationship("Business", back_populates="members")
    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_users_business_user"),
    )


class BusinessFinancialGoals(Base):
    """Three-year financial targets set in the goals wizard."""

    __tablename__ = "business_financial_goals"

    id = Column(String, primary_key=True, default=lambda: generate_id("goals"))
    business_id = Column(
        String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    year_type = Column(String, nullable=False, default="FY")  # "FY" | "CY"

    revenue_year1 = Column(Numeric(precision=15, scale=2), nullable=True)
    revenue_year2 = Column(Numeric(precision=15, scale=2), nullable=True)
    revenue_year3 = Column(Numeric(precision=15, scale=2), nullable=True)
    gross_profit_year1 = Column(Numeric(precision=15, scale=2), nullable=True)
    gross_profit_year2 = Column(Numeric(precision=15, scale=2), nullable=True)
    gross_profit_year3 = Column(Numeric(precision=15, scale=2), nullable=True)
    net_profit_year1 = Column(Numeric(precision=15, scale=2), nullable=True)
    net_profit_year2 = Column(Numeric(precision=15, scale=2), nullable=True)
    net_profit_year3 = Column(Numeric(precision=15, scale=2), nullable=True)

    headcount_target = Column(Integer, nullable=True)
    key_objectives = Column(JSONBCompat, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
