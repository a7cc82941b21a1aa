"""User model."""
from enum import Enum

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class SystemRole(str, Enum):
    """Platform-wide role of a user."""
    CLIENT = "client"
    COACH = "coach"
    SUPER_ADMIN = "super_admin"


class User(Base):
    """User model - a coach, a client business member or an administrator."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: generate_id("user"))
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=True)  # Null until an invite is accepted
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    system_role = Column(String, nullable=False, default=SystemRole.CLIENT.value)  # "client" | "coach" | "super_admin"
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Invite fields
    invite_token = Column(String, nullable=True, index=True)
    invite_expires = Column(DateTime(timezone=True), nullable=True)

    # Password reset fields
    password_reset_token = Column(String, nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    owned_businesses = relationship(
        "Business", back_populates="owner", foreign_keys="Business.owner_id"
    )
    memberships = relationship(
        "BusinessUser", back_populates="user", foreign_keys="BusinessUser.user_id",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.email.split("@")[0]

    @property
    def is_coach(self) -> bool:
        return self.system_role == SystemRole.COACH.value

    @property
    def is_admin(self) -> bool:
        return self.system_role == SystemRole.SUPER_ADMIN.value
