"""Shared base utilities for data models."""
import secrets

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, TypeDecorator


def generate_id(prefix: str) -> str:
    """Generate a unique ID with a prefix."""
    return f"{prefix}_{secrets.token_hex(6)}"


class JSONBCompat(TypeDecorator):
    """
    JSON column type.

    Uses PostgreSQL JSONB when available and falls back to generic JSON on
    other databases (SQLite in tests).
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())
