"""Profile model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import uuid

from campustrades.utils.timefmt import utcnow


class Profile(SQLModel, table=True):
    """Public profile of a campus user; owned by the identity provider, read-only here."""
    __tablename__ = "profiles"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        index=True
    )
    full_name: str = Field(max_length=255)
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    unique_code: Optional[str] = Field(default=None, max_length=20, index=True)
    created_at: datetime = Field(default_factory=utcnow)
