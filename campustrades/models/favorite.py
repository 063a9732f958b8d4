"""Favorite model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import datetime
import uuid

from campustrades.utils.timefmt import utcnow


class Favorite(SQLModel, table=True):
    """A product saved by a user."""
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_favorites_user_product"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)
    product_id: str = Field(foreign_key="products.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
