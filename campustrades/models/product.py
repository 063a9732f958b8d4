"""Listing models (products and item requests) for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import List, Optional
import uuid

from campustrades.utils.timefmt import utcnow

PRODUCT_STATUS_AVAILABLE = "available"
PRODUCT_STATUS_SOLD = "sold"


class Product(SQLModel, table=True):
    """A listing for sale. Read-only from the messaging core."""
    __tablename__ = "products"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    seller_id: str = Field(foreign_key="profiles.id", index=True)
    buyer_id: Optional[str] = Field(default=None, foreign_key="profiles.id", index=True)
    title: str = Field(max_length=200)
    price: float = Field(default=0)
    image_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    status: str = Field(default=PRODUCT_STATUS_AVAILABLE, max_length=20, index=True)  # available, sold
    created_at: datetime = Field(default_factory=utcnow)


class ItemRequest(SQLModel, table=True):
    """A "looking for" post; sellers contact the requester to fulfil it."""
    __tablename__ = "item_requests"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    requester_id: str = Field(foreign_key="profiles.id", index=True)
    title: str = Field(max_length=200)
    status: str = Field(default="open", max_length=20)  # open, fulfilled
    created_at: datetime = Field(default_factory=utcnow)
