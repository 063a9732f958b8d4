"""
Conversation Model

A chat between a buyer and a seller anchored to exactly one listing: either
a product or an item request.

Unread and important state is kept per role in four independent columns so
the table stays compatible with the hosted backend's schema.
"""

from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
import uuid

from sqlmodel import SQLModel, Field, Relationship

from campustrades.utils.timefmt import utcnow
from campustrades.viewer import Flag, Role

if TYPE_CHECKING:
    from .message import Message


def flag_column(flag: Flag, role: Role) -> str:
    """Column holding ``flag`` for ``role``, e.g. ``is_unread_seller``."""
    return f"is_{Flag(flag).value}_{Role(role).value}"


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    buyer_id: str = Field(foreign_key="profiles.id", index=True)
    seller_id: str = Field(foreign_key="profiles.id", index=True)
    product_id: Optional[str] = Field(default=None, foreign_key="products.id", index=True)
    item_request_id: Optional[str] = Field(default=None, foreign_key="item_requests.id", index=True)
    last_message_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)

    is_unread_buyer: bool = Field(default=False)
    is_unread_seller: bool = Field(default=False)
    is_important_buyer: bool = Field(default=False)
    is_important_seller: bool = Field(default=False)

    messages: List["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "select"}
    )

    @property
    def is_well_formed(self) -> bool:
        return (self.product_id is None) != (self.item_request_id is None)

    def get_flag(self, flag: Flag, role: Role) -> bool:
        return bool(getattr(self, flag_column(flag, role)))

    def set_flag(self, flag: Flag, role: Role, value: bool) -> None:
        setattr(self, flag_column(flag, role), value)

    def counterpart_id(self, role: Role) -> str:
        return self.seller_id if role is Role.BUYER else self.buyer_id
