"""
Message Model

One chat message within a conversation. Messages are immutable once created
and displayed in ascending ``created_at`` order.
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from sqlmodel import SQLModel, Field, Relationship, Column
from sqlalchemy import Text

from campustrades.utils.timefmt import utcnow

if TYPE_CHECKING:
    from .conversation import Conversation


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    conversation_id: str = Field(foreign_key="conversations.id", index=True)
    sender_id: str = Field(foreign_key="profiles.id", index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)

    conversation: "Conversation" = Relationship(
        back_populates="messages",
        sa_relationship_kwargs={"lazy": "select"}
    )
