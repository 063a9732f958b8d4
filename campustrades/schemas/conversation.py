"""Conversation schemas for the messaging API."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from campustrades.viewer import Flag, Role


class ProfileSummary(BaseModel):
    """Counterpart's public profile."""
    id: str
    full_name: str
    avatar_url: Optional[str] = None


class ListingSummary(BaseModel):
    """The product or item request a conversation is about."""
    kind: str  # product, item_request
    id: str
    title: str
    price: Optional[float] = None
    image_url: Optional[str] = None


class LastMessage(BaseModel):
    content: str
    created_at: datetime


class ConversationSummary(BaseModel):
    """One decorated directory entry, as seen by the viewer."""
    id: str
    buyer_id: str
    seller_id: str
    product_id: Optional[str] = None
    item_request_id: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime
    unread_for_buyer: bool = False
    unread_for_seller: bool = False
    important_for_buyer: bool = False
    important_for_seller: bool = False

    # Viewer-relative view of the flags above
    role: Role
    is_unread: bool = False
    is_important: bool = False

    counterpart: Optional[ProfileSummary] = None
    listing: Optional[ListingSummary] = None
    last_message: Optional[LastMessage] = None


class ConversationListResponse(BaseModel):
    conversations: List[ConversationSummary]
    count: int


class UnreadCountResponse(BaseModel):
    count: int


class StartConversationRequest(BaseModel):
    """Contact a seller about a product, or a requester about an item request."""
    product_id: Optional[str] = None
    item_request_id: Optional[str] = None


class StartConversationResponse(BaseModel):
    conversation_id: str
    created: bool


class FlagUpdateRequest(BaseModel):
    value: bool
    role: Optional[Role] = Field(None, description="Caller's role; must match the role the caller holds")


class FlagResponse(BaseModel):
    conversation_id: str
    flag: Flag
    role: Role
    value: bool


class OpenConversationResponse(BaseModel):
    conversation_id: str
    marked_read: bool
