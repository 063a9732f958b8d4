"""
Conversations API Router

Inbox listing, unread badge, per-role flags, and the message thread.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from campustrades.db.config import get_session
from campustrades.errors import ValidationError
from campustrades.middleware.auth import get_current_viewer, get_optional_viewer
from campustrades.schemas.conversation import (
    ConversationListResponse,
    ConversationSummary,
    FlagResponse,
    FlagUpdateRequest,
    OpenConversationResponse,
    StartConversationRequest,
    StartConversationResponse,
    UnreadCountResponse,
)
from campustrades.schemas.message import MessageListResponse, MessageResponse, SendMessageRequest
from campustrades.services.directory import FILTER_ALL, ConversationDirectoryService
from campustrades.services.flags import ConversationFlagService, FlagResult
from campustrades.services.thread import ThreadService
from campustrades.utils.timefmt import format_relative_time, utcnow
from campustrades.viewer import Flag, ViewerContext

import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])  # main.py adds /api


def get_directory_service(
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_optional_viewer),
) -> ConversationDirectoryService:
    return ConversationDirectoryService(session, viewer)


def get_flag_service(
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
) -> ConversationFlagService:
    return ConversationFlagService(session, viewer)


def get_thread_service(
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
) -> ThreadService:
    return ThreadService(session, viewer)


def _flag_response(result: FlagResult) -> FlagResponse:
    return FlagResponse(
        conversation_id=result.conversation_id,
        flag=result.flag,
        role=result.role,
        value=result.value,
    )


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    filter_type: str = Query(FILTER_ALL, alias="filter", description="all, unread or important"),
    service: ConversationDirectoryService = Depends(get_directory_service),
):
    """List the viewer's conversations; anonymous callers get an empty list."""
    conversations = service.list_conversations(filter_type)
    return ConversationListResponse(conversations=conversations, count=len(conversations))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(service: ConversationDirectoryService = Depends(get_directory_service)):
    """Badge count, polled by the client every few seconds."""
    return UnreadCountResponse(count=service.unread_count())


@router.post("", response_model=StartConversationResponse)
async def start_conversation(
    request: StartConversationRequest,
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
):
    """Contact a seller about a product or a requester about an item request."""
    if (request.product_id is None) == (request.item_request_id is None):
        raise ValidationError("Provide exactly one of product_id or item_request_id", field="product_id")

    service = ConversationDirectoryService(session, viewer)
    if request.product_id is not None:
        conversation, created = service.start_for_product(request.product_id)
    else:
        conversation, created = service.start_for_item_request(request.item_request_id)
    return StartConversationResponse(conversation_id=conversation.id, created=created)


@router.get("/{conversation_id}", response_model=ConversationSummary)
async def get_conversation(
    conversation_id: str,
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
):
    return ConversationDirectoryService(session, viewer).get_conversation(conversation_id)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: str,
    service: ConversationFlagService = Depends(get_flag_service),
):
    """Delete a conversation and its messages. The client confirms first."""
    service.delete(conversation_id)


@router.put("/{conversation_id}/flags/{flag}", response_model=FlagResponse)
async def set_flag(
    conversation_id: str,
    flag: Flag,
    request: FlagUpdateRequest,
    service: ConversationFlagService = Depends(get_flag_service),
):
    return _flag_response(service.set_flag(conversation_id, flag, request.value, request.role))


@router.post("/{conversation_id}/flags/{flag}/toggle", response_model=FlagResponse)
async def toggle_flag(
    conversation_id: str,
    flag: Flag,
    service: ConversationFlagService = Depends(get_flag_service),
):
    return _flag_response(service.toggle_flag(conversation_id, flag))


@router.post("/{conversation_id}/open", response_model=OpenConversationResponse)
async def open_conversation(
    conversation_id: str,
    service: ThreadService = Depends(get_thread_service),
):
    """Mark the thread read for the viewer when it is opened."""
    return OpenConversationResponse(
        conversation_id=conversation_id,
        marked_read=service.open(conversation_id),
    )


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: str,
    after: Optional[datetime] = Query(None, description="Only messages newer than this timestamp"),
    service: ThreadService = Depends(get_thread_service),
):
    messages = service.load_messages(conversation_id, after=after)
    now = utcnow()
    return MessageListResponse(messages=[
        MessageResponse(
            id=m.id,
            conversation_id=m.conversation_id,
            sender_id=m.sender_id,
            content=m.content,
            created_at=m.created_at,
            is_own=m.sender_id == service.viewer.user_id,
            display_time=format_relative_time(m.created_at, now),
        )
        for m in messages
    ])


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    request: SendMessageRequest,
    service: ThreadService = Depends(get_thread_service),
):
    message = service.send_message(conversation_id, request.content)
    logger.info(f"Message {message.id} sent in conversation {conversation_id}")
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.sender_id,
        content=message.content,
        created_at=message.created_at,
        is_own=True,
        display_time=format_relative_time(message.created_at),
    )
