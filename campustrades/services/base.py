"""
Base service for viewer-scoped data access.

Provides the pieces every messaging service shares:
- The explicit viewer context
- Participant lookup for a conversation
- Translation of SQLAlchemy failures into BackendError
"""

from contextlib import contextmanager
from typing import Iterator, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from campustrades.errors import BackendError, ConversationNotFound
from campustrades.models.conversation import Conversation
from campustrades.utils.metrics import metrics_collector
from campustrades.viewer import Role, ViewerContext

logger = logging.getLogger(__name__)


class ViewerService:
    """Base class for services that run on behalf of one viewer."""

    def __init__(self, session: Session, viewer: ViewerContext):
        self.session = session
        self.viewer = viewer

    @contextmanager
    def backend(self, operation: str) -> Iterator[None]:
        """
        Run data-layer work, rolling back and raising BackendError on failure.

        Args:
            operation: Human readable action, used in the error message
        """
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            metrics_collector.increment_counter("backend_errors_total")
            logger.error(f"Failed to {operation}: {str(e)}", exc_info=True)
            raise BackendError(f"Failed to {operation}", {"operation": operation}) from e

    def participant_conversation(self, conversation_id: str) -> Tuple[Conversation, Role]:
        """
        Load a conversation the viewer takes part in, with the viewer's role.

        Raises:
            NotAuthenticated: No viewer
            ConversationNotFound: Missing, or the viewer is not buyer or seller
        """
        viewer_id = self.viewer.require()
        with self.backend("load conversation"):
            conversation = self.session.get(Conversation, conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)

        role = self.viewer.role_in(conversation.buyer_id, conversation.seller_id)
        if role is None:
            logger.warning(
                f"User {viewer_id} attempted to access conversation {conversation_id} "
                f"without being a participant"
            )
            # Same error as a missing row so existence is not revealed
            raise ConversationNotFound(conversation_id)
        return conversation, role
