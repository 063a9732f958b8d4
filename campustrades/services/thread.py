"""
Thread Service

Messages of one conversation: load in order, send, and mark the
conversation read for the viewer when the thread is opened.
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import update
from sqlmodel import select

from campustrades.errors import ValidationError
from campustrades.models.conversation import Conversation, flag_column
from campustrades.models.message import Message
from campustrades.services.base import ViewerService
from campustrades.utils.logger import event_logger
from campustrades.utils.metrics import metrics_collector
from campustrades.utils.timefmt import as_utc, utcnow
from campustrades.viewer import Flag

logger = logging.getLogger(__name__)


class ThreadService(ViewerService):
    """Service for reading and writing a conversation's messages"""

    def load_messages(self, conversation_id: str, after: Optional[datetime] = None) -> List[Message]:
        """
        Get messages for a conversation, oldest first.

        Args:
            conversation_id: Conversation the viewer takes part in
            after: Only return messages created strictly after this time

        Returns:
            All matching messages (no pagination)
        """
        self.participant_conversation(conversation_id)

        statement = select(Message).where(Message.conversation_id == conversation_id)
        if after is not None:
            statement = statement.where(Message.created_at > as_utc(after))
        statement = statement.order_by(Message.created_at.asc())

        with self.backend("load messages"):
            return list(self.session.exec(statement).all())

    @metrics_collector.time_operation("send_message_seconds")
    def send_message(self, conversation_id: str, content: str) -> Message:
        """
        Send a message as the viewer.

        Stores the trimmed text, bumps ``last_message_at`` (never backwards)
        and sets the recipient's unread flag. The sender's flags are left
        alone.

        Raises:
            ValidationError: Content is empty after trimming
        """
        viewer_id = self.viewer.require()
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty", field="content")

        conversation, role = self.participant_conversation(conversation_id)
        recipient_role = role.counterpart
        now = utcnow()

        with self.backend("send message"):
            message = Message(
                conversation_id=conversation.id,
                sender_id=viewer_id,
                content=text,
                created_at=now,
            )
            self.session.add(message)

            previous = as_utc(conversation.last_message_at)
            if previous is None or now > previous:
                conversation.last_message_at = now
            conversation.set_flag(Flag.UNREAD, recipient_role, True)
            self.session.add(conversation)

            self.session.commit()
            self.session.refresh(message)

        metrics_collector.increment_counter("messages_sent_total")
        event_logger.info(
            "message.sent",
            conversation_id=conversation_id,
            message_id=message.id,
            sender_id=viewer_id,
            recipient_role=recipient_role.value,
        )
        return message

    def open(self, conversation_id: str) -> bool:
        """
        Mark the conversation read for the viewer's role, if it is unread.

        Returns:
            True when a flag was cleared, so callers refresh unread badges
        """
        conversation, role = self.participant_conversation(conversation_id)
        if not conversation.get_flag(Flag.UNREAD, role):
            return False

        column = flag_column(Flag.UNREAD, role)
        with self.backend("mark conversation read"):
            self.session.exec(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values({column: False})
            )
            self.session.commit()

        event_logger.info(
            "conversation.read",
            conversation_id=conversation_id,
            user_id=self.viewer.user_id,
            role=role.value,
        )
        return True
