"""
Conversation Flags Service

Per-role unread/important flags and conversation deletion. A viewer only
ever writes the column of the role they hold in the conversation.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy import not_, update

from campustrades.errors import NotAParticipant
from campustrades.models.conversation import Conversation, flag_column
from campustrades.services.base import ViewerService
from campustrades.utils.logger import event_logger
from campustrades.utils.metrics import metrics_collector
from campustrades.viewer import Flag, Role

logger = logging.getLogger(__name__)


@dataclass
class FlagResult:
    """Outcome of a flag write"""
    conversation_id: str
    flag: Flag
    role: Role
    value: bool


class ConversationFlagService(ViewerService):
    """Mutations of a conversation's per-role state"""

    def set_unread(self, conversation_id: str, value: bool, role: Optional[Role] = None) -> FlagResult:
        return self.set_flag(conversation_id, Flag.UNREAD, value, role)

    def set_important(self, conversation_id: str, value: bool, role: Optional[Role] = None) -> FlagResult:
        return self.set_flag(conversation_id, Flag.IMPORTANT, value, role)

    def toggle_unread(self, conversation_id: str) -> FlagResult:
        return self.toggle_flag(conversation_id, Flag.UNREAD)

    def toggle_important(self, conversation_id: str) -> FlagResult:
        return self.toggle_flag(conversation_id, Flag.IMPORTANT)

    def set_flag(
        self,
        conversation_id: str,
        flag: Flag,
        value: bool,
        role: Optional[Role] = None
    ) -> FlagResult:
        """
        Set the viewer's own flag on a conversation.

        Setting a flag to its current value succeeds without error.

        Args:
            conversation_id: Conversation to update
            flag: unread or important
            value: New value
            role: Role the caller claims; must be the role the viewer holds

        Raises:
            NotAParticipant: ``role`` is not the viewer's role here
        """
        flag = Flag(flag)
        viewer_role = self._resolve_role(conversation_id, role)
        column = flag_column(flag, viewer_role)

        with self.backend(f"update {flag.value} flag"):
            self.session.exec(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values({column: bool(value)})
            )
            self.session.commit()

        return self._record(conversation_id, flag, viewer_role, bool(value))

    def toggle_flag(self, conversation_id: str, flag: Flag) -> FlagResult:
        """
        Flip the viewer's own flag in a single UPDATE and return the new value.

        The database computes the new value, so concurrent toggles from other
        tabs or a poll in flight cannot resurrect a stale value.
        """
        flag = Flag(flag)
        viewer_role = self._resolve_role(conversation_id, None)
        column = flag_column(flag, viewer_role)
        target = getattr(Conversation, column)

        with self.backend(f"toggle {flag.value} flag"):
            new_value = self.session.exec(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values({column: not_(target)})
                .returning(target)
            ).scalar_one()
            self.session.commit()

        return self._record(conversation_id, flag, viewer_role, bool(new_value))

    def delete(self, conversation_id: str) -> None:
        """Permanently delete a conversation and all of its messages."""
        conversation, role = self.participant_conversation(conversation_id)

        with self.backend("delete conversation"):
            message_count = len(conversation.messages)
            # messages go with it through the delete-orphan cascade
            self.session.delete(conversation)
            self.session.commit()

        metrics_collector.increment_counter("conversations_deleted_total")
        event_logger.info(
            "conversation.deleted",
            conversation_id=conversation_id,
            deleted_by=self.viewer.user_id,
            role=role.value,
            messages=message_count,
        )

    def _resolve_role(self, conversation_id: str, claimed: Optional[Role]) -> Role:
        _, viewer_role = self.participant_conversation(conversation_id)
        if claimed is not None and Role(claimed) is not viewer_role:
            raise NotAParticipant(
                f"You are not the {Role(claimed).value} in this conversation",
                {"conversation_id": conversation_id, "role": Role(claimed).value},
            )
        return viewer_role

    def _record(self, conversation_id: str, flag: Flag, role: Role, value: bool) -> FlagResult:
        metrics_collector.increment_counter("flags_updated_total")
        event_logger.info(
            "flag.updated",
            conversation_id=conversation_id,
            user_id=self.viewer.user_id,
            flag=flag.value,
            role=role.value,
            value=value,
        )
        return FlagResult(conversation_id=conversation_id, flag=flag, role=role, value=value)
