"""
Inbox view model: the conversation directory screen plus the unread badge.
"""

import logging
import os
from typing import List, Optional

from campustrades.errors import BackendError, ConversationNotFound
from campustrades.schemas.conversation import ConversationSummary
from campustrades.services.directory import FILTER_ALL, ConversationDirectoryService
from campustrades.services.flags import ConversationFlagService
from campustrades.viewer import Flag, ViewerContext
from campustrades.viewmodels.base import Poller, ServiceScope, SessionFactory

logger = logging.getLogger(__name__)

UNREAD_POLL_INTERVAL = float(os.environ.get("UNREAD_POLL_INTERVAL", "5"))


class UnreadCounter:
    """Badge count recomputed on a fixed interval while started."""

    def __init__(self, scope: ServiceScope, interval: float = UNREAD_POLL_INTERVAL):
        self._scope = scope
        self.count = 0
        self._poller = Poller(self._fetch, interval, on_result=self._store, name="unread-counter")

    def _fetch(self) -> int:
        with self._scope(ConversationDirectoryService) as service:
            return service.unread_count()

    def _store(self, count: int) -> None:
        self.count = count

    @property
    def running(self) -> bool:
        return self._poller.running

    async def refresh(self) -> int:
        return await self._poller.refresh()

    def start(self) -> None:
        self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()


class InboxViewModel:
    """
    Directory of the viewer's conversations with a filter and flag actions.

    Flag toggles are applied to the loaded entry first and reverted if the
    write fails; the BackendError is re-raised for the caller to notify.
    """

    def __init__(
        self,
        viewer: ViewerContext,
        session_factory: Optional[SessionFactory] = None,
        poll_interval: float = UNREAD_POLL_INTERVAL,
    ):
        self.scope = ServiceScope(viewer, session_factory)
        self.filter = FILTER_ALL
        self.conversations: List[ConversationSummary] = []
        self.unread = UnreadCounter(self.scope, poll_interval)

    async def mount(self) -> None:
        await self.load()
        await self.unread.refresh()
        self.unread.start()

    async def unmount(self) -> None:
        await self.unread.stop()

    async def load(self, filter_type: Optional[str] = None) -> List[ConversationSummary]:
        if filter_type is not None:
            self.filter = filter_type
        filter_type = self.filter
        self.conversations = await self.scope.run(
            ConversationDirectoryService,
            lambda service: service.list_conversations(filter_type),
        )
        return self.conversations

    async def invalidate(self) -> None:
        """Reload the list and the badge after something changed elsewhere."""
        await self.load()
        await self.unread.refresh()

    def find(self, conversation_id: str) -> ConversationSummary:
        for entry in self.conversations:
            if entry.id == conversation_id:
                return entry
        raise ConversationNotFound(conversation_id)

    async def toggle_important(self, conversation_id: str) -> bool:
        return await self._toggle(conversation_id, Flag.IMPORTANT)

    async def toggle_unread(self, conversation_id: str) -> bool:
        value = await self._toggle(conversation_id, Flag.UNREAD)
        await self.unread.refresh()
        return value

    async def delete(self, conversation_id: str) -> None:
        await self.scope.run(ConversationFlagService, lambda service: service.delete(conversation_id))
        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        await self.unread.refresh()

    async def _toggle(self, conversation_id: str, flag: Flag) -> bool:
        entry = self.find(conversation_id)
        previous = _viewer_flag(entry, flag)
        _apply_flag(entry, flag, not previous)
        try:
            result = await self.scope.run(
                ConversationFlagService,
                lambda service: service.toggle_flag(conversation_id, flag),
            )
        except BackendError:
            logger.warning(f"Reverting {flag.value} flag on conversation {conversation_id}")
            _apply_flag(entry, flag, previous)
            raise
        # the database value wins if another tab toggled in between
        _apply_flag(entry, flag, result.value)
        return result.value


def _viewer_flag(entry: ConversationSummary, flag: Flag) -> bool:
    return entry.is_unread if flag is Flag.UNREAD else entry.is_important


def _apply_flag(entry: ConversationSummary, flag: Flag, value: bool) -> None:
    if flag is Flag.UNREAD:
        entry.is_unread = value
    else:
        entry.is_important = value
    setattr(entry, f"{flag.value}_for_{entry.role.value}", value)
