"""Thread view model: one open conversation."""
import logging
import os
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from campustrades.errors import ValidationError
from campustrades.models.message import Message
from campustrades.services.thread import ThreadService
from campustrades.utils.timefmt import as_utc, format_relative_time
from campustrades.viewer import ViewerContext
from campustrades.viewmodels.base import Poller, ServiceScope, SessionFactory
from campustrades.viewmodels.inbox import InboxViewModel

logger = logging.getLogger(__name__)

THREAD_POLL_INTERVAL = float(os.environ.get("THREAD_POLL_INTERVAL", "5"))
# Writers stamp messages before they commit, so a reply can land with a
# timestamp older than the newest message already on screen.
THREAD_POLL_OVERLAP = timedelta(seconds=float(os.environ.get("THREAD_POLL_OVERLAP", "30")))


class ThreadViewModel:
    """
    Messages of one conversation, a draft, and a refresh poll for replies.

    Opening the thread clears the viewer's unread flag; when it was set the
    inbox (if given) is invalidated so the list and badge catch up.
    """

    def __init__(
        self,
        viewer: ViewerContext,
        conversation_id: str,
        session_factory: Optional[SessionFactory] = None,
        inbox: Optional[InboxViewModel] = None,
        poll_interval: float = THREAD_POLL_INTERVAL,
    ):
        self.viewer = viewer
        self.conversation_id = conversation_id
        self.scope = ServiceScope(viewer, session_factory)
        self.inbox = inbox
        self.messages: List[Message] = []
        self.draft = ""
        self.sending = False
        self._poller = Poller(self._fetch_newer, poll_interval, on_result=self._append, name="thread-refresh")

    @property
    def can_send(self) -> bool:
        return bool(self.draft.strip()) and not self.sending

    async def open(self) -> bool:
        """Mark read, load the history and start polling. Returns True if a flag was cleared."""
        cleared = await self._mark_read()
        self.messages = await self._load()
        self._poller.start()
        return cleared

    async def close(self) -> None:
        await self._poller.stop()

    async def send(self, text: Optional[str] = None) -> Message:
        """Send ``text`` or the current draft; the draft is kept if sending fails."""
        content = self.draft if text is None else text
        if not content.strip():
            raise ValidationError("Message cannot be empty", field="content")

        self.sending = True
        try:
            message = await self.scope.run(
                ThreadService,
                lambda service: service.send_message(self.conversation_id, content),
            )
        finally:
            self.sending = False

        self._append([message])
        self.draft = ""
        if self.inbox is not None:
            await self.inbox.invalidate()
        return message

    async def refresh(self) -> List[Message]:
        """Poll once; returns only messages not on screen before."""
        return await self._poller.refresh()

    def display_times(self, now: Optional[datetime] = None) -> List[Tuple[Message, str]]:
        return [(m, format_relative_time(m.created_at, now)) for m in self.messages]

    async def _load(self, after: Optional[datetime] = None) -> List[Message]:
        return await self.scope.run(
            ThreadService,
            lambda service: service.load_messages(self.conversation_id, after=after),
        )

    async def _mark_read(self) -> bool:
        cleared = await self.scope.run(ThreadService, lambda service: service.open(self.conversation_id))
        if cleared and self.inbox is not None:
            await self.inbox.invalidate()
        return cleared

    async def _fetch_newer(self) -> List[Message]:
        after = None
        if self.messages:
            after = as_utc(self.messages[-1].created_at) - THREAD_POLL_OVERLAP
        known = {m.id for m in self.messages}
        unseen = [m for m in await self._load(after) if m.id not in known]
        if any(m.sender_id != self.viewer.user_id for m in unseen):
            # a reply arrived while the thread is on screen
            await self._mark_read()
        return unseen

    def _append(self, new_messages: List[Message]) -> None:
        known = {m.id for m in self.messages}
        added = [m for m in new_messages if m.id not in known]
        if added:
            self.messages.extend(added)
            self.messages.sort(key=lambda m: as_utc(m.created_at))
            logger.debug(f"Thread {self.conversation_id}: {len(added)} new messages")
