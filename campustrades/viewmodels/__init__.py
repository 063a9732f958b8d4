"""Stateful, asyncio counterparts of the inbox, thread and rating prompt screens."""

from .inbox import InboxViewModel, UnreadCounter
from .rating_prompt import PromptState, RatingPromptViewModel
from .thread import ThreadViewModel

__all__ = [
    "InboxViewModel",
    "UnreadCounter",
    "ThreadViewModel",
    "RatingPromptViewModel",
    "PromptState",
]
