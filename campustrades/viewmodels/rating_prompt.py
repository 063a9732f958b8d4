"""
Rating prompt view model.

hidden -> showing(i of N) -> showing(i+1) | hidden

Pending purchases load once per mount. Advancing past the last one, or
dismissing, hides the prompt until the next mount.
"""

from enum import Enum
from typing import List, Optional, Tuple

from campustrades.errors import ValidationError
from campustrades.models.rating import MAX_RATING, MIN_RATING
from campustrades.schemas.rating import PendingRating
from campustrades.services.ratings import RatingService, is_valid_rating
from campustrades.viewer import ViewerContext
from campustrades.viewmodels.base import ServiceScope, SessionFactory


class PromptState(str, Enum):
    HIDDEN = "hidden"
    SHOWING = "showing"


class RatingPromptViewModel:

    def __init__(self, viewer: ViewerContext, session_factory: Optional[SessionFactory] = None):
        self.scope = ServiceScope(viewer, session_factory)
        self.pending: List[PendingRating] = []
        self.index = 0
        self.selected = 0
        self.state = PromptState.HIDDEN
        self._loaded = False

    @property
    def current(self) -> Optional[PendingRating]:
        if self.state is not PromptState.SHOWING:
            return None
        return self.pending[self.index]

    @property
    def position(self) -> Optional[Tuple[int, int]]:
        """(i, N), 1-based, while showing."""
        if self.state is not PromptState.SHOWING:
            return None
        return self.index + 1, len(self.pending)

    @property
    def can_submit(self) -> bool:
        return self.state is PromptState.SHOWING and MIN_RATING <= self.selected <= MAX_RATING

    async def load(self) -> PromptState:
        if self._loaded:
            return self.state
        self._loaded = True
        self.pending = await self.scope.run(RatingService, lambda service: service.pending())
        self.index = 0
        self.selected = 0
        self.state = PromptState.SHOWING if self.pending else PromptState.HIDDEN
        return self.state

    def select(self, rating: int) -> None:
        if not is_valid_rating(rating):
            raise ValidationError(
                f"Rating must be from {MIN_RATING} to {MAX_RATING}",
                field="rating",
            )
        self.selected = rating

    async def submit(self) -> None:
        """Rate the current purchase and move on. Stays put if the write fails."""
        if not self.can_submit:
            raise ValidationError("Choose a rating first", field="rating")
        product_id, rating = self.current.product_id, self.selected
        await self.scope.run(RatingService, lambda service: service.submit(product_id, rating))
        self._advance()

    def skip(self) -> None:
        if self.state is PromptState.SHOWING:
            self._advance()

    def dismiss(self) -> None:
        self.state = PromptState.HIDDEN
        self.selected = 0

    def _advance(self) -> None:
        self.selected = 0
        if self.index < len(self.pending) - 1:
            self.index += 1
        else:
            self.state = PromptState.HIDDEN
