"""Viewer identity and conversation roles."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from campustrades.errors import NotAuthenticated


class Role(str, Enum):
    """Side of a conversation the viewer sits on."""
    BUYER = "buyer"
    SELLER = "seller"

    @property
    def counterpart(self) -> "Role":
        return Role.SELLER if self is Role.BUYER else Role.BUYER


class Flag(str, Enum):
    """Per-role boolean attached to a conversation."""
    UNREAD = "unread"
    IMPORTANT = "important"


class ViewerContext(BaseModel):
    """
    The authenticated user an operation runs as.

    Passed explicitly into every service and view model. ``user_id`` is None
    for anonymous callers; reads degrade to empty results, mutations call
    ``require()``.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def require(self) -> str:
        if not self.user_id:
            raise NotAuthenticated()
        return self.user_id

    def role_in(self, buyer_id: str, seller_id: str) -> Optional[Role]:
        """Resolve the viewer's role; buyer wins if the viewer is somehow both."""
        if not self.user_id:
            return None
        if self.user_id == buyer_id:
            return Role.BUYER
        if self.user_id == seller_id:
            return Role.SELLER
        return None
