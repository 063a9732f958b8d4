"""
Error taxonomy for the messaging core.

Services raise these; the HTTP layer maps them to responses in
campustrades.middleware.errors. No operation is retried automatically.
"""

from typing import Any, Dict, Optional


class CampusTradesError(Exception):
    """Base exception for messaging core errors"""

    code = "ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CampusTradesError):
    """Bad input from the caller (empty message, rating out of range...)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.field = field
        super().__init__(message, details)


class NotAuthenticated(CampusTradesError):
    """An operation needed a viewer and there was none."""

    code = "NOT_AUTHENTICATED"

    def __init__(self, message: str = "Sign in required"):
        super().__init__(message)


class NotAParticipant(CampusTradesError):
    """Viewer is neither buyer nor seller of the conversation, or claimed the wrong role."""

    code = "FORBIDDEN"


class NotFound(CampusTradesError):
    code = "NOT_FOUND"


class ConversationNotFound(NotFound):
    def __init__(self, conversation_id: str):
        super().__init__("Conversation not found", {"conversation_id": conversation_id})


class ProductNotFound(NotFound):
    def __init__(self, product_id: str):
        super().__init__("Product not found", {"product_id": product_id})


class ItemRequestNotFound(NotFound):
    def __init__(self, item_request_id: str):
        super().__init__("Item request not found", {"item_request_id": item_request_id})


class BackendError(CampusTradesError):
    """The data layer failed (constraint violation, lost connection...)."""

    code = "BACKEND_ERROR"
