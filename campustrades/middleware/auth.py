"""JWT verification for tokens issued by the campus identity provider."""
from fastapi import Request
from jose import jwt, JWTError
from typing import Optional
import logging
import os

from campustrades.errors import NotAuthenticated
from campustrades.viewer import ViewerContext

logger = logging.getLogger(__name__)

AUTH_JWT_SECRET = os.environ.get("AUTH_JWT_SECRET", "campustrades-dev-secret-change-me")
AUTH_JWT_ALGORITHM = os.environ.get("AUTH_JWT_ALGORITHM", "HS256")


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        raise NotAuthenticated("Missing or invalid Authorization header")
    return auth_header[7:]  # Remove "Bearer " prefix


def decode_viewer(token: str) -> ViewerContext:
    """
    Validate a JWT and build the viewer it identifies.

    Args:
        token: Encoded JWT with the user id in ``sub``

    Returns:
        ViewerContext for the token's subject

    Raises:
        NotAuthenticated: If the token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(token, AUTH_JWT_SECRET, algorithms=[AUTH_JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected token: {str(e)}")
        raise NotAuthenticated("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticated("Invalid token: missing user ID")
    return ViewerContext(user_id=user_id, email=payload.get("email"))


async def get_current_viewer(request: Request) -> ViewerContext:
    """Dependency for routes that need a signed-in viewer."""
    token = _bearer_token(request)
    if token is None:
        raise NotAuthenticated("Missing or invalid Authorization header")
    return decode_viewer(token)


async def get_optional_viewer(request: Request) -> ViewerContext:
    """
    Dependency for read routes that render a logged-out state.

    No Authorization header gives an anonymous viewer; a bad token is still
    rejected.
    """
    token = _bearer_token(request)
    if token is None:
        return ViewerContext()
    return decode_viewer(token)
