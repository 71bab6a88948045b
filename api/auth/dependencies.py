"""FastAPI dependencies for authentication.

Provides:
- get_current_user: Extract and validate the caller from a Bearer JWT
- user_id_from_token: The same check for WebSocket query tokens
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.auth.jwt import VALID_ACCESS_TOKEN_TYPES, verify_token
from newsletter.logging import bind_context

# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)


class CurrentUser:
    """Authenticated caller. Every query is scoped to user_id."""

    def __init__(self, user_id: UUID, claims: Optional[dict] = None):
        self.user_id = user_id
        self.claims = claims or {}

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_id_from_token(token: Optional[str]) -> Optional[UUID]:
    """Return the owner id of a valid access token, or None."""
    if not token:
        return None
    payload = verify_token(token)
    if not payload or payload.get("type", "access") not in VALID_ACCESS_TOKEN_TYPES:
        return None
    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Extract and validate the current user from the JWT.

    Raises:
        HTTPException 401: Missing, invalid or expired token

    Returns:
        CurrentUser: Authenticated user context
    """
    if not credentials:
        raise _unauthorized("Missing authentication credentials")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    # Only access tokens are allowed for API routes
    if payload.get("type", "access") not in VALID_ACCESS_TOKEN_TYPES:
        raise _unauthorized("Invalid token type for this endpoint")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    bind_context(user_id=str(user_id))
    request.state.user_id = user_id
    return CurrentUser(user_id=user_id, claims=payload)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
