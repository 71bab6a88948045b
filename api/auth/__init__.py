"""Authentication module for the API."""

from api.auth.jwt import create_access_token, verify_token
from api.auth.dependencies import (
    CurrentUser,
    CurrentUserDep,
    get_current_user,
    user_id_from_token,
)

__all__ = [
    # JWT
    "create_access_token",
    "verify_token",
    # Dependencies
    "CurrentUser",
    "CurrentUserDep",
    "get_current_user",
    "user_id_from_token",
]
