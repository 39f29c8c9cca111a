"""Session providers that turn request headers into an ``Identity``."""

from collections.abc import Mapping
from typing import Any, Protocol

import structlog

from mirath.core.auth.backend import decode_token
from mirath.core.auth.schemas import Identity
from mirath.core.permissions.roles import coerce_user_type


logger = structlog.get_logger()


class SessionProvider(Protocol):
    """Resolves the caller's identity from request headers."""

    async def get_identity(self, headers: Mapping[str, str]) -> Identity | None:
        """Return the caller, or None when the request is anonymous."""
        ...


class UserReader(Protocol):
    """Lookup used to load the user behind a token."""

    async def get_by_id(self, user_id: str) -> Any | None: ...


def bearer_token(headers: Mapping[str, str]) -> str | None:
    """Extract the bearer token from an ``Authorization`` header."""
    auth_header = headers.get("authorization") or headers.get("Authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class BearerTokenSessionProvider:
    """Identity from a bearer access token plus the current user record.

    The token only carries the user id; email, name and user type are read
    from storage on every request so promotions take effect immediately.
    Invalid, expired or non-access tokens and unknown users are anonymous.
    """

    def __init__(self, users: UserReader) -> None:
        self.users = users

    async def get_identity(self, headers: Mapping[str, str]) -> Identity | None:
        token = bearer_token(headers)
        if token is None:
            return None

        token_data = decode_token(token)
        if token_data is None or token_data.type != "access":
            logger.info("session_token_rejected")
            return None

        user = await self.users.get_by_id(token_data.user_id)
        if user is None:
            logger.info("session_user_not_found", user_id=token_data.user_id)
            return None

        return Identity(
            id=user.id,
            email=user.email,
            name=user.name,
            user_type=coerce_user_type(user.user_type),
        )
