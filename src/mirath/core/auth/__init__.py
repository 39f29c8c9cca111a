"""Authentication module: access tokens and session identity."""

from mirath.core.auth.backend import create_access_token, decode_token
from mirath.core.auth.schemas import Identity, TokenData
from mirath.core.auth.session import (
    BearerTokenSessionProvider,
    SessionProvider,
    bearer_token,
)


__all__ = [
    "BearerTokenSessionProvider",
    "Identity",
    "SessionProvider",
    "TokenData",
    "bearer_token",
    "create_access_token",
    "decode_token",
]
