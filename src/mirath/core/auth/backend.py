"""JWT token creation and verification."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from mirath.config import settings
from mirath.core.auth.schemas import TokenData
from mirath.core.constants import ACCESS_TOKEN_JTI_LENGTH


def create_access_token(
    user_id: str,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a short-lived JWT access token.

    Args:
        user_id: The user's id
        expires_delta: Optional custom expiration time
        additional_claims: Optional extra claims to include

    Returns:
        Encoded JWT string
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode: dict[str, Any] = {
        "sub": user_id,
        "exp": expire,
        "type": "access",
        "jti": secrets.token_hex(ACCESS_TOKEN_JTI_LENGTH // 2),
    }
    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a JWT token.

    Args:
        token: The JWT string to decode

    Returns:
        TokenData if valid, None if the token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    exp = payload.get("exp")
    if not user_id or exp is None:
        return None

    return TokenData(
        user_id=str(user_id),
        exp=datetime.fromtimestamp(exp, tz=UTC),
        type=payload.get("type", "access"),
    )
