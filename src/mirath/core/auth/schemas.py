"""Authentication schemas for identities and token handling."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from mirath.core.permissions.roles import UserType


class Identity(BaseModel):
    """The authenticated caller.

    Attributes:
        id: The user's id
        email: The user's email address
        name: The user's display name
        user_type: The user's global account type
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    user_type: UserType = UserType.CLIENT


class TokenData(BaseModel):
    """Data extracted from a JWT token.

    Attributes:
        user_id: The user's id (``sub`` claim)
        exp: Token expiration time
        type: Token type
    """

    user_id: str
    exp: datetime
    type: str = "access"
