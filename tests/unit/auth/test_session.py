"""Unit tests for bearer token session resolution."""

from dataclasses import dataclass

import pytest

from mirath.core.auth.backend import create_access_token
from mirath.core.auth.session import BearerTokenSessionProvider, bearer_token
from mirath.core.permissions.roles import UserType


pytestmark = pytest.mark.unit


@dataclass
class StoredUser:
    id: str
    email: str
    name: str
    user_type: str


class FakeUsers:
    def __init__(self, *users: StoredUser) -> None:
        self.users = {user.id: user for user in users}

    async def get_by_id(self, user_id: str) -> StoredUser | None:
        return self.users.get(user_id)


@pytest.fixture
def provider() -> BearerTokenSessionProvider:
    return BearerTokenSessionProvider(
        FakeUsers(
            StoredUser("u-1", "amira@example.ae", "Amira", "lawyer"),
            StoredUser("u-2", "omar@example.ae", "Omar", "something-else"),
        )
    )


class TestBearerToken:
    """Tests for Authorization header parsing."""

    @pytest.mark.parametrize(
        ("headers", "expected"),
        [
            ({"authorization": "Bearer abc"}, "abc"),
            ({"Authorization": "bearer  abc "}, "abc"),
            ({"authorization": "Basic abc"}, None),
            ({"authorization": "Bearer "}, None),
            ({}, None),
        ],
    )
    def test_bearer_token(self, headers: dict[str, str], expected: str | None) -> None:
        assert bearer_token(headers) == expected


class TestBearerTokenSessionProvider:
    """Tests for BearerTokenSessionProvider."""

    async def test_valid_token(self, provider: BearerTokenSessionProvider) -> None:
        headers = {"authorization": f"Bearer {create_access_token('u-1')}"}

        identity = await provider.get_identity(headers)

        assert identity is not None
        assert identity.id == "u-1"
        assert identity.email == "amira@example.ae"
        assert identity.user_type is UserType.LAWYER

    async def test_unknown_user_type_is_client(self, provider: BearerTokenSessionProvider) -> None:
        headers = {"authorization": f"Bearer {create_access_token('u-2')}"}

        identity = await provider.get_identity(headers)

        assert identity is not None
        assert identity.user_type is UserType.CLIENT

    async def test_no_header_is_anonymous(self, provider: BearerTokenSessionProvider) -> None:
        assert await provider.get_identity({}) is None

    async def test_invalid_token_is_anonymous(self, provider: BearerTokenSessionProvider) -> None:
        assert await provider.get_identity({"authorization": "Bearer nope"}) is None

    async def test_non_access_token_is_anonymous(
        self, provider: BearerTokenSessionProvider
    ) -> None:
        token = create_access_token("u-1", additional_claims={"type": "refresh"})

        assert await provider.get_identity({"authorization": f"Bearer {token}"}) is None

    async def test_unknown_user_is_anonymous(self, provider: BearerTokenSessionProvider) -> None:
        headers = {"authorization": f"Bearer {create_access_token('u-404')}"}

        assert await provider.get_identity(headers) is None
