"""In-memory stand-ins for storage and session resolution."""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta

from mirath.core.auth.schemas import Identity
from mirath.core.permissions.resolver import Membership
from mirath.core.permissions.roles import Permission, Role, UserType


BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


class InMemoryMembershipStore:
    """``MembershipStore`` backed by dicts, with call counting."""

    def __init__(self) -> None:
        self.user_types: dict[str, UserType] = {}
        self.memberships: dict[tuple[str, str], Membership] = {}
        self.calls: dict[str, int] = {
            "get_user_type": 0,
            "find_membership": 0,
            "find_memberships_for_user": 0,
        }
        self.fail_with: Exception | None = None

    def add_user(self, user_id: str, user_type: UserType = UserType.CLIENT) -> None:
        self.user_types[user_id] = user_type

    def add_membership(
        self,
        user_id: str,
        firm_id: str,
        role: Role,
        permissions: Sequence[str | Permission] = (),
        joined_days_ago: int = 0,
    ) -> Membership:
        membership = Membership(
            user_id=user_id,
            firm_id=firm_id,
            role=role,
            permissions=tuple(str(p) for p in permissions),
            joined_at=BASE_TIME - timedelta(days=joined_days_ago),
        )
        self.memberships[(user_id, firm_id)] = membership
        return membership

    def _record(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_with is not None:
            raise self.fail_with

    async def get_user_type(self, user_id: str) -> UserType | None:
        self._record("get_user_type")
        return self.user_types.get(user_id)

    async def find_membership(self, user_id: str, firm_id: str) -> Membership | None:
        self._record("find_membership")
        return self.memberships.get((user_id, firm_id))

    async def find_memberships_for_user(self, user_id: str) -> Sequence[Membership]:
        self._record("find_memberships_for_user")
        return [m for (uid, _), m in self.memberships.items() if uid == user_id]


class StaticSessionProvider:
    """Session provider that maps bearer tokens to fixed identities."""

    def __init__(self, identities: Mapping[str, Identity] | None = None) -> None:
        self.identities = dict(identities or {})
        self.fail_with: Exception | None = None

    def add(self, token: str, identity: Identity) -> None:
        self.identities[token] = identity

    async def get_identity(self, headers: Mapping[str, str]) -> Identity | None:
        if self.fail_with is not None:
            raise self.fail_with
        auth = headers.get("authorization") or headers.get("Authorization") or ""
        _, _, token = auth.partition(" ")
        return self.identities.get(token)


def make_identity(user_id: str, user_type: UserType = UserType.CLIENT) -> Identity:
    return Identity(
        id=user_id,
        email=f"{user_id}@example.com",
        name=user_id.replace("-", " ").title(),
        user_type=user_type,
    )
