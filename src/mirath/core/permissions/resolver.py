"""Firm membership lookup.

This module defines the read interface the permission layer needs from the
membership store, the ``Membership`` record it works with, and the resolver
that turns a (user, firm) pair into at most one membership.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from mirath.core.permissions.roles import Role, UserType


@dataclass(frozen=True, slots=True)
class Membership:
    """A user's role in one law firm.

    Attributes:
        user_id: The member's user id
        firm_id: The law firm (tenant) id
        role: The member's firm role
        permissions: Extra permission tags granted on top of the role,
            exactly as stored
        joined_at: When the user joined the firm
    """

    user_id: str
    firm_id: str
    role: Role
    permissions: tuple[str, ...]
    joined_at: datetime


class MembershipStore(Protocol):
    """Read-only queries the permission layer runs against storage."""

    async def get_user_type(self, user_id: str) -> UserType | None:
        """Return the user's global type, or None for an unknown user."""
        ...

    async def find_membership(self, user_id: str, firm_id: str) -> Membership | None:
        """Return the membership for the pair, or None."""
        ...

    async def find_memberships_for_user(self, user_id: str) -> Sequence[Membership]:
        """Return every membership the user holds, in any order."""
        ...


class MembershipResolver:
    """Resolve a user's membership, optionally within a specific firm.

    Never raises for a missing membership; that is an expected state and
    is reported as ``None``. Store errors propagate unchanged.
    """

    def __init__(self, store: MembershipStore) -> None:
        self.store = store

    async def resolve(self, user_id: str, firm_id: str | None = None) -> Membership | None:
        """Return the user's membership.

        Args:
            user_id: The user's id
            firm_id: The firm to look in; when omitted the earliest-joined
                membership is returned

        Returns:
            The membership, or None if there is none
        """
        if firm_id is None:
            return await self.primary_membership(user_id)
        return await self.store.find_membership(user_id, firm_id)

    async def primary_membership(self, user_id: str) -> Membership | None:
        """Return the membership the user joined first, or None."""
        memberships = await self.store.find_memberships_for_user(user_id)
        return min(memberships, key=lambda m: m.joined_at, default=None)

    async def is_member(self, user_id: str, firm_id: str) -> bool:
        return await self.store.find_membership(user_id, firm_id) is not None


class RequestScopedStore:
    """Memoising wrapper around a ``MembershipStore`` for a single request.

    A route guard builds one per evaluation and discards it afterwards, so
    repeated checks inside one request share lookups while membership
    changes are always visible to the next request.
    """

    def __init__(self, store: MembershipStore) -> None:
        self._store = store
        self._user_types: dict[str, UserType | None] = {}
        self._memberships: dict[tuple[str, str], Membership | None] = {}
        self._user_memberships: dict[str, Sequence[Membership]] = {}

    def remember_user_type(self, user_id: str, user_type: UserType) -> None:
        """Seed the user type already known from the session."""
        self._user_types[user_id] = user_type

    async def get_user_type(self, user_id: str) -> UserType | None:
        if user_id not in self._user_types:
            self._user_types[user_id] = await self._store.get_user_type(user_id)
        return self._user_types[user_id]

    async def find_membership(self, user_id: str, firm_id: str) -> Membership | None:
        key = (user_id, firm_id)
        if key not in self._memberships:
            self._memberships[key] = await self._store.find_membership(user_id, firm_id)
        return self._memberships[key]

    async def find_memberships_for_user(self, user_id: str) -> Sequence[Membership]:
        if user_id not in self._user_memberships:
            self._user_memberships[user_id] = tuple(
                await self._store.find_memberships_for_user(user_id)
            )
        return self._user_memberships[user_id]
