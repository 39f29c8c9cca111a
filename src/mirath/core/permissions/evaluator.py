"""Permission checking logic.

This module computes a user's effective permissions within a law firm and
answers permission and role questions from them. Effective permissions are
never stored; they are derived from the role table and the membership on
every call.
"""

from collections.abc import Iterable
from enum import StrEnum

import structlog

from mirath.core.permissions.resolver import Membership, MembershipResolver, MembershipStore
from mirath.core.permissions.roles import (
    DEFAULT_ROLE_TABLE,
    Permission,
    Role,
    RoleTable,
    UserType,
    parse_permission,
)


logger = structlog.get_logger()


class NonMemberPolicy(StrEnum):
    """How to treat a user with no role in the firm being asked about.

    This also covers checks made without any firm context.

    - ``CLIENT_BASELINE``: the user is treated as a ``client``.
    - ``NO_ACCESS``: the user has no role and no permissions.

    ``CLIENT_BASELINE`` is the default. Whether an unaffiliated lawyer
    should count as a client is a product decision that has not been
    confirmed yet; deployments can switch with ``NON_MEMBER_POLICY``.
    """

    CLIENT_BASELINE = "client_baseline"
    NO_ACCESS = "no_access"

    @property
    def fallback_role(self) -> Role | None:
        if self is NonMemberPolicy.CLIENT_BASELINE:
            return Role.CLIENT
        return None


class PermissionEvaluator:
    """Service for checking user permissions within a firm.

    Args:
        store: Source of user types and memberships
        table: Role table to evaluate against
        non_member_policy: Treatment of users without a membership
    """

    def __init__(
        self,
        store: MembershipStore,
        table: RoleTable = DEFAULT_ROLE_TABLE,
        non_member_policy: NonMemberPolicy = NonMemberPolicy.CLIENT_BASELINE,
    ) -> None:
        self.store = store
        self.table = table
        self.non_member_policy = non_member_policy
        self.resolver = MembershipResolver(store)

    async def is_super_admin(self, user_id: str) -> bool:
        return await self.store.get_user_type(user_id) == UserType.SUPER_ADMIN

    async def effective_role(self, user_id: str, firm_id: str | None = None) -> Role | None:
        """Get the role a user holds in a firm.

        This is the membership role, or the non-member policy's fallback
        role when there is no firm or no membership. The global user type
        is not consulted.

        Args:
            user_id: The user's id
            firm_id: The firm's id

        Returns:
            The effective role, or None under ``NO_ACCESS`` without a membership
        """
        if firm_id is None:
            return self.non_member_policy.fallback_role

        membership = await self.resolver.resolve(user_id, firm_id)
        if membership is None:
            return self.non_member_policy.fallback_role
        return membership.role

    async def effective_permissions(
        self,
        user_id: str,
        firm_id: str | None = None,
    ) -> frozenset[Permission]:
        """Get every permission a user holds in a firm.

        Super admins hold every permission regardless of firm. Other users
        hold their membership role's base permissions plus the membership's
        extra grants, or the non-member fallback set.

        Args:
            user_id: The user's id
            firm_id: The firm's id

        Returns:
            The effective permission set
        """
        if await self.is_super_admin(user_id):
            return self.table.universe

        if firm_id is None:
            return self._fallback_permissions()

        membership = await self.resolver.resolve(user_id, firm_id)
        if membership is None:
            return self._fallback_permissions()

        return self.table.permissions_for(membership.role) | self._granted(membership)

    async def has_permission(
        self,
        user_id: str,
        permission: Permission,
        firm_id: str | None = None,
    ) -> bool:
        return permission in await self.effective_permissions(user_id, firm_id)

    async def has_any_permission(
        self,
        user_id: str,
        permissions: Iterable[Permission],
        firm_id: str | None = None,
    ) -> bool:
        """Check if a user has any of the specified permissions.

        An empty list is never satisfied.
        """
        requested = list(permissions)
        if not requested:
            return False

        held = await self.effective_permissions(user_id, firm_id)
        return any(permission in held for permission in requested)

    async def has_all_permissions(
        self,
        user_id: str,
        permissions: Iterable[Permission],
        firm_id: str | None = None,
    ) -> bool:
        """Check if a user has all of the specified permissions.

        An empty list is always satisfied.
        """
        return not await self.missing_permissions(user_id, permissions, firm_id)

    async def missing_permissions(
        self,
        user_id: str,
        permissions: Iterable[Permission],
        firm_id: str | None = None,
    ) -> list[Permission]:
        """Get the requested permissions the user lacks, in request order."""
        requested = list(permissions)
        if not requested:
            return []

        held = await self.effective_permissions(user_id, firm_id)
        return [permission for permission in requested if permission not in held]

    async def has_minimum_role(
        self,
        user_id: str,
        minimum_role: Role,
        firm_id: str | None = None,
    ) -> bool:
        """Check if a user's role in a firm ranks at or above ``minimum_role``.

        Super admins always pass.
        """
        if await self.is_super_admin(user_id):
            return True

        role = await self.effective_role(user_id, firm_id)
        if role is None:
            return False
        return self.table.at_least(role, minimum_role)

    def _fallback_permissions(self) -> frozenset[Permission]:
        role = self.non_member_policy.fallback_role
        if role is None:
            return frozenset()
        return self.table.permissions_for(role)

    def _granted(self, membership: Membership) -> frozenset[Permission]:
        granted: set[Permission] = set()
        for value in membership.permissions:
            permission = parse_permission(value)
            if permission is None:
                logger.warning(
                    "unknown_membership_permission",
                    user_id=membership.user_id,
                    firm_id=membership.firm_id,
                    permission=value,
                )
                continue
            granted.add(permission)
        return frozenset(granted)
