"""Role table, membership resolution and permission evaluation.

The route guard and its FastAPI dependencies live in
``mirath.core.permissions.guard`` and ``mirath.core.permissions.dependencies``.
"""

from mirath.core.permissions.evaluator import NonMemberPolicy, PermissionEvaluator
from mirath.core.permissions.resolver import (
    Membership,
    MembershipResolver,
    MembershipStore,
    RequestScopedStore,
)
from mirath.core.permissions.roles import (
    DEFAULT_ROLE_TABLE,
    Permission,
    Role,
    RoleDescriptor,
    RoleTable,
    UserType,
    coerce_user_type,
    parse_permission,
)


__all__ = [
    "DEFAULT_ROLE_TABLE",
    "Membership",
    "MembershipResolver",
    "MembershipStore",
    "NonMemberPolicy",
    "Permission",
    "PermissionEvaluator",
    "RequestScopedStore",
    "Role",
    "RoleDescriptor",
    "RoleTable",
    "UserType",
    "coerce_user_type",
    "parse_permission",
]
