"""Roles, permissions and the role descriptor table.

Every role is described exactly once, with its rank and its base
permissions, so ordering and permission grants cannot drift apart. The
default table is built at import time and is immutable afterwards; callers
that need a different table construct their own ``RoleTable`` and inject it.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType


class Role(StrEnum):
    """Firm roles, declared from least to most privileged."""

    CLIENT = "client"
    SUPPORT = "support"
    LAWYER = "lawyer"
    SENIOR_LAWYER = "senior_lawyer"
    FIRM_ADMIN = "firm_admin"
    SUPER_ADMIN = "super_admin"


class UserType(StrEnum):
    """Global account type, independent of any firm."""

    CLIENT = "client"
    LAWYER = "lawyer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permission(StrEnum):
    """Permission tags in ``resource:action`` form."""

    # Law firm management
    LAW_FIRM_CREATE = "law_firm:create"
    LAW_FIRM_UPDATE = "law_firm:update"
    LAW_FIRM_DELETE = "law_firm:delete"
    LAW_FIRM_VIEW = "law_firm:view"

    # Matter management
    MATTER_CREATE = "matter:create"
    MATTER_VIEW = "matter:view"
    MATTER_UPDATE = "matter:update"
    MATTER_DELETE = "matter:delete"
    MATTER_ASSIGN = "matter:assign"

    # Wills
    WILL_CREATE = "will:create"
    WILL_VIEW = "will:view"
    WILL_EDIT = "will:edit"
    WILL_FINALIZE = "will:finalize"
    WILL_GENERATE = "will:generate"

    # Documents
    DOCUMENT_VIEW = "document:view"
    DOCUMENT_UPLOAD = "document:upload"
    DOCUMENT_DELETE = "document:delete"
    DOCUMENT_SHARE = "document:share"

    # Clients
    CLIENT_CREATE = "client:create"
    CLIENT_VIEW = "client:view"
    CLIENT_UPDATE = "client:update"
    CLIENT_DELETE = "client:delete"

    # DIFC registry
    DIFC_REGISTER = "difc:register"
    DIFC_VALIDATE = "difc:validate"

    # Billing and analytics
    BILLING_VIEW = "billing:view"
    BILLING_MANAGE = "billing:manage"
    ANALYTICS_VIEW = "analytics:view"

    # System administration
    SYSTEM_ADMIN = "system:admin"
    AUDIT_VIEW = "audit:view"

    @property
    def resource(self) -> str:
        """The part before the colon."""
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        """The part after the colon."""
        return self.value.split(":", 1)[1]


def coerce_user_type(value: str | None) -> UserType:
    """Return the user type for a stored value.

    Missing and unrecognised values count as ``client``, the least
    privileged type.
    """
    try:
        return UserType(value) if value else UserType.CLIENT
    except ValueError:
        return UserType.CLIENT


def parse_permission(value: str) -> Permission | None:
    """Return the permission for a stored tag, or None if it is unknown."""
    try:
        return Permission(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class RoleDescriptor:
    """A role together with its rank and base permissions."""

    role: Role
    rank: int
    base_permissions: frozenset[Permission]


class RoleTable:
    """Immutable lookup from role to rank and base permissions.

    Construction validates the descriptors:

    - every ``Role`` member is described exactly once,
    - ranks are unique and increase in the order roles are declared.

    Raises:
        ValueError: If the descriptors violate either rule
    """

    def __init__(self, descriptors: Iterable[RoleDescriptor]) -> None:
        by_role: dict[Role, RoleDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.role in by_role:
                raise ValueError(f"Role {descriptor.role.value!r} is described twice")
            by_role[descriptor.role] = descriptor

        missing = [role.value for role in Role if role not in by_role]
        if missing:
            raise ValueError(f"Role table is missing descriptors for: {', '.join(missing)}")

        ranks = [by_role[role].rank for role in Role]
        if any(lower >= higher for lower, higher in zip(ranks, ranks[1:])):
            raise ValueError(
                "Role ranks must strictly increase in declaration order "
                f"({', '.join(f'{role.value}={by_role[role].rank}' for role in Role)})"
            )

        self._descriptors: Mapping[Role, RoleDescriptor] = MappingProxyType(
            {role: by_role[role] for role in Role}
        )
        self._universe = frozenset(Permission)

    @property
    def universe(self) -> frozenset[Permission]:
        """Every defined permission."""
        return self._universe

    def descriptor(self, role: Role) -> RoleDescriptor:
        return self._descriptors[role]

    def descriptors(self) -> Iterator[RoleDescriptor]:
        """Descriptors from lowest to highest rank."""
        return iter(self._descriptors.values())

    def permissions_for(self, role: Role) -> frozenset[Permission]:
        return self._descriptors[role].base_permissions

    def rank(self, role: Role) -> int:
        return self._descriptors[role].rank

    def at_least(self, role: Role, minimum: Role) -> bool:
        """Whether ``role`` ranks at or above ``minimum``."""
        return self.rank(role) >= self.rank(minimum)


_CLIENT_PERMISSIONS = frozenset(
    {
        Permission.WILL_VIEW,
        Permission.DOCUMENT_VIEW,
    }
)

_SUPPORT_PERMISSIONS = frozenset(
    {
        Permission.LAW_FIRM_VIEW,
        Permission.MATTER_VIEW,
        Permission.WILL_VIEW,
        Permission.DOCUMENT_VIEW,
        Permission.CLIENT_VIEW,
    }
)

_LAWYER_PERMISSIONS = frozenset(
    {
        Permission.LAW_FIRM_VIEW,
        Permission.MATTER_CREATE,
        Permission.MATTER_VIEW,
        Permission.MATTER_UPDATE,
        Permission.WILL_CREATE,
        Permission.WILL_VIEW,
        Permission.WILL_EDIT,
        Permission.WILL_GENERATE,
        Permission.DOCUMENT_VIEW,
        Permission.DOCUMENT_UPLOAD,
        Permission.CLIENT_CREATE,
        Permission.CLIENT_VIEW,
        Permission.CLIENT_UPDATE,
        Permission.DIFC_VALIDATE,
    }
)

_SENIOR_LAWYER_PERMISSIONS = frozenset(
    {
        Permission.LAW_FIRM_VIEW,
        Permission.MATTER_CREATE,
        Permission.MATTER_VIEW,
        Permission.MATTER_UPDATE,
        Permission.MATTER_ASSIGN,
        Permission.WILL_CREATE,
        Permission.WILL_VIEW,
        Permission.WILL_EDIT,
        Permission.WILL_FINALIZE,
        Permission.WILL_GENERATE,
        Permission.DOCUMENT_VIEW,
        Permission.DOCUMENT_UPLOAD,
        Permission.DOCUMENT_SHARE,
        Permission.CLIENT_CREATE,
        Permission.CLIENT_VIEW,
        Permission.CLIENT_UPDATE,
        Permission.DIFC_REGISTER,
        Permission.DIFC_VALIDATE,
        Permission.BILLING_VIEW,
    }
)

_FIRM_ADMIN_PERMISSIONS = frozenset(
    {
        Permission.LAW_FIRM_VIEW,
        Permission.LAW_FIRM_UPDATE,
        Permission.MATTER_CREATE,
        Permission.MATTER_VIEW,
        Permission.MATTER_UPDATE,
        Permission.MATTER_DELETE,
        Permission.MATTER_ASSIGN,
        Permission.WILL_CREATE,
        Permission.WILL_VIEW,
        Permission.WILL_EDIT,
        Permission.WILL_FINALIZE,
        Permission.WILL_GENERATE,
        Permission.DOCUMENT_VIEW,
        Permission.DOCUMENT_UPLOAD,
        Permission.DOCUMENT_DELETE,
        Permission.DOCUMENT_SHARE,
        Permission.CLIENT_CREATE,
        Permission.CLIENT_VIEW,
        Permission.CLIENT_UPDATE,
        Permission.CLIENT_DELETE,
        Permission.DIFC_REGISTER,
        Permission.DIFC_VALIDATE,
        Permission.BILLING_VIEW,
        Permission.BILLING_MANAGE,
        Permission.ANALYTICS_VIEW,
        Permission.AUDIT_VIEW,
    }
)


DEFAULT_ROLE_TABLE = RoleTable(
    [
        RoleDescriptor(Role.CLIENT, 0, _CLIENT_PERMISSIONS),
        RoleDescriptor(Role.SUPPORT, 1, _SUPPORT_PERMISSIONS),
        RoleDescriptor(Role.LAWYER, 2, _LAWYER_PERMISSIONS),
        RoleDescriptor(Role.SENIOR_LAWYER, 3, _SENIOR_LAWYER_PERMISSIONS),
        RoleDescriptor(Role.FIRM_ADMIN, 4, _FIRM_ADMIN_PERMISSIONS),
        RoleDescriptor(Role.SUPER_ADMIN, 5, frozenset(Permission)),
    ]
)
