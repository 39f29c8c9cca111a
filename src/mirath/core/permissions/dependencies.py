"""Route protection dependencies.

Routes declare the gates they need with one of the dependency factories
below; the dependency runs the ``RouteGuard`` and either returns the
``Proceed`` context or raises the rejection as a domain exception.

Usage:
    @router.get("/law-firms/{firm_id}/matters")
    async def list_matters(
        access: Annotated[Proceed, Depends(require_permissions([Permission.MATTER_VIEW]))],
    ):
        ...
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated, Any

import structlog
from fastapi import Depends, Request

from mirath.api.dependencies import DBSession
from mirath.config import settings
from mirath.core.auth.session import BearerTokenSessionProvider
from mirath.core.permissions.evaluator import NonMemberPolicy
from mirath.core.permissions.guard import (
    GuardOptions,
    Proceed,
    RequestInfo,
    RouteGuard,
    TenantExtractor,
)
from mirath.core.permissions.roles import Permission, Role, UserType


logger = structlog.get_logger()

GuardDependency = Callable[..., Awaitable[Proceed]]


def get_route_guard(db: DBSession) -> RouteGuard:
    """Build the route guard for the current request's database session."""
    # Imported here to avoid a circular import with the firms module router
    from mirath.modules.firms.repos import MembershipRepository
    from mirath.modules.users.repos import UserRepository

    return RouteGuard(
        BearerTokenSessionProvider(UserRepository(db)),
        MembershipRepository(db),
        non_member_policy=NonMemberPolicy(settings.non_member_policy),
        tenant_extractor=TenantExtractor.from_settings(settings),
    )


RouteGuardDep = Annotated[RouteGuard, Depends(get_route_guard)]


def protect(**options: Any) -> GuardDependency:
    """Create a dependency that enforces the given ``GuardOptions`` fields.

    Args:
        **options: Any ``GuardOptions`` field

    Returns:
        Dependency returning the ``Proceed`` context

    Raises:
        TypeError: If an option name is not a ``GuardOptions`` field
    """
    guard_options = GuardOptions(**options)

    async def dependency(request: Request, guard: RouteGuardDep) -> Proceed:
        decision = await guard.evaluate(RequestInfo.from_request(request), guard_options)
        if not isinstance(decision, Proceed):
            raise decision.to_exception()

        request.state.user_id = decision.user_id
        request.state.firm_id = decision.firm_id
        structlog.contextvars.bind_contextvars(
            user_id=decision.user_id,
            firm_id=decision.firm_id,
        )
        return decision

    return dependency


def require_auth(**options: Any) -> GuardDependency:
    """Require an authenticated caller."""
    return protect(**{**options, "require_auth": True})


def require_firm_membership(**options: Any) -> GuardDependency:
    """Require a firm id in the request and a membership in that firm."""
    return protect(**{**options, "require_auth": True, "require_tenant_membership": True})


def require_role(minimum_role: Role, **options: Any) -> GuardDependency:
    """Require firm membership with at least ``minimum_role``."""
    return protect(
        **{
            **options,
            "require_auth": True,
            "require_tenant_membership": True,
            "minimum_role": minimum_role,
        }
    )


def require_permissions(permissions: Iterable[Permission], **options: Any) -> GuardDependency:
    """Require firm membership and every one of ``permissions``."""
    return protect(
        **{
            **options,
            "require_auth": True,
            "require_tenant_membership": True,
            "required_permissions": tuple(permissions),
        }
    )


def require_admin(**options: Any) -> GuardDependency:
    """Require the ``firm_admin`` role.

    Membership is not forced, so without a firm id the non-member policy
    decides; under the default policy that is a rejection.
    """
    return protect(**{**options, "require_auth": True, "minimum_role": Role.FIRM_ADMIN})


def require_lawyer(**options: Any) -> GuardDependency:
    """Require firm membership with the ``lawyer`` role or above."""
    return protect(
        **{
            **options,
            "require_auth": True,
            "require_tenant_membership": True,
            "minimum_role": Role.LAWYER,
        }
    )


def require_super_admin(**options: Any) -> GuardDependency:
    """Require a ``super_admin`` account."""
    return protect(
        **{
            **options,
            "require_auth": True,
            "allowed_user_types": frozenset({UserType.SUPER_ADMIN}),
        }
    )


# Type aliases for common route protection
Authenticated = Annotated[Proceed, Depends(require_auth())]
FirmMember = Annotated[Proceed, Depends(require_firm_membership())]
