"""Route guard: authentication, firm context and authorization in one pass.

The guard runs a fixed sequence of gates against a request and returns
either ``Proceed`` with the resolved identity, firm and membership, or a
``Rejection`` carrying an HTTP status and a machine-readable reason:

1. identity (401 ``authentication_required``)
2. firm context, when membership is required (400 ``tenant_context_required``)
3. firm membership, super admins exempt (403 ``membership_required``)
4. minimum role (403 ``insufficient_role``)
5. required permissions, all of them (403 ``permission_required:<permission>``)
6. allowed user types (403 ``user_type_not_allowed``)

Every configured gate must pass. The firm id is taken from the path, then
the query string, then a header; the first source that has one wins.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

import structlog

from mirath.core.auth.schemas import Identity
from mirath.core.auth.session import SessionProvider
from mirath.core.constants import (
    DEFAULT_TENANT_HEADER,
    DEFAULT_TENANT_PATH_MARKERS,
    DEFAULT_TENANT_QUERY_PARAMS,
)
from mirath.core.errors import (
    AppException,
    BadRequestError,
    ForbiddenError,
    UnauthorizedError,
)
from mirath.core.permissions.evaluator import NonMemberPolicy, PermissionEvaluator
from mirath.core.permissions.resolver import Membership, MembershipStore, RequestScopedStore
from mirath.core.permissions.roles import (
    DEFAULT_ROLE_TABLE,
    Permission,
    Role,
    RoleTable,
    UserType,
)


if TYPE_CHECKING:
    from starlette.requests import Request

    from mirath.config import Settings


logger = structlog.get_logger()

AUTHENTICATION_REQUIRED = "authentication_required"
TENANT_CONTEXT_REQUIRED = "tenant_context_required"
MEMBERSHIP_REQUIRED = "membership_required"
INSUFFICIENT_ROLE = "insufficient_role"
PERMISSION_REQUIRED = "permission_required"
USER_TYPE_NOT_ALLOWED = "user_type_not_allowed"
INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class RequestInfo:
    """The parts of an inbound request the guard looks at."""

    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: "Request") -> "RequestInfo":
        return cls(
            path=request.url.path,
            query=request.query_params,
            headers=request.headers,
        )

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, candidate in self.headers.items():
            if key.lower() == lowered:
                return candidate
        return None


def _firm_id(value: str | None) -> str | None:
    """Strip surrounding whitespace; blank values count as absent."""
    if value is None:
        return None
    return value.strip() or None


@dataclass(frozen=True, slots=True)
class TenantExtractor:
    """Finds the firm id a request is addressed to.

    Sources, in priority order:

    1. the path segment right after the first marker segment
       (``/law-firms/<id>/...``)
    2. the first configured query parameter that is present
    3. the firm header

    Sources are never merged; a later source is only consulted when every
    earlier one came up empty.
    """

    path_markers: tuple[str, ...] = DEFAULT_TENANT_PATH_MARKERS
    query_params: tuple[str, ...] = DEFAULT_TENANT_QUERY_PARAMS
    header: str = DEFAULT_TENANT_HEADER

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TenantExtractor":
        return cls(
            path_markers=tuple(settings.tenant_path_markers),
            query_params=tuple(settings.tenant_query_params),
            header=settings.tenant_header,
        )

    def extract(self, request: RequestInfo) -> str | None:
        return (
            self.from_path(request.path)
            or self.from_query(request.query)
            or self.from_header(request)
        )

    def from_path(self, path: str) -> str | None:
        segments = [segment for segment in path.split("/") if segment]
        for index, segment in enumerate(segments[:-1]):
            if segment in self.path_markers:
                return _firm_id(unquote(segments[index + 1]))
        return None

    def from_query(self, query: Mapping[str, str]) -> str | None:
        for name in self.query_params:
            value = _firm_id(query.get(name))
            if value:
                return value
        return None

    def from_header(self, request: RequestInfo) -> str | None:
        return _firm_id(request.header(self.header))


@dataclass(frozen=True, slots=True)
class GuardOptions:
    """Which gates a route enables.

    Attributes:
        require_auth: Reject anonymous callers
        require_tenant_membership: Require a firm id and a membership in it
        required_permissions: Permissions the caller must all hold
        minimum_role: Lowest firm role allowed through
        allowed_user_types: Global user types allowed through; None allows all
    """

    require_auth: bool = False
    require_tenant_membership: bool = False
    required_permissions: tuple[Permission, ...] = ()
    minimum_role: Role | None = None
    allowed_user_types: frozenset[UserType] | None = None

    def __post_init__(self) -> None:
        # Accept plain strings and any iterable; unknown values raise ValueError here
        object.__setattr__(
            self,
            "required_permissions",
            tuple(Permission(p) for p in self.required_permissions),
        )
        if self.minimum_role is not None:
            object.__setattr__(self, "minimum_role", Role(self.minimum_role))
        if self.allowed_user_types is not None:
            object.__setattr__(
                self,
                "allowed_user_types",
                frozenset(UserType(t) for t in self.allowed_user_types),
            )

    @property
    def needs_identity(self) -> bool:
        """Whether any gate depends on knowing the caller."""
        return (
            self.require_auth
            or self.require_tenant_membership
            or bool(self.required_permissions)
            or self.minimum_role is not None
            or self.allowed_user_types is not None
        )


@dataclass(frozen=True, slots=True)
class Proceed:
    """Authorization passed; context for the route handler."""

    identity: Identity | None
    firm_id: str | None = None
    membership: Membership | None = None

    @property
    def user_id(self) -> str | None:
        return self.identity.id if self.identity else None


@dataclass(frozen=True, slots=True)
class Rejection:
    """Authorization failed."""

    status_code: int
    reason: str
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_exception(self) -> AppException:
        """Build the domain exception the HTTP layer renders."""
        exception_class: type[AppException] = {
            400: BadRequestError,
            401: UnauthorizedError,
            403: ForbiddenError,
        }.get(self.status_code, AppException)
        return exception_class(
            self.message,
            error_code=self.reason,
            details=dict(self.details),
        )


GuardDecision = Proceed | Rejection


class RouteGuard:
    """Evaluates ``GuardOptions`` for a request.

    The guard holds no per-request state; each ``evaluate`` call builds its
    own request-scoped lookup cache.

    Args:
        session_provider: Resolves the caller from request headers
        store: Source of user types and memberships
        table: Role table to evaluate against
        non_member_policy: Treatment of users without a membership
        tenant_extractor: Finds the firm id in a request
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        store: MembershipStore,
        *,
        table: RoleTable = DEFAULT_ROLE_TABLE,
        non_member_policy: NonMemberPolicy = NonMemberPolicy.CLIENT_BASELINE,
        tenant_extractor: TenantExtractor | None = None,
    ) -> None:
        self.session_provider = session_provider
        self.store = store
        self.table = table
        self.non_member_policy = non_member_policy
        self.tenant_extractor = tenant_extractor or TenantExtractor()

    async def evaluate(self, request: RequestInfo, options: GuardOptions) -> GuardDecision:
        """Run every configured gate for a request.

        Failures in the session provider or the store are reported as a
        500 ``internal_error`` rejection; their messages are logged only.
        """
        try:
            return await self._evaluate(request, options)
        except Exception as exc:
            logger.exception(
                "route_guard_error",
                path=request.path,
                error_type=type(exc).__name__,
            )
            return Rejection(500, INTERNAL_ERROR, "An unexpected error occurred")

    async def _evaluate(self, request: RequestInfo, options: GuardOptions) -> GuardDecision:
        identity = await self.session_provider.get_identity(request.headers)
        firm_id = self.tenant_extractor.extract(request)

        if identity is None:
            if options.needs_identity:
                return self._reject(
                    request, 401, AUTHENTICATION_REQUIRED, "Authentication required"
                )
            return Proceed(identity=None, firm_id=firm_id)

        store = RequestScopedStore(self.store)
        store.remember_user_type(identity.id, identity.user_type)
        evaluator = PermissionEvaluator(store, self.table, self.non_member_policy)
        is_super_admin = identity.user_type == UserType.SUPER_ADMIN

        membership: Membership | None = None
        if options.require_tenant_membership:
            if firm_id is None:
                return self._reject(
                    request, 400, TENANT_CONTEXT_REQUIRED, "Firm context required", identity
                )
            membership = await evaluator.resolver.resolve(identity.id, firm_id)
            if membership is None:
                if not is_super_admin:
                    return self._reject(
                        request, 403, MEMBERSHIP_REQUIRED, "Firm membership required", identity
                    )
                logger.warning(
                    "super_admin_membership_bypass",
                    user_id=identity.id,
                    firm_id=firm_id,
                    path=request.path,
                )

        if options.minimum_role is not None and not await evaluator.has_minimum_role(
            identity.id, options.minimum_role, firm_id
        ):
            return self._reject(
                request,
                403,
                INSUFFICIENT_ROLE,
                "Insufficient role",
                identity,
                details={"minimum_role": options.minimum_role.value},
            )

        if options.required_permissions:
            missing = await evaluator.missing_permissions(
                identity.id, options.required_permissions, firm_id
            )
            if missing:
                return self._reject(
                    request,
                    403,
                    f"{PERMISSION_REQUIRED}:{missing[0].value}",
                    f"Permission required: {missing[0].value}",
                    identity,
                    details={"missing_permissions": [p.value for p in missing]},
                )

        if (
            options.allowed_user_types is not None
            and identity.user_type not in options.allowed_user_types
        ):
            return self._reject(
                request, 403, USER_TYPE_NOT_ALLOWED, "Insufficient user type", identity
            )

        if firm_id is None:
            # Default to the firm the user joined first, after every gate has
            # passed, so the fallback never changes an authorization outcome.
            membership = await evaluator.resolver.primary_membership(identity.id)
            if membership is not None:
                firm_id = membership.firm_id
        elif membership is None:
            membership = await evaluator.resolver.resolve(identity.id, firm_id)

        return Proceed(identity=identity, firm_id=firm_id, membership=membership)

    def _reject(
        self,
        request: RequestInfo,
        status_code: int,
        reason: str,
        message: str,
        identity: Identity | None = None,
        details: dict[str, Any] | None = None,
    ) -> Rejection:
        logger.info(
            "route_guard_rejected",
            path=request.path,
            status_code=status_code,
            reason=reason,
            user_id=identity.id if identity else None,
        )
        return Rejection(status_code, reason, message, details or {})
