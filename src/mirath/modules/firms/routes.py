"""Law firm and membership API routes.

Provides endpoints for:
- The caller's effective permissions
- Law firm registration
- Firm member management
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from mirath.core.auth.schemas import Identity
from mirath.core.errors import UnauthorizedError
from mirath.core.permissions.dependencies import (
    Authenticated,
    RouteGuardDep,
    require_permissions,
    require_role,
)
from mirath.core.permissions.evaluator import PermissionEvaluator
from mirath.core.permissions.guard import Proceed
from mirath.core.permissions.roles import Permission, Role
from mirath.modules.firms.models import FirmMembership
from mirath.modules.firms.schemas import (
    EffectivePermissionsResponse,
    LawFirmCreate,
    LawFirmResponse,
    MemberAdd,
    MemberResponse,
    MemberUpdate,
)
from mirath.modules.firms.services import MembershipSvc


router = APIRouter(tags=["law-firms"])

CanViewFirm = Annotated[Proceed, Depends(require_permissions([Permission.LAW_FIRM_VIEW]))]
CanUpdateFirm = Annotated[Proceed, Depends(require_permissions([Permission.LAW_FIRM_UPDATE]))]
FirmAdmin = Annotated[Proceed, Depends(require_role(Role.FIRM_ADMIN))]


def authenticated_identity(access: Proceed) -> Identity:
    if access.identity is None:
        raise UnauthorizedError("Authentication required")
    return access.identity


def member_response(membership: FirmMembership) -> MemberResponse:
    """Build a member response, including the member's user details."""
    user = membership.user
    return MemberResponse(
        user_id=membership.user_id,
        law_firm_id=membership.law_firm_id,
        role=membership.role,
        permissions=list(membership.permissions or []),
        joined_at=membership.joined_at,
        user_name=user.name if user else None,
        user_email=user.email if user else None,
        user_type=user.user_type if user else None,
    )


@router.get(
    "/me/permissions",
    response_model=EffectivePermissionsResponse,
    summary="Get the caller's effective permissions",
    description=(
        "Returns the caller's role and permissions in the firm named by the "
        "firmId query parameter or X-Firm-Id header, or in the firm they "
        "joined first when neither is given."
    ),
)
async def my_permissions(
    access: Authenticated,
    guard: RouteGuardDep,
) -> EffectivePermissionsResponse:
    """Get the caller's effective role and permissions."""
    identity = authenticated_identity(access)
    evaluator = PermissionEvaluator(guard.store, guard.table, guard.non_member_policy)
    user_id = identity.id

    permissions = await evaluator.effective_permissions(user_id, access.firm_id)
    return EffectivePermissionsResponse(
        user_id=user_id,
        user_type=identity.user_type,
        firm_id=access.firm_id,
        role=await evaluator.effective_role(user_id, access.firm_id),
        permissions=sorted(permissions),
    )


@router.post(
    "/law-firms",
    response_model=LawFirmResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a law firm",
    description="Creates a law firm. The caller becomes its firm admin.",
)
async def create_law_firm(
    data: LawFirmCreate,
    access: Authenticated,
    service: MembershipSvc,
) -> LawFirmResponse:
    """Register a law firm."""
    firm = await service.create_firm(data, authenticated_identity(access).id)
    return LawFirmResponse.model_validate(firm)


@router.get(
    "/law-firms/{firm_id}/members",
    response_model=list[MemberResponse],
    summary="List firm members",
)
async def list_members(
    firm_id: str,
    _access: CanViewFirm,
    service: MembershipSvc,
) -> list[MemberResponse]:
    """List a firm's members, oldest first."""
    members = await service.list_members(firm_id)
    return [member_response(m) for m in members]


@router.post(
    "/law-firms/{firm_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a firm member",
)
async def add_member(
    firm_id: str,
    data: MemberAdd,
    _access: CanUpdateFirm,
    service: MembershipSvc,
) -> MemberResponse:
    """Add a user to the firm."""
    membership = await service.add_member(firm_id, data)
    return member_response(membership)


@router.patch(
    "/law-firms/{firm_id}/members/{user_id}",
    response_model=MemberResponse,
    summary="Update a firm member",
    description="Changes a member's role and/or extra permissions.",
)
async def update_member(
    firm_id: str,
    user_id: str,
    data: MemberUpdate,
    _access: FirmAdmin,
    service: MembershipSvc,
) -> MemberResponse:
    """Update a member's role or extra permissions."""
    membership = await service.update_member(firm_id, user_id, data)
    return member_response(membership)


@router.delete(
    "/law-firms/{firm_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a firm member",
)
async def remove_member(
    firm_id: str,
    user_id: str,
    _access: FirmAdmin,
    service: MembershipSvc,
) -> Response:
    """Remove a user from the firm."""
    await service.remove_member(firm_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
