"""Pydantic schemas for law firm and membership operations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from mirath.core.constants import (
    MAX_ID_LENGTH,
    MAX_LICENSE_NUMBER_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
)
from mirath.core.permissions.roles import Permission, Role, UserType


# Roles a firm can hand out; client and super_admin are not firm roles
ASSIGNABLE_ROLES = frozenset(
    {Role.SUPPORT, Role.LAWYER, Role.SENIOR_LAWYER, Role.FIRM_ADMIN}
)


def validate_assignable_role(role: Role | None) -> Role | None:
    """Reject roles a firm cannot assign.

    Raises:
        ValueError: If the role is not assignable
    """
    if role is not None and role not in ASSIGNABLE_ROLES:
        allowed = ", ".join(sorted(r.value for r in ASSIGNABLE_ROLES))
        raise ValueError(f"Role must be one of: {allowed}")
    return role


# ============================================================
# Law Firm Schemas
# ============================================================


class LawFirmCreate(BaseModel):
    """Schema for registering a law firm."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    license_number: str = Field(..., min_length=1, max_length=MAX_LICENSE_NUMBER_LENGTH)
    email: EmailStr
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)


class LawFirmResponse(BaseModel):
    """Schema for law firm responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    license_number: str
    email: str
    phone: str | None
    subscription_tier: str
    is_verified: bool
    is_active: bool


# ============================================================
# Membership Schemas
# ============================================================


class MemberAdd(BaseModel):
    """Schema for adding a user to a firm."""

    user_id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    role: Role
    permissions: list[Permission] = Field(default_factory=list)

    @field_validator("role")
    @classmethod
    def check_role(cls, v: Role) -> Role:
        validate_assignable_role(v)
        return v


class MemberUpdate(BaseModel):
    """Schema for changing a member's role or extra permissions.

    Omitted fields are left unchanged.
    """

    role: Role | None = None
    permissions: list[Permission] | None = None

    @field_validator("role")
    @classmethod
    def check_role(cls, v: Role | None) -> Role | None:
        return validate_assignable_role(v)


class MemberResponse(BaseModel):
    """Schema for membership responses."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    law_firm_id: str
    role: Role
    permissions: list[str]
    joined_at: datetime
    user_name: str | None = None
    user_email: str | None = None
    user_type: str | None = None


class EffectivePermissionsResponse(BaseModel):
    """The caller's effective role and permissions in a firm."""

    user_id: str
    user_type: UserType
    firm_id: str | None
    role: Role | None
    permissions: list[Permission]
