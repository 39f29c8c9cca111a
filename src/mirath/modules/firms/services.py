"""Law firm and membership service for business logic."""

from typing import Annotated

import structlog
from fastapi import Depends

from mirath.api.dependencies import DBSession
from mirath.core.errors import ConflictError, NotFoundError
from mirath.core.permissions.roles import Permission, Role, UserType
from mirath.modules.firms.models import FirmMembership, LawFirm
from mirath.modules.firms.repos import LawFirmRepository, MembershipRepository
from mirath.modules.firms.schemas import LawFirmCreate, MemberAdd, MemberUpdate
from mirath.modules.users.models import User
from mirath.modules.users.repos import UserRepository


logger = structlog.get_logger()


def promoted_user_type(current: str, role: Role) -> UserType | None:
    """Return the account type a client moves to on joining a firm.

    Only clients are promoted; firm admins become ``admin`` and every other
    firm role becomes ``lawyer``. Returns None when nothing changes.
    """
    if current != UserType.CLIENT:
        return None
    return UserType.ADMIN if role == Role.FIRM_ADMIN else UserType.LAWYER


class MembershipService:
    """Service for law firm and membership management.

    Every write is re-read by the permission layer on the next request;
    nothing here caches roles or permissions.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.firm_repo = LawFirmRepository(db)
        self.member_repo = MembershipRepository(db)
        self.user_repo = UserRepository(db)

    async def get_firm(self, firm_id: str) -> LawFirm:
        """Get a law firm by ID.

        Raises:
            NotFoundError: If the firm does not exist
        """
        firm = await self.firm_repo.get_by_id(firm_id)
        if firm is None:
            raise NotFoundError(
                "Law firm not found",
                resource="law_firm",
                resource_id=firm_id,
            )
        return firm

    async def get_user(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=user_id,
            )
        return user

    async def create_firm(self, data: LawFirmCreate, owner_id: str) -> LawFirm:
        """Register a law firm and make its creator the firm admin.

        Args:
            data: Firm details
            owner_id: The user registering the firm

        Returns:
            The created firm

        Raises:
            NotFoundError: If the owner does not exist
            ConflictError: If the license number is already registered
        """
        owner = await self.get_user(owner_id)
        existing = await self.firm_repo.get_by_license(data.license_number)
        if existing:
            raise ConflictError(
                "License number already registered",
                error_code="law_firm_exists",
                details={"license_number": data.license_number},
            )

        firm = await self.firm_repo.create(
            LawFirm(
                name=data.name,
                license_number=data.license_number,
                email=data.email,
                phone=data.phone,
            )
        )
        await self._create_membership(firm.id, owner, Role.FIRM_ADMIN, [])
        logger.info("law_firm_created", firm_id=firm.id, owner_id=owner.id)
        return firm

    async def list_members(self, firm_id: str) -> list[FirmMembership]:
        """List a firm's members, oldest first.

        Raises:
            NotFoundError: If the firm does not exist
        """
        await self.get_firm(firm_id)
        return await self.member_repo.list_for_firm(firm_id)

    async def add_member(self, firm_id: str, data: MemberAdd) -> FirmMembership:
        """Add a user to a firm.

        A ``client`` account joining a firm is promoted to ``lawyer``, or to
        ``admin`` when joining as firm admin.

        Args:
            firm_id: The firm
            data: Member, role and extra permissions

        Returns:
            The created membership

        Raises:
            NotFoundError: If the firm or the user does not exist
            ConflictError: If the user is already a member
        """
        await self.get_firm(firm_id)

        user = await self.get_user(data.user_id)

        existing = await self.member_repo.get(firm_id, user.id)
        if existing:
            raise ConflictError(
                "User is already a member of this firm",
                error_code="membership_exists",
                details={"user_id": user.id, "firm_id": firm_id},
            )

        membership = await self._create_membership(firm_id, user, data.role, data.permissions)
        logger.info(
            "firm_member_added",
            firm_id=firm_id,
            member_id=user.id,
            role=data.role.value,
        )
        return membership

    async def get_member(self, firm_id: str, user_id: str) -> FirmMembership:
        """Get one membership.

        Raises:
            NotFoundError: If the user is not a member of the firm
        """
        membership = await self.member_repo.get(firm_id, user_id)
        if membership is None:
            raise NotFoundError(
                "Membership not found",
                resource="membership",
                resource_id=f"{firm_id}/{user_id}",
            )
        return membership

    async def update_member(
        self, firm_id: str, user_id: str, data: MemberUpdate
    ) -> FirmMembership:
        """Change a member's role and/or extra permissions.

        Raises:
            NotFoundError: If the user is not a member of the firm
        """
        membership = await self.get_member(firm_id, user_id)

        if data.role is not None:
            membership.role = data.role
        if data.permissions is not None:
            membership.permissions = [p.value for p in data.permissions]

        membership = await self.member_repo.update(membership)
        logger.info(
            "firm_member_updated",
            firm_id=firm_id,
            member_id=user_id,
            role=membership.role.value,
        )
        return membership

    async def change_role(self, firm_id: str, user_id: str, role: Role) -> FirmMembership:
        """Change a member's role, keeping extra permissions.

        Raises:
            NotFoundError: If the user is not a member of the firm
        """
        return await self.update_member(firm_id, user_id, MemberUpdate(role=role))

    async def remove_member(self, firm_id: str, user_id: str) -> None:
        """Remove a user from a firm.

        The user's account type is left as it is.

        Raises:
            NotFoundError: If the user is not a member of the firm
        """
        membership = await self.get_member(firm_id, user_id)
        await self.member_repo.delete(membership)
        logger.info("firm_member_removed", firm_id=firm_id, member_id=user_id)

    async def _create_membership(
        self,
        firm_id: str,
        user: User,
        role: Role,
        permissions: list[Permission],
    ) -> FirmMembership:
        membership = await self.member_repo.create(
            FirmMembership(
                law_firm_id=firm_id,
                user_id=user.id,
                role=role,
                permissions=[p.value for p in permissions],
            )
        )

        new_type = promoted_user_type(user.user_type, role)
        if new_type is not None:
            await self.user_repo.set_user_type(user, new_type)
            logger.info("user_type_promoted", user_id=user.id, user_type=new_type.value)

        return membership


# Type alias for dependency injection
MembershipSvc = Annotated[MembershipService, Depends(MembershipService)]
