"""Law firm and membership repositories."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mirath.core.permissions.resolver import Membership
from mirath.core.permissions.roles import UserType, coerce_user_type
from mirath.modules.firms.models import FirmMembership, LawFirm
from mirath.modules.users.models import User


def to_membership(row: FirmMembership) -> Membership:
    """Convert a membership row to the record the permission layer uses."""
    return Membership(
        user_id=row.user_id,
        firm_id=row.law_firm_id,
        role=row.role,
        permissions=tuple(row.permissions or ()),
        joined_at=row.joined_at,
    )


class LawFirmRepository:
    """Repository for LawFirm database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, firm: LawFirm) -> LawFirm:
        self.session.add(firm)
        await self.session.flush()
        await self.session.refresh(firm)
        return firm

    async def get_by_id(self, firm_id: str) -> LawFirm | None:
        stmt = select(LawFirm).where(LawFirm.id == firm_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_license(self, license_number: str) -> LawFirm | None:
        stmt = select(LawFirm).where(LawFirm.license_number == license_number)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class MembershipRepository:
    """Repository for firm memberships.

    Implements the read side the permission layer needs
    (``get_user_type``, ``find_membership``, ``find_memberships_for_user``)
    on top of plain row access used by the membership service.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # MembershipStore
    # ------------------------------------------------------------------

    async def get_user_type(self, user_id: str) -> UserType | None:
        stmt = select(User.user_type).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return coerce_user_type(row[0])

    async def find_membership(self, user_id: str, firm_id: str) -> Membership | None:
        row = await self.get(firm_id, user_id)
        return to_membership(row) if row is not None else None

    async def find_memberships_for_user(self, user_id: str) -> Sequence[Membership]:
        stmt = (
            select(FirmMembership)
            .where(FirmMembership.user_id == user_id)
            .order_by(FirmMembership.joined_at)
        )
        result = await self.session.execute(stmt)
        return [to_membership(row) for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    async def get(self, firm_id: str, user_id: str) -> FirmMembership | None:
        stmt = select(FirmMembership).where(
            FirmMembership.law_firm_id == firm_id,
            FirmMembership.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_firm(self, firm_id: str) -> list[FirmMembership]:
        """List a firm's memberships, oldest first, with their users loaded."""
        stmt = (
            select(FirmMembership)
            .where(FirmMembership.law_firm_id == firm_id)
            .order_by(FirmMembership.joined_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, membership: FirmMembership) -> FirmMembership:
        self.session.add(membership)
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def update(self, membership: FirmMembership) -> FirmMembership:
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def delete(self, membership: FirmMembership) -> None:
        await self.session.delete(membership)
        await self.session.flush()
