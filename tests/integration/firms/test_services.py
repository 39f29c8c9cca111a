"""Integration tests for MembershipService."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mirath.core.errors import ConflictError, NotFoundError
from mirath.core.permissions.roles import Permission, Role, UserType
from mirath.modules.firms.repos import MembershipRepository
from mirath.modules.firms.schemas import LawFirmCreate, MemberAdd, MemberUpdate
from mirath.modules.firms.services import MembershipService, promoted_user_type


pytestmark = pytest.mark.integration


@pytest.fixture
def service(db: AsyncSession) -> MembershipService:
    return MembershipService(db)


class TestPromotion:
    """Tests for the user type promotion rule."""

    @pytest.mark.parametrize(
        ("current", "role", "expected"),
        [
            ("client", Role.FIRM_ADMIN, UserType.ADMIN),
            ("client", Role.LAWYER, UserType.LAWYER),
            ("client", Role.SUPPORT, UserType.LAWYER),
            ("lawyer", Role.FIRM_ADMIN, None),
            ("super_admin", Role.LAWYER, None),
        ],
    )
    def test_promoted_user_type(
        self, current: str, role: Role, expected: UserType | None
    ) -> None:
        assert promoted_user_type(current, role) == expected


class TestCreateFirm:
    """Tests for law firm registration."""

    async def test_creator_becomes_firm_admin(
        self, service: MembershipService, db: AsyncSession, client_user
    ) -> None:
        data = LawFirmCreate(
            name="Al Noor Advocates",
            license_number="DXB-123456",
            email="office@alnoor.ae",
        )

        firm = await service.create_firm(data, client_user.id)

        membership = await MembershipRepository(db).find_membership(client_user.id, firm.id)
        assert membership is not None
        assert membership.role is Role.FIRM_ADMIN
        assert client_user.user_type == UserType.ADMIN
        assert firm.is_active is True
        assert firm.subscription_tier == "starter"

    async def test_duplicate_license_rejected(
        self, service: MembershipService, firm, client_user
    ) -> None:
        data = LawFirmCreate(
            name="Copycat LLP",
            license_number=firm.license_number,
            email="copy@example.ae",
        )

        with pytest.raises(ConflictError) as exc_info:
            await service.create_firm(data, client_user.id)

        assert exc_info.value.error_code == "law_firm_exists"

    async def test_unknown_owner_rejected(self, service: MembershipService) -> None:
        data = LawFirmCreate(name="Ghost", license_number="X-1", email="ghost@example.ae")

        with pytest.raises(NotFoundError):
            await service.create_firm(data, "no-such-user")


class TestAddMember:
    """Tests for adding members."""

    async def test_add_member_promotes_client(
        self, service: MembershipService, firm, client_user
    ) -> None:
        membership = await service.add_member(
            firm.id,
            MemberAdd(
                user_id=client_user.id,
                role=Role.LAWYER,
                permissions=[Permission.WILL_FINALIZE],
            ),
        )

        assert membership.role is Role.LAWYER
        assert membership.permissions == ["will:finalize"]
        assert client_user.user_type == UserType.LAWYER

    async def test_add_member_keeps_existing_type(
        self, service: MembershipService, firm, make_user
    ) -> None:
        root = await make_user(UserType.SUPER_ADMIN)

        await service.add_member(firm.id, MemberAdd(user_id=root.id, role=Role.SUPPORT))

        assert root.user_type == UserType.SUPER_ADMIN

    async def test_duplicate_membership_rejected(
        self, service: MembershipService, firm, lawyer
    ) -> None:
        with pytest.raises(ConflictError) as exc_info:
            await service.add_member(firm.id, MemberAdd(user_id=lawyer.id, role=Role.SUPPORT))

        assert exc_info.value.error_code == "membership_exists"

    async def test_unknown_firm(self, service: MembershipService, client_user) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await service.add_member(
                "no-such-firm", MemberAdd(user_id=client_user.id, role=Role.LAWYER)
            )

        assert exc_info.value.details["resource"] == "law_firm"

    async def test_unknown_user(self, service: MembershipService, firm) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await service.add_member(firm.id, MemberAdd(user_id="nobody", role=Role.LAWYER))

        assert exc_info.value.details["resource"] == "user"


class TestChangeAndRemove:
    """Tests for changing roles and removing members."""

    async def test_change_role_keeps_extra_permissions(
        self, service: MembershipService, firm, make_user, add_membership
    ) -> None:
        user = await make_user(UserType.LAWYER)
        await add_membership(firm, user, Role.LAWYER, [Permission.BILLING_VIEW])

        membership = await service.change_role(firm.id, user.id, Role.SENIOR_LAWYER)

        assert membership.role is Role.SENIOR_LAWYER
        assert membership.permissions == ["billing:view"]

    async def test_update_member_replaces_permissions(
        self, service: MembershipService, firm, lawyer
    ) -> None:
        membership = await service.update_member(
            firm.id,
            lawyer.id,
            MemberUpdate(permissions=[Permission.DOCUMENT_SHARE]),
        )

        assert membership.role is Role.LAWYER
        assert membership.permissions == ["document:share"]

    async def test_change_role_for_non_member(
        self, service: MembershipService, firm, client_user
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.change_role(firm.id, client_user.id, Role.LAWYER)

    async def test_remove_member(
        self, service: MembershipService, db: AsyncSession, firm, lawyer
    ) -> None:
        await service.remove_member(firm.id, lawyer.id)

        assert await MembershipRepository(db).find_membership(lawyer.id, firm.id) is None
        assert lawyer.user_type == UserType.LAWYER

    async def test_remove_non_member(
        self, service: MembershipService, firm, client_user
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.remove_member(firm.id, client_user.id)

    async def test_list_members_oldest_first(
        self, service: MembershipService, firm, firm_admin, lawyer
    ) -> None:
        members = await service.list_members(firm.id)

        assert [m.user_id for m in members] == [firm_admin.id, lawyer.id]
