"""Integration tests for the membership repository."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mirath.core.permissions.evaluator import PermissionEvaluator
from mirath.core.permissions.resolver import MembershipResolver
from mirath.core.permissions.roles import Permission, Role, UserType
from mirath.modules.firms.repos import LawFirmRepository, MembershipRepository


pytestmark = pytest.mark.integration


class TestMembershipRepository:
    """Tests for MembershipRepository as a MembershipStore."""

    async def test_add_then_find_round_trip(
        self, db: AsyncSession, firm, make_user, add_membership
    ) -> None:
        """A stored membership reads back with the same role and extra grants."""
        user = await make_user(UserType.LAWYER)
        await add_membership(
            firm, user, Role.SENIOR_LAWYER, [Permission.BILLING_MANAGE, Permission.AUDIT_VIEW]
        )

        membership = await MembershipRepository(db).find_membership(user.id, firm.id)

        assert membership is not None
        assert membership.user_id == user.id
        assert membership.firm_id == firm.id
        assert membership.role is Role.SENIOR_LAWYER
        assert membership.permissions == ("billing:manage", "audit:view")

    async def test_find_membership_missing(self, db: AsyncSession, firm, client_user) -> None:
        assert await MembershipRepository(db).find_membership(client_user.id, firm.id) is None

    async def test_new_user_and_firm_have_no_memberships(
        self, db: AsyncSession, firm, client_user
    ) -> None:
        """Fresh users and firms start out with no membership rows."""
        repo = MembershipRepository(db)

        assert await repo.find_memberships_for_user(client_user.id) == []
        assert await repo.list_for_firm(firm.id) == []

    async def test_get_user_type(self, db: AsyncSession, make_user) -> None:
        repo = MembershipRepository(db)
        root = await make_user(UserType.SUPER_ADMIN)
        odd = await make_user(UserType.CLIENT)
        odd.user_type = "legacy_value"
        await db.flush()

        assert await repo.get_user_type(root.id) is UserType.SUPER_ADMIN
        assert await repo.get_user_type(odd.id) is UserType.CLIENT
        assert await repo.get_user_type("missing") is None

    async def test_memberships_for_user_ordered_by_join(
        self, db: AsyncSession, make_firm, make_user, add_membership
    ) -> None:
        user = await make_user(UserType.LAWYER)
        newer, older = await make_firm(), await make_firm()
        now = datetime.now(UTC)
        await add_membership(newer, user, Role.LAWYER, joined_at=now - timedelta(days=1))
        await add_membership(older, user, Role.SUPPORT, joined_at=now - timedelta(days=40))

        memberships = await MembershipRepository(db).find_memberships_for_user(user.id)
        primary = await MembershipResolver(MembershipRepository(db)).resolve(user.id)

        assert [m.firm_id for m in memberships] == [older.id, newer.id]
        assert primary is not None
        assert primary.firm_id == older.id

    async def test_evaluator_against_database(
        self, db: AsyncSession, firm, lawyer, client_user
    ) -> None:
        evaluator = PermissionEvaluator(MembershipRepository(db))

        assert await evaluator.has_permission(lawyer.id, Permission.MATTER_CREATE, firm.id)
        assert not await evaluator.has_permission(client_user.id, Permission.MATTER_VIEW, firm.id)
        assert await evaluator.effective_role(lawyer.id, firm.id) is Role.LAWYER

    async def test_list_update_delete(
        self, db: AsyncSession, firm, firm_admin, lawyer
    ) -> None:
        repo = MembershipRepository(db)

        rows = await repo.list_for_firm(firm.id)
        assert {row.user_id for row in rows} == {firm_admin.id, lawyer.id}

        row = await repo.get(firm.id, lawyer.id)
        assert row is not None
        row.role = Role.SENIOR_LAWYER
        await repo.update(row)
        updated = await repo.find_membership(lawyer.id, firm.id)
        assert updated is not None
        assert updated.role is Role.SENIOR_LAWYER

        await repo.delete(row)
        assert await repo.find_membership(lawyer.id, firm.id) is None


class TestLawFirmRepository:
    """Tests for LawFirmRepository."""

    async def test_lookup_by_license(self, db: AsyncSession, firm) -> None:
        repo = LawFirmRepository(db)

        found = await repo.get_by_license(firm.license_number)

        assert found is not None
        assert found.id == firm.id
        assert await repo.get_by_license("nope") is None
        assert await repo.get_by_id(firm.id) is found
