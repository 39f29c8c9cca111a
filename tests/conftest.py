"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mirath.core.auth.backend import create_access_token
from mirath.core.database import Base, get_db
from mirath.core.permissions.roles import Permission, Role, UserType
from mirath.main import create_app

# Import all models to ensure they're registered with Base.metadata
from mirath.modules.firms.models import FirmMembership, LawFirm
from mirath.modules.firms.repos import MembershipRepository
from mirath.modules.users.models import User
from tests.factories.firm import LawFirmFactory
from tests.factories.user import UserFactory


# Integration tests run against a private in-memory SQLite database
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests.

    Each test gets a fresh in-memory database, so nothing leaks between
    tests.
    """
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def app(db: AsyncSession):
    """Create test application instance."""
    application = create_app()

    # Override database dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"


# ============================================================
# User, Firm and Membership Fixtures
# ============================================================


@pytest.fixture
def make_user(db: AsyncSession) -> Callable:
    """Return a coroutine that persists a user of the given type."""

    async def _make_user(user_type: UserType = UserType.CLIENT, **kwargs) -> User:
        user = UserFactory.build(user_type=user_type.value, **kwargs)
        db.add(user)
        await db.flush()
        return user

    return _make_user


@pytest.fixture
def make_firm(db: AsyncSession) -> Callable:
    """Return a coroutine that persists a law firm."""

    async def _make_firm(**kwargs) -> LawFirm:
        firm = LawFirmFactory.build(**kwargs)
        db.add(firm)
        await db.flush()
        return firm

    return _make_firm


@pytest.fixture
def add_membership(db: AsyncSession) -> Callable:
    """Return a coroutine that persists a membership row."""

    async def _add_membership(
        firm: LawFirm,
        user: User,
        role: Role,
        permissions: list[Permission] | None = None,
        **kwargs,
    ) -> FirmMembership:
        return await MembershipRepository(db).create(
            FirmMembership(
                law_firm_id=firm.id,
                user_id=user.id,
                role=role,
                permissions=[p.value for p in permissions or []],
                **kwargs,
            )
        )

    return _add_membership


@pytest.fixture
async def firm(make_firm) -> LawFirm:
    """Create a test law firm."""
    return await make_firm()


@pytest.fixture
async def firm_admin(make_user, add_membership, firm: LawFirm) -> User:
    """Create a user who is firm admin of ``firm``."""
    user = await make_user(UserType.ADMIN)
    await add_membership(firm, user, Role.FIRM_ADMIN)
    return user


@pytest.fixture
async def lawyer(make_user, add_membership, firm: LawFirm) -> User:
    """Create a user who is a lawyer in ``firm``."""
    user = await make_user(UserType.LAWYER)
    await add_membership(firm, user, Role.LAWYER)
    return user


@pytest.fixture
async def client_user(make_user) -> User:
    """Create a client account with no memberships."""
    return await make_user(UserType.CLIENT)


@pytest.fixture
async def super_admin(make_user) -> User:
    """Create a super admin account with no memberships."""
    return await make_user(UserType.SUPER_ADMIN)


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a function building authorization headers for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(user_id=user.id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
