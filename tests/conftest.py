import os

# Settings are read at import time; configure before anything imports curateurs.
os.environ.setdefault("SECRET", "test-secret-for-the-suite-only")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["EMAIL_TRANSPORT"] = "dummy"
os.environ.setdefault("BASE_URL", "http://testserver")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from curateurs.database import Base, engine, get_db  # noqa: E402
from curateurs.models import User  # noqa: E402
from curateurs.permissions import UserRole, permissions_for_role  # noqa: E402
from curateurs.schemas import EditorSession  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Create the schema on the shared in-memory engine, drop it afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(init_test_db):  # noqa: ARG001
    async for session in get_db():
        yield session


def _make_user(role: UserRole, email: str, name: str) -> User:
    return User(
        id=f"user-{role.value}",
        name=name,
        email=email,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=role == UserRole.admin,
        is_verified=True,
        role=role,
        permissions=permissions_for_role(role),
    )


@pytest.fixture
def admin_user() -> User:
    return _make_user(UserRole.admin, "admin@lescurateurs.fr", "Camille Admin")


@pytest.fixture
def contributor_user() -> User:
    return _make_user(UserRole.contributor, "plume@lescurateurs.fr", "Louise Plume")


@pytest.fixture
def admin_session(admin_user) -> EditorSession:
    return EditorSession.from_user(admin_user)


@pytest.fixture
def contributor_session(contributor_user) -> EditorSession:
    return EditorSession.from_user(contributor_user)


@pytest_asyncio.fixture()
async def make_client(db_session):
    """Build an HTTP client for the real app, authenticated as ``user``."""
    from curateurs.main import app
    from curateurs.users import current_active_user

    clients = []

    async def get_test_db():
        yield db_session

    def _factory(user: User) -> AsyncClient:
        app.dependency_overrides[get_db] = get_test_db
        app.dependency_overrides[current_active_user] = lambda: user
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()
