import os

# Settings are read at import time; point them at throwaway values first.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_JWT_SECRET = "test-jwt-secret-for-promptdepot"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["SUPABASE_URL"] = ""

from dataclasses import dataclass  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402

from main import create_application  # noqa: E402
from promptdepot.core.config import Settings  # noqa: E402
from promptdepot.db.session import Database  # noqa: E402
from promptdepot.models import Tenant, User  # noqa: E402


def make_token(
    subject: str | None,
    email: str | None = None,
    secret: str = TEST_JWT_SECRET,
    expires_in: timedelta = timedelta(hours=1),
    **claims,
) -> str:
    """Mint an access token shaped like the identity provider's."""
    now = datetime.now(timezone.utc)
    payload = {
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    if subject is not None:
        payload["sub"] = subject
    if email is not None:
        payload["email"] = email
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(subject: str, email: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(subject, email)}"}


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SUPABASE_JWT_SECRET=TEST_JWT_SECRET,
        SUPABASE_URL="",
        HIERARCHY_MAX_DEPTH=4,
    )


# ── Service-level fixtures ────────────────────────────────────────────────────

@pytest.fixture
async def database():
    """A fresh in-memory database per test."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture
def make_user(session):
    async def _make_user(handle: str) -> User:
        user = User(external_id=f"ext-{handle}", email=f"{handle}@acme.io", name=handle.title())
        session.add(user)
        await session.flush()
        return user

    return _make_user


@pytest.fixture
async def tenant(session) -> Tenant:
    t = Tenant(name="Acme")
    session.add(t)
    await session.flush()
    return t


# ── HTTP fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
async def app(settings):
    application = create_application(settings)
    await application.state.db.create_all()
    yield application
    await application.state.db.dispose()


@pytest.fixture
async def client(app):
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@dataclass
class SignedUp:
    user: dict
    headers: dict[str, str]
    tenant: dict | None = None


@pytest.fixture
def signup(client):
    """Register a local user through the API and return its bearer headers."""

    async def _signup(handle: str, tenant_name: str | None = None) -> SignedUp:
        external_id = f"ext-{handle}"
        email = f"{handle}@acme.io"
        body = {"externalId": external_id, "email": email, "name": handle.title()}
        if tenant_name:
            body["tenantName"] = tenant_name
        response = await client.post("/api/auth/users", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return SignedUp(
            user=data["user"],
            tenant=data.get("tenant"),
            headers=auth_headers(external_id, email),
        )

    return _signup
