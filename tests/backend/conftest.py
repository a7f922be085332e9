import datetime as dt
import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.config import Settings
from app.core import db as db_module
from app.main import app
from app.models.user import User
from app.services.account_service import build_account_service
from app.services.notifier_base import Message, NotificationError, Notifier


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


class RecordingNotifier(Notifier):
    """Keeps every message in memory; can be told to fail."""

    def __init__(self):
        self.outbox: list[Message] = []
        self.fail = False

    async def send(self, message: Message) -> None:
        if self.fail:
            raise NotificationError("mail transport down")
        self.outbox.append(message)

    def is_available(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return "Recording"

    def last_code(self, to: str) -> str:
        """Pull the verification code out of the latest message sent to `to`."""
        for message in reversed(self.outbox):
            if message.to == to and "verification code is " in message.body:
                return message.body.split("verification code is ", 1)[1].split(".", 1)[0]
        raise AssertionError(f"no verification code mailed to {to}")

    def last_link(self, to: str) -> str:
        for message in reversed(self.outbox):
            if message.to == to and "reset your password: " in message.body:
                return message.body.split("reset your password: ", 1)[1].split()[0]
        raise AssertionError(f"no reset link mailed to {to}")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: dt.datetime | None = None):
        self.now = start or dt.datetime.now(dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += dt.timedelta(**kwargs)


def make_settings(**overrides) -> Settings:
    values = {
        "jwt_secret": "test-secret",
        "notifier_backend": "console",
        "public_base_url": "http://testserver",
    }
    values.update(overrides)
    return Settings(**values)


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database for tests that talk to the ORM directly."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accounts(db, notifier, clock):
    """AccountService wired to the test database, a recording notifier and a fake clock."""
    return build_account_service(make_settings(), notifier=notifier, clock=clock)


@pytest_asyncio.fixture
async def client(db, notifier):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Startup hooks are skipped, so the account service is installed here.
    """
    app.state.accounts = build_account_service(make_settings(), notifier=notifier)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_admin():
    """
    Factory fixture to create admin users directly via ORM for privileged endpoints.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user = User(
            username=f"admin_{uuid.uuid4().hex[:6]}",
            email=f"admin_{uuid.uuid4().hex[:6]}@example.com",
            is_admin=True,
            is_active=True,
        )
        user.set_password(password)
        await user.save()
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create regular (already confirmed) users directly.
    """

    async def _create_user(password: str = "UserPass!23", active: bool = True) -> tuple[User, str]:
        user = User(
            username=f"user_{uuid.uuid4().hex[:6]}",
            email=f"{uuid.uuid4().hex[:6]}@example.com",
            is_active=active,
        )
        user.set_password(password)
        await user.save()
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
