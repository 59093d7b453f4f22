# backend/tests/conftest.py
import os
import shutil
import tempfile
import uuid
from decimal import Decimal

import pytest

# configure the app BEFORE anything imports papertrade.core.config
TEST_DIR = tempfile.mkdtemp(prefix="papertrade_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(TEST_DIR, 'app.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PRICE_FEED_AUTOSTART"] = "false"
os.environ["PRICE_SEED"] = "42"
os.environ.pop("REDIS_URL", None)

from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

import papertrade.models  # noqa: E402,F401
from papertrade.services.portfolio_store import PortfolioStore  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _cleanup_test_dir():
    yield
    shutil.rmtree(TEST_DIR, ignore_errors=True)


# ---------- service-level fixtures ----------

@pytest.fixture
async def session(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'services.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with AsyncSession(engine, expire_on_commit=False) as s:
        yield s

    await engine.dispose()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
async def portfolio_user(session, user_id):
    """User with a materialized default portfolio (100000 cash)"""
    await PortfolioStore(session, starting_cash=Decimal("100000")).create_portfolio(user_id)
    return user_id


@pytest.fixture
def prices():
    """Mutable price table; tests move prices by assigning to it"""
    return {"AAPL": Decimal("150"), "MSFT": Decimal("300"), "TSLA": Decimal("200")}


# ---------- API fixtures ----------

@pytest.fixture
def client():
    # import AFTER env is configured
    from fastapi.testclient import TestClient
    from papertrade.main import app

    # context manager runs lifespan (tables, price feed)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    email = f"trader_{uuid.uuid4().hex[:8]}@example.com"
    password = "correct-horse-battery"

    r = client.post("/auth/register", json={"email": email, "password": password})
    assert r.status_code == 201

    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
