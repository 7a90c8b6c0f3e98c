import os
from typing import AsyncGenerator

# Settings are read once and cached; prime the environment before anything
# from libs/ or services/ is imported. Tests run against in-memory SQLite.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_store"
os.environ["PESAPAL_ENV"] = "sandbox"
os.environ["PESAPAL_CONSUMER_KEY"] = "test-consumer-key"
os.environ["PESAPAL_CONSUMER_SECRET"] = "test-consumer-secret"
os.environ["PESAPAL_IPN_ID"] = "test-ipn-id"
os.environ.pop("SMTP_USERNAME", None)
os.environ.pop("SMTP_PASSWORD", None)

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from libs.common.config import get_settings  # noqa: E402
from libs.db.base import Base  # noqa: E402

# Import all models so metadata includes every table
from services.store_service import models as _store_models  # noqa: E402,F401

# Clear cached settings to reload with the test env vars
get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory database per test. StaticPool keeps every session on
    the one connection that holds the data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session configured like the application's."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()
