"""Shared fixtures: a fresh SQLite database per test and an HTTP client bound to it."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncIterator, Callable  # noqa: E402
from decimal import Decimal  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from quickbite.database import Base, get_db  # noqa: E402
from quickbite.main import app  # noqa: E402
from quickbite.schemas.menu_item import MenuItemCreate  # noqa: E402

API = "/api/v1/menu-items"


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quickbite.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    async def _get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    # 500 responses are asserted on, so app exceptions must not propagate
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_item() -> Callable[..., MenuItemCreate]:
    def _make(**overrides: Any) -> MenuItemCreate:
        data: dict[str, Any] = {
            "name": "Margherita Pizza",
            "description": "Classic tomato & mozzarella",
            "price": Decimal("12.99"),
            "category": "Main Course",
            "dietary_tag": "Vegetarian",
        }
        data.update(overrides)
        return MenuItemCreate(**data)

    return _make
