"""Global test fixtures."""

import os

# Must be set before app.core.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.database.engine import build_engine, init_db  # noqa: E402
from app.features.users.directory import SqlUserDirectory  # noqa: E402
from tests.fakes import ORG, build_org, profile  # noqa: E402


@pytest.fixture
def org():
    return build_org()


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def seeded(session_factory):
    """The reference organization written to the database."""
    async with session_factory() as session:
        directory = SqlUserDirectory(session)
        for r in ORG:
            await directory.add({**r.model_dump(), **profile(r.id)})
        await session.commit()
    return session_factory
