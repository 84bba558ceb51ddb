"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SEED_DEFAULT_CATALOG", "false")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.models import Base
from src.services.catalog import CommissionCatalog
from src.services.commission import CommissionEngine
from src.utils.clock import FrozenClock

from factories import RUN_MOMENT, make_policy, make_schema


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def reference_catalog() -> CommissionCatalog:
    """Three 2023 schemas and four quarter policies."""
    return CommissionCatalog(
        [
            make_schema(),
            make_schema(id="schema2", name="Premium Schema 2023", account_type="premium"),
            make_schema(id="schema3", name="Enterprise Schema 2023", account_type="enterprise"),
        ],
        [
            make_policy(),
            make_policy(id="policy2", min_price=500_001, max_price=1_000_000, commission=3.0),
            make_policy(id="policy3", commission_schema_id="schema2", max_price=1_000_000, commission=3.5),
            make_policy(id="policy4", commission_schema_id="schema3", max_price=2_000_000, commission=4.0),
        ],
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(RUN_MOMENT)


@pytest.fixture
def engine(reference_catalog, clock) -> CommissionEngine:
    return CommissionEngine(reference_catalog, clock=clock)
