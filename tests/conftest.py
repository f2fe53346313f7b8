from collections.abc import AsyncGenerator, Generator
from datetime import date

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from amctrack.base.clock import FixedClock
from amctrack.base.dependencies import get_clock, get_session
from amctrack.base.models import BaseDbModel

TODAY = date(2026, 10, 19)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture(scope="session")
def postgres_url() -> Generator[str]:
    with PostgresContainer("postgres:17") as pg:
        # Convert sync URL to async (postgresql:// -> postgresql+asyncpg://)
        sync_url = pg.get_connection_url()
        yield sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")


@pytest.fixture
async def db_engine(postgres_url: str) -> AsyncGenerator[AsyncEngine]:
    # Import all models so metadata knows about them
    import amctrack.customer.models  # noqa: F401
    import amctrack.equipment.models  # noqa: F401
    import amctrack.events.models  # noqa: F401
    import amctrack.maintenance.models  # noqa: F401

    engine = create_async_engine(postgres_url)
    async with engine.begin() as conn:
        await conn.run_sync(BaseDbModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(BaseDbModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def app(db_session: AsyncSession, clock: FixedClock) -> FastAPI:
    from amctrack.customer.router import router as customer_router
    from amctrack.equipment.router import router as equipment_router
    from amctrack.events.router import router as events_router
    from amctrack.maintenance.router import router as maintenance_router

    test_app = FastAPI()
    test_app.include_router(customer_router)
    test_app.include_router(equipment_router)
    test_app.include_router(maintenance_router)
    test_app.include_router(events_router)

    async def override_session() -> AsyncSession:  # type: ignore[misc]
        yield db_session  # type: ignore[misc]

    test_app.dependency_overrides[get_session] = override_session
    test_app.dependency_overrides[get_clock] = lambda: clock
    return test_app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
