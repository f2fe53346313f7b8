from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from amctrack.base.clock import Clock, system_clock
from amctrack.base.db import async_session


async def get_session() -> AsyncGenerator[AsyncSession]:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_clock() -> Clock:
    return system_clock
