from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from chatrelay.core.config import settings
from chatrelay.db.models import Base
from typing import AsyncGenerator

async_engine = create_async_engine(settings.DATABASE_URL_ASYNC, echo=False)
AsyncSessionLocal = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables(engine=async_engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
