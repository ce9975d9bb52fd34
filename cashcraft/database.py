from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from cashcraft.config import Settings

# Base for all models
Base = declarative_base()


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def create_sessionmaker(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def create_tables(engine: AsyncEngine) -> None:
    # models must be imported so their tables are registered on Base.metadata
    import cashcraft.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Yields a session bound to the engine the running app was started with
async def get_db(request: Request):
    db = request.app.state.sessionmaker()
    try:
        yield db
    finally:
        await db.close()
