import asyncio
import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from lifeline.config import get_settings
from lifeline.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)
settings = get_settings()

# SQLite doesn't support pool settings
engine_kwargs = {
    "echo": settings.database_echo,
}

if not settings.database_url.startswith("sqlite"):
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    })
else:
    # SQLite needs check_same_thread=False for async
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_async_engine(settings.database_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


class DatabaseState:
    """Tracks whether the background connector has reached the database."""

    def __init__(self):
        self.connected = False
        self.last_error: str | None = None

    def status(self) -> str:
        return "connected" if self.connected else "disconnected"


db_state = DatabaseState()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    if not db_state.connected:
        raise StoreUnavailableError()

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    # Importing the models registers every table on Base.metadata
    import lifeline.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text("SELECT 1"))


async def connect() -> None:
    """Create tables and mark the store reachable. Raises if it is not."""
    await init_db()
    db_state.connected = True
    db_state.last_error = None
    logger.info("Database connected: %s", engine.url.render_as_string(hide_password=True))


async def connect_with_retry(delay_seconds: float | None = None) -> None:
    """Keep trying to reach the database until it answers.

    Runs as a background task for the lifetime of the app; individual
    requests are never retried, they fail fast with StoreUnavailableError.
    """
    delay = delay_seconds if delay_seconds is not None else settings.db_retry_delay_seconds

    while not db_state.connected:
        try:
            await connect()
        except (OperationalError, InterfaceError, OSError) as e:
            db_state.last_error = str(e)
            logger.warning("Database unavailable. Retrying in %.0fs. Reason: %s", delay, e)
            await asyncio.sleep(delay)


async def close_db() -> None:
    db_state.connected = False
    await engine.dispose()
    logger.info("Database connection closed")
