"""Database Connection Management"""
from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from switchboard.models.message import Base

logger = structlog.get_logger()


class Database:
    """Owns the async engine and session factory for the message store"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    async def init(self) -> None:
        """Create the engine and tables"""
        database = make_url(self.url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_async_engine(self.url, echo=self.echo)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialized", url=self.url)
        except Exception as e:
            logger.error("Failed to initialize database", error=str(e))
            raise

    async def close(self) -> None:
        """Close database connections"""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            logger.info("Database connections closed")

    def session(self) -> AsyncSession:
        if self.session_maker is None:
            raise RuntimeError("Database not initialized")
        return self.session_maker()
