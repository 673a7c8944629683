"""Core classes and mixins for DB connections"""

from contextlib import asynccontextmanager
from typing import Optional, cast
from typing import Callable, AsyncContextManager

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from components.core import config

settings = config.get_settings()
Base = declarative_base()
SessionMaker = Callable[[], AsyncContextManager[AsyncSession]]


class DatabaseManager:
    """Owns the async engine; opened at startup and disposed at shutdown."""

    def __init__(self, url: Optional[str] = None, engine: Optional[AsyncEngine] = None) -> None:
        """Initialize DatabaseManager with optional url or engine for testing."""
        self.url = url or settings.async_db_url
        self.engine: Optional[AsyncEngine] = engine
        self._session_maker: Optional[SessionMaker] = None

    def _create_engine(self) -> AsyncEngine:
        """Create async engine for the configured database."""
        if self.url.startswith("sqlite"):
            return create_async_engine(self.url, echo=settings.DEBUG)
        return create_async_engine(
            self.url,
            echo=settings.DEBUG,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=5,
            max_overflow=10,
        )

    def open(self) -> None:
        """Create the engine if it is not created yet."""
        if self.engine is None:
            self.engine = self._create_engine()

    async def close(self) -> None:
        """Dispose the engine and drop the cached session factory."""
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self._session_maker = None

    async def create_all(self) -> None:
        """Create all tables registered on Base."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> SessionMaker:
        """Returns SessionMaker for database sessions."""
        if not self.engine:
            raise ValueError("Database engine wasn't initialized")

        if self._session_maker is None:
            self._session_maker = cast(
                SessionMaker,
                sessionmaker(
                    self.engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autocommit=False,
                    autoflush=False,
                ),
            )
        return self._session_maker

    @asynccontextmanager
    async def get_db(self) -> AsyncContextManager[AsyncSession]:
        """Get database session context manager."""
        async_session = self.get_session()
        async with async_session() as session:
            try:
                yield session
            finally:
                await session.close()
