"""Database initialization and dependency injection."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import fastapi
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.database import DatabaseManager
# Import all models to ensure they're registered
import components.user.models
import components.account_book.models
import components.transaction.models
import components.savings_plan.models


async def get_db(request: fastapi.Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions."""
    db_manager: DatabaseManager = request.app.state.db_manager
    async with db_manager.get_db() as session:
        yield session


def init_db(app: fastapi.FastAPI, db_manager: DatabaseManager) -> None:
    """Attach the persistence handle to the app state."""
    app.state.db_manager = db_manager


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Open the database handle on startup and dispose it on shutdown."""
    db_manager: DatabaseManager = app.state.db_manager
    db_manager.open()
    try:
        yield
    finally:
        await db_manager.close()
