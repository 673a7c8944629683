"""Application configuration and router setup."""

from typing import Optional

import fastapi
from fastapi.middleware import cors
from fastapi.responses import JSONResponse

from components.core import init_db
from components.core.database import DatabaseManager
from components.core.exceptions import SavingsPlannerError
from components.core.logging_config import get_logger, setup_logging
from components.savings_plan.reconciliation import PlanLockRegistry
from restapi.endpoints import health_check, auth, account_book, transaction, savings_plan

logger = get_logger(__name__)


async def savings_planner_error_handler(request: fastapi.Request, exc: SavingsPlannerError) -> JSONResponse:
    """Turn domain errors into JSON responses."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed", method=request.method, path=request.url.path,
            status_code=exc.status_code, detail=exc.detail,
        )
    else:
        logger.warning(
            "request_rejected", method=request.method, path=request.url.path,
            status_code=exc.status_code, detail=exc.detail,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(db_manager: Optional[DatabaseManager] = None) -> fastapi.FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()

    app = fastapi.FastAPI(
        title="Savings Planner",
        description="Personal finance tracking with recurring savings plans",
        version="1.0.0",
        lifespan=init_db.lifespan,
    )

    # Initialize database
    init_db.init_db(app, db_manager or DatabaseManager())
    app.state.plan_locks = PlanLockRegistry()

    # Add CORS middleware
    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SavingsPlannerError, savings_planner_error_handler)

    # Include routers
    app.include_router(health_check.router)
    app.include_router(auth.router, prefix="/api")
    app.include_router(account_book.router, prefix="/api")
    app.include_router(transaction.router, prefix="/api")
    app.include_router(transaction.summary_router, prefix="/api")
    app.include_router(savings_plan.router, prefix="/api")
    app.include_router(savings_plan.deposit_router, prefix="/api")

    return app
