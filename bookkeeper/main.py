"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from bookkeeper.api.errors import register_error_handlers
from bookkeeper.api.v1 import accounts, budgets, categories, dashboard, loans, settlement, transactions
from bookkeeper.config import get_settings
from bookkeeper.infrastructure.db.session import check_db_connection

logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Logs any exception that escapes a route, sync routes included"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "\n%s\nERROR on %s %s\n%s%s",
                "=" * 60, request.method, request.url.path, traceback.format_exc(), "=" * 60,
            )
            return Response(content="Internal Server Error", status_code=500)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Bookkeeper",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    register_error_handlers(app)

    app.include_router(accounts.router)
    app.include_router(categories.router)
    app.include_router(transactions.router)
    app.include_router(loans.router)
    app.include_router(budgets.router)
    app.include_router(settlement.router)
    app.include_router(dashboard.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bookkeeper.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
