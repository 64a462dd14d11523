"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from communityfund.config import get_settings
from communityfund.infrastructure.db.session import check_db_connection
from communityfund.api.v1 import auth, dashboard, monitoring, workflow, plans, funds, ideas, meetings, reports

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Logs the traceback of any unhandled exception and answers 500"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Background jobs run only when SCHEDULER_ENABLED is set"""
    settings = get_settings()
    if settings.SCHEDULER_ENABLED:
        from communityfund.application.scheduler import start_scheduler
        start_scheduler()
    yield
    if settings.SCHEDULER_ENABLED:
        from communityfund.application.scheduler import stop_scheduler
        stop_scheduler()


def create_app() -> FastAPI:
    """
    Application factory - builds and wires the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Community Fund",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(monitoring.router)
    app.include_router(workflow.router)
    app.include_router(plans.router)
    app.include_router(funds.router)
    app.include_router(ideas.router)
    app.include_router(meetings.router)
    app.include_router(reports.router)

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
        "communityfund.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
