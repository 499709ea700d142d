import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.config import settings
from taskboard.database import Base, engine
from taskboard.exception_handlers import register_exception_handlers
from taskboard.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from taskboard.middleware.tenant import TenantHandleMiddleware
from taskboard.routes import auth, health, projects, tasks, tenants, users
from taskboard.services.audit_service import audit_sink

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    setup_structured_logging(log_level=settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant project and task tracker",
        debug=settings.debug,
        version=settings.app_version,
    )

    # Starlette middleware is LIFO: the logging middleware wraps everything
    app.add_middleware(TenantHandleMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(tenants.router, prefix="/api/tenants")
    app.include_router(users.router, prefix="/api/users")
    app.include_router(projects.router, prefix="/api/projects")
    app.include_router(tasks.router, prefix="/api/tasks")
    app.include_router(health.router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
        if settings.debug:
            # Migrations own the schema outside of debug runs
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down, flushing pending audit events...")
        await audit_sink.drain()
        await engine.dispose()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
