"""
FastAPI application entry point for the Clayx command relay.

This is the backend for:
- Command submission by the mobile app
- Command delivery to planter controllers (socket push or REST poll)
- Device presence tracking
- Sensor data ingestion and real-time fan-out to observers
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .application.services import RelayServices, build_services
from .config import AppSettings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(settings: AppSettings) -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Builds the relay services on top of PostgreSQL (and optionally the
    Redis event journal) unless services were injected into the app.
    """
    settings: AppSettings = app.state.settings
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if getattr(app.state, "services", None) is not None:
        yield
        return

    from .infrastructure.database import DatabaseManager, health_check, init_db, unit_of_work_factory
    from .infrastructure.messaging import RedisEventJournal, create_redis_client

    if settings.database.create_tables:
        try:
            await init_db()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    journal = None
    if settings.redis.journal_enabled:
        client = create_redis_client(settings.redis)
        try:
            await client.ping()
            journal = RedisEventJournal(
                client,
                settings.redis.events_stream,
                max_len=settings.redis.stream_max_len,
            )
            logger.info(f"Event journal enabled on stream {settings.redis.events_stream}")
        except Exception as e:
            logger.warning(f"Redis unavailable, event journal disabled: {e}")
            await client.aclose()

    app.state.services = build_services(
        unit_of_work_factory(DatabaseManager.get_session_factory()),
        settings=settings.relay,
        journal=journal,
    )
    app.state.database_check = health_check

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if journal is not None:
        await journal.close()
    await DatabaseManager.close()
    logger.info("Shutdown complete")


def create_app(
    services: Optional[RelayServices] = None,
    settings: Optional[AppSettings] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        services: Prebuilt relay services. When given, startup does not
            touch the database or Redis.
        settings: Application settings (defaults to environment).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Clayx Smart Planter relay - device commands, presence and telemetry",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services
    app.state.database_check = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    # Register exception handlers
    register_exception_handlers(app, settings)

    # Register routes
    register_routes(app, settings)

    return app


def register_exception_handlers(app: FastAPI, settings: AppSettings) -> None:
    """Register global exception handlers."""

    from .domain.exceptions import (
        AuthorizationException,
        DomainException,
        EntityNotFoundException,
        PersistenceException,
    )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=exc.to_dict(),
        )

    @app.exception_handler(EntityNotFoundException)
    async def not_found_handler(request: Request, exc: EntityNotFoundException):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=exc.to_dict(),
        )

    @app.exception_handler(AuthorizationException)
    async def authorization_handler(request: Request, exc: AuthorizationException):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content=exc.to_dict(),
        )

    @app.exception_handler(PersistenceException)
    async def persistence_handler(request: Request, exc: PersistenceException):
        logger.error(f"Persistence failure on {request.url.path}: {exc.__cause__ or exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                'error': 'INTERNAL_ERROR',
                'message': 'An internal error occurred',
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")

        if settings.debug:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    'error': 'INTERNAL_ERROR',
                    'message': str(exc),
                    'type': type(exc).__name__,
                },
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                'error': 'INTERNAL_ERROR',
                'message': 'An internal error occurred',
            },
        )


def register_routes(app: FastAPI, settings: AppSettings) -> None:
    """Register API routes."""
    from .api.v1 import api_router, socket_router

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Check application health."""
        services: Optional[RelayServices] = request.app.state.services
        relay = {}
        if services is not None:
            relay = {
                'devices_online': services.presence.online_count(),
                'fanout': services.fanout.get_stats(),
                'delivery': services.router.get_stats(),
            }

        health_status = 'healthy' if services is not None else 'starting'
        database = None
        database_check = request.app.state.database_check
        if database_check is not None:
            database = 'connected' if await database_check() else 'disconnected'
            if database == 'disconnected':
                health_status = 'degraded'

        return {
            'status': health_status,
            'database': database,
            'relay': relay,
            'version': settings.app_version,
            'environment': settings.environment,
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            'name': settings.app_name,
            'version': settings.app_version,
            'api_docs': '/docs' if settings.debug else None,
        }

    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(socket_router)


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "clayx_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


# Create application instance
configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    run()
