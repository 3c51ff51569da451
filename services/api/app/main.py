from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from .api.routers.auth import router as auth_router
from .api.routers.health import router as health_router
from .api.routers.notes import router as notes_router
from .api.routers.projects import router as projects_router
from .api.routers.webhooks import router as webhooks_router
from .core.config import allowed_origins, get_settings, validate_settings
from .core.errors import register_error_handlers
from .core.logging import configure_structlog, get_logger
from .core.observability import add_prometheus
from .db import Base, get_engine, get_sessionmaker
from .middleware.logging import RequestLoggingMiddleware
from .services.session_store import DatabaseSessionStore, InMemorySessionStore


def create_app() -> FastAPI:
    settings = get_settings()
    try:
        validate_settings(settings)
    except ValueError as exc:
        # Refuse to boot with a half-configured auth stack
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    configure_structlog(settings.log_level)
    logger = get_logger(__name__)

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    # Used when SESSION_STORE_BACKEND=memory
    app.state.session_store = InMemorySessionStore()

    register_error_handlers(app, production=settings.is_production)

    # Added last wraps outermost: CORS sees requests before logging does
    app.add_middleware(RequestLoggingMiddleware)
    origins = allowed_origins(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )
    logger.info("cors.configured", allow_origins=origins)

    add_prometheus(app, app_name="api")

    @app.on_event("startup")
    def on_startup() -> None:  # noqa: D401
        engine = get_engine()
        logger.info("startup.db_ready", dialect=engine.dialect.name)
        if settings.auto_create_tables:
            from .models import issues, notes, projects, session_records, users  # noqa: F401

            Base.metadata.create_all(engine)
            logger.info("startup.tables_created")
        if settings.session_store_backend == "database":
            with get_sessionmaker()() as session:
                DatabaseSessionStore(session).purge_expired()

    for router in (health_router, auth_router, notes_router, projects_router, webhooks_router):
        app.include_router(router)

    @app.get("/")
    def root() -> dict:
        return {"service": "api", "status": "ok", "version": settings.app_version}

    return app


app = create_app()
