"""
FastAPI application for StudyPrep.

``create_app`` wires storage, sessions and bearer tokens onto ``app.state``
and installs the error handlers. Run with ``uvicorn studyprep.main:app``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studyprep.core.config import Settings, get_settings
from studyprep.core.database import DatabaseManager, build_engine, build_session_factory
from studyprep.core.errors import AppError
from studyprep.core.security import TokenService
from studyprep.core.sessions import DatabaseSessionStore, MemorySessionStore, SessionManager
from studyprep.routers import api_router
from studyprep.services import seed_first_admin
from studyprep.storage import StorageProvider


logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request data", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings (tests); read from the environment when omitted
    """
    settings = settings or get_settings()
    configure_logging(settings)

    if settings.uses_insecure_secrets:
        logger.warning("JWT_SECRET or SESSION_SECRET is not set; using insecure development secrets")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
    )

    session_factory = None
    if "database" in (settings.STORAGE_BACKEND, settings.SESSION_BACKEND):
        engine = build_engine(settings)
        DatabaseManager(engine).create_all_tables()
        session_factory = build_session_factory(engine)

    storage_provider = StorageProvider(settings.STORAGE_BACKEND, session_factory)
    if settings.SESSION_BACKEND == "database":
        session_store = DatabaseSessionStore(session_factory)
    else:
        session_store = MemorySessionStore()

    app.state.settings = settings
    app.state.storage_provider = storage_provider
    app.state.token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    app.state.session_manager = SessionManager(
        session_store,
        settings.session_secret,
        cookie_name=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        secure=settings.SESSION_COOKIE_SECURE,
    )

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get(f"{settings.API_PREFIX}/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    if settings.CREATE_FIRST_ADMIN:
        with storage_provider.open() as storage:
            seed_first_admin(storage, settings)

    logger.info(
        f"{settings.PROJECT_NAME} ready (storage={settings.STORAGE_BACKEND}, "
        f"sessions={settings.SESSION_BACKEND})"
    )
    return app


app = create_app()
