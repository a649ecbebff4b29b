"""
RecipeBox Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles settings, the datastore handle, services,
       middleware, exception handlers, routes and the /uploads static mount.
Who:   uvicorn imports `recipebox.main:app`; tests call create_app() directly.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  CORS → Request ID → Logging → GZip → Access Control     │
    │                                                          │
    │  Routes:                                                 │
    │  /auth/register  /auth/login          (public)           │
    │  /auth/recipe[/{id}]  /auth/searchRecipes/{q}  (bearer)  │
    │  /health  /uploads/<file>             (public)           │
    │                                                          │
    │  app.state:                                              │
    │  settings · database · token_service · user_service ·    │
    │  upload_service                                          │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (startup aborts without JWT_SECRET)
    3. Ensure the upload directory exists
    4. Open the Database handle (and create tables if configured)

    Shutdown:
    1. Dispose the Database handle (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from recipebox import __version__
from recipebox.config import Settings, settings as default_settings
from recipebox.database import Database
from recipebox.exceptions import (
    BadCredentialsError,
    DatabaseError,
    DuplicateEmailError,
    FileStorageError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from recipebox.middleware.access_control import AccessControlMiddleware
from recipebox.middleware.logging import RequestLoggingMiddleware
from recipebox.middleware.request_id import RequestIDMiddleware, request_id_var
from recipebox.routes import auth, health, recipes
from recipebox.services.token_service import TokenService
from recipebox.services.upload_service import UploadService
from recipebox.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open resources on startup and release them on shutdown.

    A Database passed to create_app() is used as-is; otherwise one is built
    from settings here. Either way it is disposed on shutdown.
    """
    cfg: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(cfg.log_level)
    logger.info("=" * 60)
    logger.info("RecipeBox Backend starting up...")

    try:
        cfg.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    app.state.upload_service.ensure_directory()
    logger.info("Upload directory: %s", app.state.upload_service.upload_dir)

    if app.state.database is None:
        app.state.database = Database.from_settings(cfg)
    await app.state.database.connect(create_tables=cfg.auto_create_tables)
    logger.info("Database connected (auto_create_tables=%s)", cfg.auto_create_tables)

    logger.info("Server ready at http://%s:%d", cfg.backend_host, cfg.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("RecipeBox Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400 validation_error
        DuplicateEmailError                       → 400 duplicate_email
        BadCredentialsError                       → 400 invalid_credentials
        UnauthorizedError                         → 403 unauthorized
        ForbiddenError                            → 403 forbidden
        NotFoundError                             → 404 not_found
        FileStorageError / DatabaseError          → 500 server_error
        Exception (fallback)                      → 500 internal_server_error

    Exception context is logged server-side and never returned, except the
    list of offending field names for validation errors.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        converted = ValidationError.from_errors(exc.errors())
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), converted.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", converted.message, converted.context),
        )

    @app.exception_handler(DuplicateEmailError)
    async def handle_duplicate_email(request: Request, exc: DuplicateEmailError):
        return JSONResponse(status_code=400, content=_error_body("duplicate_email", exc.message))

    @app.exception_handler(BadCredentialsError)
    async def handle_bad_credentials(request: Request, exc: BadCredentialsError):
        logger.info("[%s] Login failed: %s", request_id_var.get(""), exc.context.get("reason"))
        return JSONResponse(status_code=400, content=_error_body("invalid_credentials", exc.message))

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.warning("[%s] Unauthorized: %s", request_id_var.get(""), exc.context)
        return JSONResponse(status_code=403, content=_error_body("unauthorized", exc.message))

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        rid = request_id_var.get("")
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use; defaults to the module-level instance.
        database:     An already constructed Database handle. When omitted,
                      the lifespan builds one from settings.

    Returns:
        Configured FastAPI instance.
    """
    cfg = app_settings or default_settings

    app = FastAPI(
        title="RecipeBox API",
        description="Multi-user recipe catalog: register, log in, and manage personal recipes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Application State ─────────────────────────────────────────────────
    upload_service = UploadService(
        upload_dir=cfg.upload_dir,
        public_base_url=cfg.public_base_url,
        max_size=cfg.max_upload_size,
    )
    upload_service.ensure_directory()

    app.state.settings = cfg
    app.state.database = database
    # Left unset without a secret; the lifespan refuses to start in that case
    app.state.token_service = (
        TokenService(
            secret=cfg.jwt_secret,
            algorithm=cfg.jwt_algorithm,
            expires_minutes=cfg.jwt_expires_minutes,
        )
        if cfg.jwt_secret
        else None
    )
    app.state.user_service = UserService(bcrypt_rounds=cfg.bcrypt_rounds)
    app.state.upload_service = upload_service

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: CORS → RequestID → Logging → GZip → AccessControl
    app.add_middleware(AccessControlMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    origins = cfg.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(recipes.router)
    app.include_router(health.router)
    app.mount(
        "/uploads",
        StaticFiles(directory=str(upload_service.upload_dir), check_dir=False),
        name="uploads",
    )

    return app


# uvicorn recipebox.main:app
app = create_app()
