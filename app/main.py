"""
FastAPI main application
Frontend Arena 2025 - Team Registration Server

Routers in app/api/:
- health.py: API metadata and health check
- registrations.py: submit, list, fetch, status update, payment file

Storage, file intake and the registration manager are built in the lifespan
and kept on app.state; routers reach them through dependencies.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from app.api import health, registrations
from app.config import load_settings
from app.core.exceptions import RegistrationAPIError
from app.models import Settings
from app.services.file_intake import FileIntake
from app.services.registration_manager import RegistrationManager
from app.services.storage import RegistrationStore, open_store


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    """Uniform error envelope: {success: false, message, error?}"""
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body)


def summarize_validation_errors(errors) -> str:
    """
    One line per request validation problem

    Example:
        [{"loc": ("body", 12), "msg": "JSON decode error", ...}] -> "body.12: JSON decode error"
    """
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings: Settings = app.state.settings

    # Startup: injected store wins over the configured one
    store = app.state.store
    if store is None:
        store = await open_store(settings.storage)
        app.state.store = store

    app.state.intake = FileIntake(settings.uploads)
    app.state.manager = RegistrationManager(store, id_policy=settings.registration.id_policy)
    app.state.started_at = time.monotonic()

    durability = "durable" if store.durable else "EPHEMERAL"
    logger.info(f"🚀 Registration server started | Storage: {store.backend} ({durability}) | Uploads: {settings.uploads.mode}")

    yield

    # Shutdown
    await store.close()
    logger.info("🛑 Server shutting down")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RegistrationAPIError)
    async def registration_error_handler(request: Request, exc: RegistrationAPIError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message} ({exc.error})")
        return error_response(exc.status_code, exc.message, exc.error)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request data", summarize_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, "Endpoint not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        # Details stay in the log, clients only get the error type
        return error_response(500, "Something went wrong!", type(exc).__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[RegistrationStore] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration (loaded from config/settings.yaml if omitted)
        store: Storage adapter to use instead of the configured backend
    """
    settings = settings or load_settings()

    app = FastAPI(
        title="Frontend Arena 2025 - Registration Server",
        description="Team registration API with payment proof upload",
        version=health.API_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ==================== INCLUDE ROUTERS ====================

    # API metadata (GET /) and health (GET /api/health)
    app.include_router(health.router)

    # Registration endpoints (POST /api/register, GET/PATCH /api/registrations/...)
    app.include_router(registrations.router)

    return app


_settings = load_settings()

# Setup logging
logging.basicConfig(
    level=_settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app(_settings)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=_settings.server.host, port=_settings.server.port)
