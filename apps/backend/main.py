"""
VidVeil Backend
Privacy-first multi-engine video search aggregator.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from datetime import datetime
from pathlib import Path
import asyncio
import os
import signal

from dotenv import load_dotenv
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

from exceptions import ConfigurationError, RateLimitError, ValidationError, VidVeilError
from aggregator.adapters import build_engines
from aggregator.bangs import validate_bang_table
from aggregator.config import ConfigStore, SearchSettings
from aggregator.coordinator import SearchCoordinator
from aggregator.suggestions import set_custom_terms
from aggregator.transport import TransportProvider
from observability.health import run_health_checks
from observability.logging import get_logger
from observability.metrics import metrics_registry
from observability.middleware import ObservabilityMiddleware
from observability.sentry_config import capture_exception, init_sentry
from routes.bangs import router as bangs_router
from routes.engines import router as engines_router
from routes.search import router as search_router

APP_VERSION = "0.1.0"

logger = get_logger(__name__)

init_sentry()

# Create FastAPI app (must be defined before any @app.* decorators)
app = FastAPI(
    title="VidVeil Backend",
    description="Privacy-first concurrent video search aggregator",
    version=APP_VERSION,
)

app.add_middleware(ObservabilityMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search_router, prefix="/api/v1")
app.include_router(bangs_router, prefix="/api/v1")
app.include_router(engines_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": APP_VERSION,
    }


@app.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check - verifies engines, transport and host resources.

    Returns 503 if any check errors or the service is not initialized.
    """
    coordinator = getattr(request.app.state, "coordinator", None)
    transport = getattr(request.app.state, "transport", None)
    if coordinator is None or transport is None:
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "checks": {"startup": {"status": "error", "error": "Service not initialized"}},
                "timestamp": datetime.utcnow().isoformat(),
            },
        )

    report = await run_health_checks(coordinator, transport)
    return JSONResponse(status_code=200 if report["ready"] else 503, content=report)


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(VidVeilError)
async def vidveil_exception_handler(request: Request, exc: VidVeilError):
    headers = {}
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code >= 500:
        logger.error(f"[API] {type(exc).__name__}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers or None)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed query parameters answer 400 in the same envelope as ValidationError."""
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    error = ValidationError("Invalid request parameters", detail={"errors": errors})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    - Logs full traceback
    - Reports to Sentry
    - Returns safe error message to client
    """
    error_id = f"ERR-{datetime.utcnow().strftime('%Y%m%d%H%M%S')}-{id(exc)}"

    logger.error(
        f"[ERROR {error_id}] Unhandled exception",
        exc_info=exc,
        extra={"path": str(request.url.path), "method": request.method},
    )
    capture_exception(exc, tags={"error_id": error_id}, extra={"path": str(request.url.path)})

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please try again.",
        },
    )


def build_services(config_store: ConfigStore):
    """Wire the engine registry, transport and coordinator around one config store."""
    settings = config_store.settings
    transport = TransportProvider(settings)
    engines = build_engines(settings)
    coordinator = SearchCoordinator(engines, config_store, transport)

    validate_bang_table(engines)

    def validate(candidate: SearchSettings) -> None:
        coordinator.validate_settings(candidate)
        validate_bang_table(engines)

    config_store.set_validator(validate)
    config_store.add_listener(transport.apply)
    config_store.add_listener(coordinator.apply_settings)
    config_store.add_listener(lambda s: set_custom_terms(s.custom_search_terms))
    set_custom_terms(settings.custom_search_terms)
    return coordinator, transport


def reload_config() -> None:
    """SIGHUP handler: a rejected snapshot leaves the running config in place."""
    try:
        app.state.config_store.reload()
    except ConfigurationError as e:
        logger.error(f"[Config] reload rejected: {e.message}", extra={"detail": e.detail})


def install_reload_signal() -> None:
    if not hasattr(signal, "SIGHUP"):
        return
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGHUP, reload_config)
    except (NotImplementedError, RuntimeError, ValueError):
        # Only the main thread's loop can own signal handlers.
        logger.debug("[Config] SIGHUP reload unavailable in this event loop")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup"""
    logger.info(f"VidVeil backend starting (environment={os.getenv('ENVIRONMENT', 'development')})")
    config_store = ConfigStore()
    coordinator, transport = build_services(config_store)
    app.state.config_store = config_store
    app.state.coordinator = coordinator
    app.state.transport = transport
    install_reload_signal()
    logger.info(
        f"[Startup] {len(coordinator.engines)} engines registered, "
        f"{len(coordinator.enabled_engine_names())} enabled"
    )


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown"""
    logger.info("VidVeil backend shutting down...")
    transport = getattr(app.state, "transport", None)
    if transport is not None:
        await transport.aclose()
