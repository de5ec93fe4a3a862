import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brandpulse.analysis.overlay import OverlayStore, TTLCache
from brandpulse.api.v1.router import api_v1_router
from brandpulse.core.config import settings, validate_settings_for_production
from brandpulse.core.exceptions import AppError
from brandpulse.core.logging import setup_logging
from brandpulse.core.metrics import PrometheusMiddleware, metrics_response
from brandpulse.core.sentry import init_sentry
from brandpulse.db.postgres import engine

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    app.state.overlay_store = OverlayStore(TTLCache(ttl_seconds=settings.overlay_cache_ttl_seconds))
    logger.info("Starting Brandpulse (providers: %s)", ", ".join(settings.enabled_provider_names()))

    yield

    # Shutdown
    await engine.dispose()
    logger.info("Brandpulse shut down")


app = FastAPI(
    title="Brandpulse",
    description="Brand visibility tracking across LLM answers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Log unhandled exceptions with the full traceback
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    detail = f"{type(exc).__name__}: {exc}" if settings.app_debug else "Internal server error"
    return JSONResponse(status_code=500, content={"detail": detail})


app.add_middleware(PrometheusMiddleware)

# CORS: allowed_origins is comma-separated
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


@app.get("/api/v1/health")
async def health():
    return {
        "status": "ok",
        "providers": {p: bool(settings.provider_api_key(p)) for p in settings.enabled_provider_names()},
    }
