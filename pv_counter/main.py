from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.middleware.gzip import GZipMiddleware
import logging
import time
from datetime import datetime
from typing import Optional

from .core.config import Settings, settings
from .core.exceptions import InvalidInput, StoreError
from .core.key_codec import HyphenPolicy, KeyCodec
from .core.kv_store import KVStore
from .core.store_factory import create_store
from .api.v1.api import api_router
from .schemas.counter import ServiceStatus
from .services.key_browser import KeyBrowserService
from .services.visit_counter import VisitCounterService

logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(config: Settings = settings, store: Optional[KVStore] = None) -> FastAPI:
    """
    Build the page view counter application

    Args:
        config: Settings to run with
        store: Key-value store to use; built from config when omitted
    """
    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Page view counter and key browser over a plain key-value store",
        version=VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    # Application state
    codec = KeyCodec(HyphenPolicy(config.HYPHEN_POLICY))
    app.state.settings = config
    app.state.start_time = datetime.now()
    app.state.request_count = 0
    app.state.store = store if store is not None else create_store(config)
    app.state.visit_counter = VisitCounterService(app.state.store, codec, site_key=config.SITE_KEY)
    app.state.key_browser = KeyBrowserService(
        app.state.store,
        codec,
        default_limit=config.LIST_DEFAULT_LIMIT,
        max_keys_only=config.LIST_MAX_KEYS_ONLY,
        max_with_values=config.LIST_MAX_WITH_VALUES,
    )

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_allowed_origins(),
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Auth-Token"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.middleware("http")
    async def count_requests(request: Request, call_next):
        app.state.request_count += 1
        return await call_next(request)

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store failure on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc) if config.DEBUG else None
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global error handler caught: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Server Error",
                "detail": str(exc) if config.DEBUG else None
            }
        )

    @app.get("/")
    async def health_check():
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "uptime": str(datetime.now() - app.state.start_time)
        }

    @app.get("/status", response_model=ServiceStatus)
    async def service_status():
        """Detailed service status endpoint"""
        store_status = await app.state.store.get_status()
        store_status.update(await app.state.visit_counter.get_status())

        return ServiceStatus(
            status="healthy" if store_status.get("healthy", True) else "degraded",
            uptime=str(datetime.now() - app.state.start_time),
            total_requests=app.state.request_count,
            store_status=store_status,
            version=VERSION,
            debug_mode=config.DEBUG,
            started_at=app.state.start_time,
        )

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup"""
        logger.info("Starting page view counter service...")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        logger.info("Shutting down page view counter service...")
        await app.state.store.close()

    app.include_router(
        api_router,
        prefix=config.API_PREFIX,
        responses={
            404: {"description": "Not found"},
            500: {"description": "Internal server error"}
        }
    )

    return app


app = create_app()
