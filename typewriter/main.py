"""
FastAPI application for the typewriter service
"""

import asyncio
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from typewriter import __version__
from typewriter.api.typewriter import router as typewriter_router
from typewriter.config import settings
from typewriter.engine.scheduler import AsyncioScheduler
from typewriter.engine.typewriter import TypewriterEngine
from typewriter.utils.logger import get_logger, setup_logging

setup_logging(
    level=settings.log_level,
    log_file=settings.log_file,
    enable_colors=settings.enable_colors,
    include_timestamp=True,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Typewriter Service",
    description="Cycles phrases with a typewriter effect and streams every frame",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

logger.info("FastAPI application initialized")
logger.info(f"Log level: {settings.log_level}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable) -> Response:
    """Log all HTTP requests and responses"""

    # Generate request ID for correlation
    request_id = str(uuid.uuid4())[:8]
    start_time = time.time()
    client_ip = request.client.host if request.client else "unknown"

    logger.info(
        f"[API] Request started: {request.method} {request.url.path}",
        extra={
            "component": "API",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
        },
    )

    request.state.request_id = request_id

    try:
        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[API] Request completed: {request.method} {request.url.path} -> {response.status_code} ({duration_ms:.2f}ms)",
            extra={
                "component": "API",
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"[API] Request failed: {request.method} {request.url.path} -> ERROR ({duration_ms:.2f}ms): {str(e)}",
            extra={
                "component": "API",
                "request_id": request_id,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise


app.include_router(typewriter_router, prefix="/typewriter", tags=["typewriter"])


@app.on_event("startup")
async def startup_event():
    """Start the typewriter engine on the server's event loop"""
    logger.info("=" * 60)
    logger.info("APPLICATION STARTUP")
    logger.info("=" * 60)

    options = settings.typewriter_options()
    engine = TypewriterEngine.from_options(
        options, scheduler=AsyncioScheduler(asyncio.get_running_loop())
    )
    app.state.typewriter = engine
    engine.start()

    logger.info("Configuration:")
    logger.info(f"  - Phrases: {len(options.phrases)}")
    logger.info(f"  - Typing interval: {options.typing_interval_ms}ms")
    logger.info(f"  - Deleting interval: {options.deleting_interval_ms}ms")
    logger.info(f"  - Pause duration: {options.pause_duration_ms}ms")
    logger.info(f"  - Debug: {settings.debug}")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel the engine's pending timer"""
    engine = getattr(app.state, "typewriter", None)
    if engine is not None:
        engine.stop()
    logger.info("Application shutdown complete")


@app.get("/")
async def root():
    """Root endpoint"""
    logger.debug("Root endpoint called")
    return {
        "message": "Typewriter Service",
        "version": __version__,
        "status": "running",
        "log_level": settings.log_level,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    logger.debug("Health check endpoint called")
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    logger.info(f"Debug mode: {settings.debug}")
    uvicorn.run(
        "typewriter.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.log_level == "VERBOSE" else settings.log_level.lower(),
    )
