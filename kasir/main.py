"""
Main FastAPI application for the Kasir POS.
"""
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from kasir import __version__
from kasir.api.deps import Services, get_services
from kasir.api.v1.api import api_router
from kasir.core.config import settings
from kasir.core.exceptions import CheckoutError, ProductNotFoundError, StorageError
from kasir.core.storage import check_store_connection


def configure_logging() -> None:
    """Configure structured logging for both structlog and stdlib loggers."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())


configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Kasir POS...", storage_backend=settings.storage_backend)

    services = app.dependency_overrides.get(get_services, get_services)()
    if not check_store_connection(services.store):
        logger.error("Storage connection check failed")
        raise RuntimeError("Storage connection failed")

    logger.info("Kasir POS started successfully")

    yield

    logger.info("Shutting down Kasir POS...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Checkout and inventory ledgers for a small retail store",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_router, prefix=settings.api_v1_str)


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint."""
    connected = check_store_connection(services.store)
    health_status = {
        "status": "healthy" if connected else "unhealthy",
        "storage": "connected" if connected else "disconnected",
        "storage_backend": settings.storage_backend,
    }
    if not connected:
        return JSONResponse(status_code=503, content=health_status)
    return health_status


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure", error=str(exc), key=exc.key)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "kasir.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
