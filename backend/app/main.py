"""
Kargo Back Office
FastAPI application entry point

- Cargo fulfillment API under /api/cargo
- Structured JSON errors for the cargo error hierarchy
- Error sanitization middleware for unhandled exceptions
- Health endpoint with DB ping
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from sqlalchemy import text

from app.api.routes import cargo
from app.core.config import settings
from app.core.database import engine, get_db_session
from app.core.error_handler import ErrorSanitizationMiddleware, cargo_error_handler
from app.core.exceptions import CargoBaseError

# Import models to register them with SQLAlchemy
from app.models import Order, Product, ProductParcel, CargoConnection, CargoShipment  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and release the connection pool on shutdown."""
    logger.info(f"{settings.APP_NAME} starting ({settings.ENVIRONMENT})")
    if settings.SURAT_ALLOW_LEGACY_TLS:
        logger.warning("Surat Kargo client runs with legacy TLS (certificate verification disabled)")

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    lifespan=lifespan,
    title=f"{settings.APP_NAME} API",
    description="""
## Cargo fulfillment

Turns confirmed marketplace orders into Surat Kargo shipments and printable labels.

### Tenancy
Every request carries the tenant in the `X-Organization-Id` header, set by the upstream
authentication layer.
""",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Health check"},
        {"name": "Cargo", "description": "Order listing, labels, tracking, returns and carrier settings"},
    ],
)

app.add_exception_handler(CargoBaseError, cargo_error_handler)

# Unhandled exceptions -> sanitized 500
app.add_middleware(ErrorSanitizationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cargo.router, prefix="/api", tags=["Cargo"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check with an actual DB ping.
    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        async with get_db_session() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["database"] = f"error: {type(e).__name__}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
