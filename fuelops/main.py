"""
FuelOps - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from fuelops.config import settings
from fuelops.api import auth, customers, delivery, audit
from fuelops.audit import InvalidMutation, StorageFault, UnknownEntityType

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

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
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting FuelOps API", version="1.0.0")
    yield
    logger.info("Shutting down FuelOps API")


# Create FastAPI application
app = FastAPI(
    title="FuelOps",
    description="Fuel trading back office with audited, reversible changes",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageFault)
async def storage_fault_handler(request: Request, exc: StorageFault):
    """Infrastructure failure: nothing was applied, the client may retry"""
    logger.error("Storage fault", path=request.url.path, error=str(exc.original or exc))
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "error": "storage_fault",
            "message": "The database is temporarily unavailable. No changes were saved; please retry.",
        },
        headers={"Retry-After": "1"},
    )


@app.exception_handler(InvalidMutation)
async def invalid_mutation_handler(request: Request, exc: InvalidMutation):
    logger.warning("Write rejected", path=request.url.path, error=str(exc.original or exc))
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "invalid_mutation", "message": str(exc)},
    )


@app.exception_handler(UnknownEntityType)
async def unknown_entity_type_handler(request: Request, exc: UnknownEntityType):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Health check endpoint
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(customers.router, prefix="/customers", tags=["Customers"])
app.include_router(delivery.router, prefix="/delivery-costs", tags=["Delivery"])
app.include_router(audit.router, prefix="/audit", tags=["Audit"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fuelops.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
