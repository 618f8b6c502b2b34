"""
Convision Front Office API - Main Application Entry Point
Quotes and discount requests for the optical-store front desk.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db, close_db
from app.core.exceptions import (
    CollaboratorFailure,
    DataIntegrity,
    DomainError,
    ExportUnavailable,
    InvalidScope,
    InvalidTransition,
    MissingReason,
    NotConvertible,
)
from app.api.v1.router import api_router
from app.services.auth import seed_first_admin


logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS: dict[type[DomainError], int] = {
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotConvertible: status.HTTP_409_CONFLICT,
    DataIntegrity: status.HTTP_409_CONFLICT,
    MissingReason: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidScope: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ExportUnavailable: status.HTTP_404_NOT_FOUND,
    CollaboratorFailure: status.HTTP_502_BAD_GATEWAY,
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    configure_logging()
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Environment: %s", settings.ENVIRONMENT)

    # Initialize database tables (for development)
    if settings.is_development:
        await init_db()

    async with AsyncSessionLocal() as session:
        await seed_first_admin(session)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Convision Front Office API

API de recepción para ópticas.

### Funcionalidades principales:

* **Autenticación** - Registro, inicio de sesión, tokens JWT
* **Pacientes y lentes** - Registro de pacientes y catálogo de lentes
* **Cotizaciones** - Creación, aprobación, vencimiento y conversión en venta
* **Solicitudes de descuento** - Flujo de aprobación por administradores
* **PDF** - Cotizaciones en PDF con enlace de descarga firmado
    """,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)


# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with Spanish messages."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Error de validación de los datos",
            "error": "validation_error",
            "errors": errors,
        },
    )


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Business-rule violations as JSON with a stable error code."""
    status_code = DOMAIN_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500 or isinstance(exc, DataIntegrity):
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s: %s", request.method, request.url.path, exc.message)

    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# Health check endpoint
@app.get(
    "/health",
    tags=["Salud"],
    summary="Estado del servidor",
)
async def health_check():
    """Check if the API is running."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


# Root endpoint
@app.get(
    "/",
    tags=["Info"],
    summary="Información de la API",
)
async def root():
    """Get API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Cotizaciones y solicitudes de descuento para ópticas",
        "docs": "/docs" if settings.is_development else "Disabled in production",
        "health": "/health",
    }


# For running with uvicorn directly
if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=port,
        reload=settings.is_development,
    )
