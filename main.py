from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uvicorn
import logging

from config import settings, configure_logging
from core.exceptions import AppException
from database.db import Database
from dependencies import get_database
from models.common import error_response, error_response_from_exception
from routes import users_router

logger = logging.getLogger(__name__)

# Configurar logging una sola vez al inicio
configure_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Maneja el ciclo de vida de la aplicación."""
    # Startup
    try:
        get_database().create_tables()
    except Exception as e:
        logger.warning(f"No se pudieron crear tablas en la base de datos: {e}")
    yield
    # Shutdown
    get_database().dispose()

app = FastAPI(
    title=settings.app_name,
    description="API de usuarios sobre una capa genérica de acceso a datos.",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    debug=settings.debug_mode
)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Cualquier AppException que llegue hasta aquí se responde como envelope de error."""
    envelope = error_response_from_exception(exc)
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_wire())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Errores de validación del request: 400 con la lista de campos inválidos."""
    validation_errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "errors": [error["msg"]],
        }
        for error in exc.errors()
    ]
    envelope = error_response(
        message="Bad Request Exception",
        status_code=400,
        validation_errors=validation_errors,
    )
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_wire())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=exc)
    envelope = error_response(message="Internal server error", status_code=500)
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_wire())


@app.get("/")
async def root():
    """Endpoint raíz con información de la API."""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "status": "active",
        "environment": "production" if settings.is_production else "development",
        "docs": "/docs",
        "redoc": "/redoc"
    }

app.include_router(users_router)

@app.get("/health")
def health_check(database: Database = Depends(get_database)):
    """Health check endpoint con verificación de base de datos."""
    db_status = "unknown"
    try:
        database.connect()
        db_status = "connected"
    except Exception as e:
        logger.error(f"Health check: Error de conexión a BD: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": db_status,
        "environment": "production" if settings.is_production else "development"
    }

if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
