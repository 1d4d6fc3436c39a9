"""
Punto de entrada principal del sincronizador.

El proceso host es una aplicacion FastAPI minima: al iniciar lanza el worker
de sincronizacion en background y al cerrar lo detiene de forma ordenada.
Solo expone /health.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from hms_sync.core.config import settings
from hms_sync.core.events import startup_handler, shutdown_handler


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await startup_handler(app)()
        try:
            yield
        finally:
            await shutdown_handler(app)()

    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Replicador periodico de tablas HMS cloud -> local",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Endpoint para verificar el estado de la aplicación y del worker."""
        worker = getattr(request.app.state, "sync_worker", None)
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "sync": worker.status.to_dict() if worker else None,
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    logger.info(f"Health: http://localhost:{settings.PORT}/health")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
