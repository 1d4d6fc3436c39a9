"""
Manejadores de eventos de inicio y cierre del proceso host.
"""
from typing import Callable

from fastapi import FastAPI
from loguru import logger

from hms_sync.application.use_cases.sync_use_cases import SyncWorker
from hms_sync.core.config import CLOUD_DB, LOCAL_DB, settings
from hms_sync.infrastructure.external.cloud_sync.sync_config import describe_targets
from hms_sync.infrastructure.external.cloud_sync.sync_service import build_from_settings
from hms_sync.shared.exceptions.config import SyncConfigException


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Configura logging y lanza el worker de sincronizacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Configurar logging adicional
            app.state.log_handler_id = logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            # Validar configuracion critica
            _validate_config()

            syncer, db = build_from_settings(settings)
            app.state.db = db
            app.state.sync_worker = SyncWorker(syncer, interval_seconds=settings.SYNC_INTERVAL_SECONDS)

            for line in describe_targets(syncer.targets):
                logger.info(f"Tabla a sincronizar: {line}")

            if settings.SYNC_ENABLED:
                app.state.sync_worker.start()
            else:
                logger.warning("SYNC_ENABLED=false: el worker no se inicia")

            logger.success("Aplicacion iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    for name in (CLOUD_DB, LOCAL_DB):
        try:
            settings.get_connection_string(name)
        except SyncConfigException as e:
            warnings.append(f"{e.message} - las sincronizaciones fallaran hasta configurarla")

    # Mostrar advertencias
    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Detiene el worker y libera las conexiones."""
        logger.info("Cerrando aplicacion...")

        worker = getattr(app.state, "sync_worker", None)
        if worker is not None:
            await worker.stop(timeout=settings.SHUTDOWN_TIMEOUT_SECONDS)
            logger.info(f"Worker detenido tras {worker.status.cycles} ciclos")

        # Cerrar conexiones de base de datos
        db = getattr(app.state, "db", None)
        if db is not None:
            await db.dispose()
            logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

        handler_id = getattr(app.state, "log_handler_id", None)
        if handler_id is not None:
            logger.remove(handler_id)
            app.state.log_handler_id = None

    return shutdown
