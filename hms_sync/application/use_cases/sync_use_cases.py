"""
Caso de uso: replicación periódica cloud -> local en background.

Un único loop secuencial: sincroniza todas las tablas, registra cualquier
error del lote sin detener el proceso, espera el intervalo fijo y repite
hasta que se pida detenerlo.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from hms_sync.infrastructure.external.cloud_sync.sync_service import TableSyncer, TableSyncResult
from hms_sync.shared.exceptions.base import AppException


@dataclass
class WorkerStatus:
    """Estado en memoria del worker (se expone en /health)."""
    running: bool = False
    cycles: int = 0
    last_status: str = "idle"
    last_cycle_started_at: Optional[datetime] = None
    last_cycle_completed_at: Optional[datetime] = None
    last_error: Optional[Dict[str, Any]] = None
    last_results: List[TableSyncResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "cycles": self.cycles,
            "last_status": self.last_status,
            "last_cycle_started_at": self.last_cycle_started_at,
            "last_cycle_completed_at": self.last_cycle_completed_at,
            "last_error": self.last_error,
            "last_results": [
                {
                    "table": r.table_name,
                    "rows": r.rows_fetched,
                    "inserted": r.inserted,
                    "updated": r.updated,
                }
                for r in self.last_results
            ],
        }


def _describe_error(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, AppException):
        return exc.to_dict()
    return {"error": type(exc).__name__, "message": str(exc), "details": {}}


class SyncWorker:
    """
    Worker de sincronización periódica.

    Uso:
        worker = SyncWorker(syncer, interval_seconds=30)
        worker.start()
        ...
        await worker.stop()
    """

    def __init__(self, syncer: TableSyncer, interval_seconds: float = 30.0):
        self._syncer = syncer
        self._interval = interval_seconds
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self.status = WorkerStatus()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def sync_data(self) -> List[TableSyncResult]:
        """
        Ejecuta un ciclo completo (todas las tablas, en orden).

        Las excepciones se propagan; el loop es quien las registra.
        """
        self.status.last_status = "running"
        self.status.last_cycle_started_at = datetime.now(timezone.utc)
        try:
            results = await self._syncer.sync_all()
        except Exception as e:
            self.status.last_status = "error"
            self.status.last_error = _describe_error(e)
            self.status.last_results = []
            raise
        finally:
            self.status.cycles += 1
            self.status.last_cycle_completed_at = datetime.now(timezone.utc)

        self.status.last_status = "success"
        self.status.last_error = None
        self.status.last_results = results
        return results

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Loop principal. Solo termina cuando `stop_event` se activa.

        Cada iteración espera exactamente el intervalo, sin backoff, sin
        importar el resultado de la anterior. Una sincronización en curso no
        se interrumpe a mitad de tabla.
        """
        self.status.running = True
        logger.info(f"Worker de sincronizacion iniciado (intervalo {self._interval}s)")
        try:
            while not stop_event.is_set():
                try:
                    await self.sync_data()
                except Exception as e:
                    logger.opt(exception=e).error("Error in SyncDataAsync")

                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self.status.running = False
            logger.info("Worker de sincronizacion detenido")

    def start(self) -> asyncio.Task:
        """Lanza el loop como tarea en background del event loop actual."""
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(self._stop_event), name="hms-sync-worker")
        return self._task

    async def stop(self, timeout: float = 60.0) -> None:
        """
        Pide la detención y espera a que termine el ciclo en curso.

        Si el ciclo no termina dentro de `timeout`, la tarea se cancela.
        """
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"El ciclo de sincronizacion no termino en {timeout}s; cancelando")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
