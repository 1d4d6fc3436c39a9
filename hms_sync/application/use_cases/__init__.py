"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import SyncWorker, WorkerStatus

__all__ = ["SyncWorker", "WorkerStatus"]
