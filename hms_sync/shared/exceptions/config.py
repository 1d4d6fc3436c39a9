"""
Excepciones de configuración del sincronizador.
"""
from hms_sync.shared.exceptions.base import AppException


class SyncConfigException(AppException):
    """Error de configuración (connection strings, lista de tablas)."""
    
    def __init__(self, message: str, setting: str = None):
        details = {"setting": setting} if setting else None
        super().__init__(
            message=message,
            error_code="SYNC_CONFIG_ERROR",
            details=details
        )
