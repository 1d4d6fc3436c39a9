"""
Acceso a las bases cloud y local.
"""
from hms_sync.infrastructure.database.session import DatabaseProvider

__all__ = ["DatabaseProvider"]
