"""
Excepciones relacionadas con la lógica de sincronización de tablas.
"""
from typing import Any, Dict

from hms_sync.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""
    
    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class MissingParentRowException(DomainException):
    """
    Excepción cuando una fila hija no tiene su fila padre en la base local.

    Sin el padre no se puede resolver la identidad local que la fila hija
    necesita, así que la tabla completa se aborta en este ciclo.
    """
    
    def __init__(self, parent_table: str, criteria: Dict[str, Any]):
        criteria_text = ", ".join(f"{k}={v}" for k, v in criteria.items())
        super().__init__(
            message=f"No {parent_table} found for {criteria_text}",
            error_code="MISSING_PARENT_ROW",
            details={
                "parent_table": parent_table,
                "criteria": {k: str(v) for k, v in criteria.items()},
            }
        )
        self.parent_table = parent_table
        self.criteria = dict(criteria)


class MissingColumnException(DomainException):
    """Excepción cuando una fila remota no trae una columna requerida."""
    
    def __init__(self, table: str, column: str):
        super().__init__(
            message=f"La fila de {table} no contiene la columna '{column}'",
            error_code="MISSING_COLUMN",
            details={"table": table, "column": column}
        )


class InvalidIdentifierException(DomainException):
    """Excepción cuando un nombre de tabla o columna no es un identificador seguro."""
    
    def __init__(self, identifier: Any, reason: str = "caracteres no permitidos"):
        super().__init__(
            message=f"Identificador SQL inválido '{identifier}': {reason}",
            error_code="INVALID_IDENTIFIER",
            details={"identifier": str(identifier), "reason": reason}
        )
