"""
Descriptor inmutable de una tabla a replicar (cloud -> local).

Los nombres de tabla y columna se interpolan en el SQL generado, por eso se
validan aquí una sola vez, al construir la configuración.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from hms_sync.shared.exceptions.domain import InvalidIdentifierException

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Nombre de la columna de control en la base cloud. No existe en la local.
SYNCED_COLUMN = "Synced"


def validate_identifier(name: str) -> str:
    """
    Valida que `name` sea un identificador SQL simple (letras, dígitos, '_').

    Returns:
        El mismo nombre, para poder usarlo en expresiones.

    Raises:
        InvalidIdentifierException: si contiene caracteres no permitidos.
    """
    if not isinstance(name, str) or not name:
        raise InvalidIdentifierException(name, "vacío o no es texto")
    if not _IDENTIFIER_RE.match(name):
        raise InvalidIdentifierException(name)
    return name


@dataclass(frozen=True)
class SyncTarget:
    """
    Tabla a sincronizar y sus columnas clave (en orden).

    Las columnas clave identifican la fila tanto en cloud como en local; se
    asume que son la clave candidata real de la tabla remota.
    """

    table_name: str
    key_columns: tuple[str, ...]

    def __post_init__(self) -> None:
        validate_identifier(self.table_name)

        # Aceptamos listas en el constructor, pero guardamos una tupla.
        keys = tuple(self.key_columns)
        object.__setattr__(self, "key_columns", keys)

        if not keys:
            raise InvalidIdentifierException(self.table_name, "la tabla no tiene columnas clave")

        seen: set[str] = set()
        for key in keys:
            validate_identifier(key)
            if key.lower() in seen:
                raise InvalidIdentifierException(key, "columna clave duplicada")
            seen.add(key.lower())

    @classmethod
    def of(cls, table_name: str, key_columns: Iterable[str]) -> "SyncTarget":
        return cls(table_name=table_name, key_columns=tuple(key_columns))

    def is_key(self, column: str) -> bool:
        """Indica si `column` es clave (comparación sin mayúsculas/minúsculas)."""
        return column.lower() in {k.lower() for k in self.key_columns}
