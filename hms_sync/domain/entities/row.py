"""
Fila leída de la base cloud.

Mapping ordenado columna -> valor escalar con búsqueda de columnas
insensible a mayúsculas/minúsculas. Se conserva la grafía original de cada
columna para generar el SQL y los parámetros.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterator, Optional, Union
from uuid import UUID

from hms_sync.domain.entities.sync_target import validate_identifier

SqlValue = Union[None, bool, int, float, Decimal, str, datetime, date, time, bytes, UUID]

_SCALAR_TYPES = (bool, int, float, Decimal, str, datetime, date, time, bytes, UUID)


def _check_value(column: str, value: Any) -> SqlValue:
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    # memoryview/bytearray llegan desde algunos drivers para columnas binarias.
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise TypeError(
        f"Valor no soportado para la columna '{column}': {type(value).__name__}"
    )


class Row(Mapping):
    """
    Fila inmutable con columnas case-insensitive.

    Ejemplo:
        >>> row = Row.from_mapping({"GUEST_CODE": "G1", "Synced": 0})
        >>> row["guest_code"]
        'G1'
        >>> list(row.without("SYNCED"))
        ['GUEST_CODE']
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Mapping[str, Any]] = None) -> None:
        # lower(nombre) -> (nombre original, valor)
        self._items: dict[str, tuple[str, SqlValue]] = {}
        for column, value in (items or {}).items():
            validate_identifier(column)
            lowered = column.lower()
            if lowered in self._items:
                raise ValueError(f"Columna duplicada en la fila: '{column}'")
            self._items[lowered] = (column, _check_value(column, value))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Row":
        """Construye una fila desde un RowMapping de SQLAlchemy o un dict."""
        return cls(dict(mapping))

    def __getitem__(self, column: str) -> SqlValue:
        try:
            return self._items[column.lower()][1]
        except KeyError:
            raise KeyError(column) from None

    def __contains__(self, column: object) -> bool:
        return isinstance(column, str) and column.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(tuple(self._items.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{c}={v!r}" for c, v in self._items.values())
        return f"Row({body})"

    @property
    def columns(self) -> list[str]:
        return list(self)

    def without(self, *columns: str) -> "Row":
        """Nueva fila sin las columnas indicadas (sin distinguir mayúsculas)."""
        excluded = {c.lower() for c in columns}
        return Row({c: v for c, v in self._items.values() if c.lower() not in excluded})

    def with_value(self, column: str, value: SqlValue) -> "Row":
        """
        Nueva fila con `column` = `value`.

        Si la columna existe se sobrescribe conservando su grafía; si no, se
        agrega al final.
        """
        items = {c: v for c, v in self._items.values()}
        existing = self._items.get(column.lower())
        items[existing[0] if existing else column] = value
        return Row(items)

    def to_params(self) -> dict[str, SqlValue]:
        """Parámetros bind (nombre original -> valor)."""
        return {c: v for c, v in self._items.values()}
