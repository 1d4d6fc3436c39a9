"""
Repositorios SQLAlchemy (async, Core) del sincronizador:
- base cloud: lectura de filas pendientes y marcado Synced = 1
- base local: existencia, UPDATE, INSERT y búsqueda de filas padre

Cada escritura se confirma inmediatamente: no hay transacciones que abarquen
varias sentencias. Si un ciclo falla a mitad de tabla, lo aplicado queda
aplicado y se vuelve a aplicar (idempotente) en el próximo ciclo.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from hms_sync.domain.entities.row import Row, SqlValue
from hms_sync.domain.entities.sync_target import SyncTarget
from hms_sync.domain.entities.table_rules import ParentLookup
from hms_sync.shared.exceptions.domain import MissingColumnException

from .sql_builder import (
    build_exists_sql,
    build_insert_sql,
    build_lookup_sql,
    build_mark_synced_sql,
    build_select_unsynced_sql,
    build_update_sql,
    quoter_for,
)


def key_params(target: SyncTarget, row: Row) -> dict[str, SqlValue]:
    """
    Valores de las columnas clave de `row`, con la grafía configurada.

    Raises:
        MissingColumnException: si la fila no trae alguna columna clave
    """
    params: dict[str, SqlValue] = {}
    for key in target.key_columns:
        if key not in row:
            raise MissingColumnException(target.table_name, key)
        params[key] = row[key]
    return params


class _SyncRepository:
    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn
        self._quote = quoter_for(conn.dialect)

    async def _execute_write(self, sql: str, params: dict[str, Any]) -> int:
        result = await self._conn.execute(text(sql), params)
        await self._conn.commit()
        return result.rowcount


class CloudSyncRepository(_SyncRepository):
    """Operaciones sobre la base cloud (origen)."""

    async def fetch_unsynced(self, table_name: str) -> list[Row]:
        """Materializa todas las filas con Synced = 0 de la tabla."""
        result = await self._conn.execute(text(build_select_unsynced_sql(self._quote, table_name)))
        rows = [Row.from_mapping(m) for m in result.mappings().all()]
        logger.debug(f"{len(rows)} filas pendientes en {table_name}")
        return rows

    async def mark_synced(self, target: SyncTarget, row: Row) -> int:
        """
        Marca Synced = 1 la fila remota cuyas claves coinciden con `row`.

        Returns:
            Cantidad de filas afectadas
        """
        sql = build_mark_synced_sql(self._quote, target.table_name, target.key_columns)
        return await self._execute_write(sql, key_params(target, row))


class LocalSyncRepository(_SyncRepository):
    """Operaciones sobre la base local (destino)."""

    async def exists(self, target: SyncTarget, row: Row) -> bool:
        sql = build_exists_sql(self._quote, target.table_name, target.key_columns)
        result = await self._conn.execute(text(sql), key_params(target, row))
        return result.first() is not None

    async def update(self, target: SyncTarget, set_columns: Sequence[str], row: Row) -> int:
        """
        Pisa `set_columns` (grafía de la fila) en la fila local con las mismas claves.
        """
        sql = build_update_sql(self._quote, target.table_name, set_columns, target.key_columns)
        params = {c: row[c] for c in set_columns}
        params.update(key_params(target, row))
        return await self._execute_write(sql, params)

    async def insert(self, table_name: str, row: Row) -> int:
        sql = build_insert_sql(self._quote, table_name, row.columns)
        return await self._execute_write(sql, row.to_params())

    async def find_parent_value(self, lookup: ParentLookup, row: Row, table_name: str) -> Optional[SqlValue]:
        """
        Busca en la tabla padre local el valor de `lookup.parent_column`.

        Returns:
            El valor encontrado o None si no hay fila padre
        """
        params: dict[str, SqlValue] = {}
        for child_column, parent_column in lookup.match_columns:
            if child_column not in row:
                raise MissingColumnException(table_name, child_column)
            params[parent_column] = row[child_column]

        sql = build_lookup_sql(
            self._quote,
            lookup.parent_table,
            lookup.parent_column,
            [parent for _, parent in lookup.match_columns],
        )
        result = await self._conn.execute(text(sql), params)
        return result.scalar()
