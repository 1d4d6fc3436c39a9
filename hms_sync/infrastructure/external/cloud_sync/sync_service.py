"""
Servicio de sincronización cloud -> local.

Diseño (resumen), por cada tabla configurada:
- Lee de cloud todas las filas con Synced = 0 (una conexión)
- Aplica cada fila en local como UPDATE o INSERT según exista por claves
  (una conexión reutilizada para todas las filas de la tabla)
- Marca en cloud Synced = 1 las filas leídas (conexión nueva)

Reglas particulares (ver sync_config.py):
- HMS_CHECKIN_HEADER: Auto_No nunca se pisa en UPDATE ni se envía en INSERT
- HMS_RESERVATION_ROOM_GUEST: Auto_No no se envía en INSERT
- HMS_CHECKIN_LINES: antes del INSERT, Auto_No se toma del header local
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from hms_sync.core.config import CLOUD_DB, LOCAL_DB, Settings, settings as default_settings
from hms_sync.domain.entities.row import Row
from hms_sync.domain.entities.sync_target import SYNCED_COLUMN, SyncTarget
from hms_sync.domain.entities.table_rules import ParentLookup, TableRules, TableRulesRegistry
from hms_sync.infrastructure.database.session import DatabaseProvider
from hms_sync.shared.exceptions.domain import MissingParentRowException

from .repository import CloudSyncRepository, LocalSyncRepository
from .sync_config import DEFAULT_TABLE_RULES, load_sync_targets


@dataclass(frozen=True)
class TableSyncResult:
    table_name: str
    rows_fetched: int
    inserted: int = 0
    updated: int = 0


class TableSyncer:
    """
    Orquestador del pipeline para una lista ordenada de tablas.
    """

    def __init__(
        self,
        *,
        db: DatabaseProvider,
        targets: Sequence[SyncTarget],
        rules: Optional[TableRulesRegistry] = None,
    ) -> None:
        self._db = db
        self._targets = tuple(targets)
        self._rules = rules or DEFAULT_TABLE_RULES

    @property
    def targets(self) -> tuple[SyncTarget, ...]:
        return self._targets

    async def sync_all(self) -> list[TableSyncResult]:
        """
        Sincroniza todas las tablas en el orden configurado.

        La primera excepción se propaga: las tablas anteriores ya quedaron
        confirmadas y las siguientes no se intentan en este ciclo.
        """
        results = []
        for target in self._targets:
            results.append(await self.sync_table(target))
        return results

    async def sync_table(self, target: SyncTarget) -> TableSyncResult:
        """
        Ejecuta fetch -> apply -> mark synced para una tabla.
        """
        # 1. Filas pendientes en cloud
        async with self._db.connect(CLOUD_DB) as cloud:
            rows = await CloudSyncRepository(cloud).fetch_unsynced(target.table_name)

        if not rows:
            return TableSyncResult(table_name=target.table_name, rows_fetched=0)

        # 2. Upsert en local
        rules = self._rules.for_table(target.table_name)
        inserted = updated = 0
        async with self._db.connect(LOCAL_DB) as local:
            local_repo = LocalSyncRepository(local)
            for row in rows:
                if await self._apply_row(local_repo, target, rules, row):
                    inserted += 1
                else:
                    updated += 1

        # 3. Marcar como sincronizadas las filas originales
        async with self._db.connect(CLOUD_DB) as cloud:
            cloud_repo = CloudSyncRepository(cloud)
            for row in rows:
                await cloud_repo.mark_synced(target, row)

        logger.bind(table=target.table_name, rows=len(rows)).info(
            f"Synced {len(rows)} rows from {target.table_name}"
        )
        return TableSyncResult(
            table_name=target.table_name,
            rows_fetched=len(rows),
            inserted=inserted,
            updated=updated,
        )

    async def _apply_row(
        self,
        repo: LocalSyncRepository,
        target: SyncTarget,
        rules: TableRules,
        row: Row,
    ) -> bool:
        """
        Aplica una fila en local.

        Returns:
            True si se insertó, False si se actualizó
        """
        params = row.without(SYNCED_COLUMN)

        if await repo.exists(target, params):
            set_columns = [
                c for c in params
                if not target.is_key(c) and not rules.is_update_protected(c)
            ]
            if set_columns:
                await repo.update(target, set_columns, params)
            else:
                logger.debug(f"{target.table_name}: fila sin columnas a actualizar, se omite UPDATE")
            return False

        insert_row = params.without(*[c for c in params if rules.is_insert_excluded(c)])

        if rules.parent_lookup is not None:
            parent_value = await self._resolve_parent(repo, rules.parent_lookup, params, target.table_name)
            insert_row = insert_row.with_value(rules.parent_lookup.target_column, parent_value)

        await repo.insert(target.table_name, insert_row)
        return True

    async def _resolve_parent(
        self,
        repo: LocalSyncRepository,
        lookup: ParentLookup,
        row: Row,
        table_name: str,
    ):
        """
        Identidad local del padre de `row`. Nunca se usa el valor remoto.

        Raises:
            MissingParentRowException: si el padre no existe en local
        """
        value = await repo.find_parent_value(lookup, row, table_name)
        if value is None:
            criteria = {child: row[child] for child, _ in lookup.match_columns}
            raise MissingParentRowException(lookup.parent_table, criteria)
        return value


def build_from_settings(
    config: Optional[Settings] = None,
) -> tuple[TableSyncer, DatabaseProvider]:
    """
    Constructor “oficial” del pipeline a partir de la configuración.

    La lista de tablas se carga una sola vez; las cadenas de conexión se
    leen en cada sincronización a través del DatabaseProvider.
    """
    config = config or default_settings
    db = DatabaseProvider(lambda: config)
    syncer = TableSyncer(db=db, targets=load_sync_targets(config))
    return syncer, db
