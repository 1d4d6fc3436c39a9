"""
Configuración del sync (qué tablas se replican y con qué reglas).

Aquí vive el control de:
- tablas a replicar y su orden
- columnas clave de cada tabla
- reglas particulares (identidades locales, FKs a re-asignar)

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from hms_sync.core.config import Settings, parse_sync_tables
from hms_sync.domain.entities.sync_target import SyncTarget
from hms_sync.domain.entities.table_rules import ParentLookup, TableRules, TableRulesRegistry

CHECKIN_HEADER = "HMS_CHECKIN_HEADER"
CHECKIN_LINES = "HMS_CHECKIN_LINES"
RESERVATION_ROOM_GUEST = "HMS_RESERVATION_ROOM_GUEST"

# Identidad generada por la base local. Nunca se confía en el valor remoto.
AUTO_NO = "Auto_No"


# El orden importa: los headers deben existir antes que sus líneas.
DEFAULT_SYNC_TARGETS: tuple[SyncTarget, ...] = (
    SyncTarget.of("HMS_GUESTS", ["GUEST_CODE"]),
    SyncTarget.of(CHECKIN_HEADER, ["RESV_ID", "CHECKIN_ID"]),
    SyncTarget.of(CHECKIN_LINES, [AUTO_NO]),
    SyncTarget.of("HMS_POST_CHARGES", ["SERIAL_NO"]),
    SyncTarget.of(RESERVATION_ROOM_GUEST, ["RESV_ID", "GUEST_CODE"]),
)


DEFAULT_TABLE_RULES = TableRulesRegistry({
    CHECKIN_HEADER: TableRules(
        update_protected_columns=frozenset({AUTO_NO}),
        insert_excluded_columns=frozenset({AUTO_NO}),
    ),
    RESERVATION_ROOM_GUEST: TableRules(
        insert_excluded_columns=frozenset({AUTO_NO}),
    ),
    CHECKIN_LINES: TableRules(
        parent_lookup=ParentLookup(
            parent_table=CHECKIN_HEADER,
            match_columns=(("RESV_ID", "RESV_ID"), ("CHECKIN_ID", "CHECKIN_ID")),
            parent_column=AUTO_NO,
            target_column=AUTO_NO,
        ),
    ),
})


def load_sync_targets(config: Settings) -> tuple[SyncTarget, ...]:
    """
    Retorna la lista inmutable de tablas a sincronizar.

    Si SYNC_TABLES está definida reemplaza por completo a la lista por defecto.
    """
    custom = parse_sync_tables(config.SYNC_TABLES)
    if custom:
        logger.info(f"Usando SYNC_TABLES: {[t.table_name for t in custom]}")
        return tuple(custom)
    return DEFAULT_SYNC_TARGETS


def describe_targets(targets: tuple[SyncTarget, ...], rules: Optional[TableRulesRegistry] = None) -> list[str]:
    """Descripción legible de cada tabla para el log de arranque."""
    rules = rules or DEFAULT_TABLE_RULES
    lines = []
    for target in targets:
        extra = " (reglas especiales)" if target.table_name in rules else ""
        lines.append(f"{target.table_name} [{', '.join(target.key_columns)}]{extra}")
    return lines
