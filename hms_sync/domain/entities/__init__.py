"""
Entidades del dominio.
"""
from hms_sync.domain.entities.sync_target import SyncTarget, SYNCED_COLUMN, validate_identifier
from hms_sync.domain.entities.row import Row, SqlValue
from hms_sync.domain.entities.table_rules import (
    ParentLookup,
    TableRules,
    TableRulesRegistry,
    NO_RULES,
)

__all__ = [
    "SyncTarget",
    "SYNCED_COLUMN",
    "validate_identifier",
    "Row",
    "SqlValue",
    "ParentLookup",
    "TableRules",
    "TableRulesRegistry",
    "NO_RULES",
]
