"""
Reglas particulares por tabla.

La mayoría de las tablas se replican tal cual. Unas pocas tienen columnas de
identidad local que no deben viajar desde cloud, o claves foráneas que hay
que resolver contra la base local antes de insertar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from hms_sync.domain.entities.sync_target import validate_identifier


@dataclass(frozen=True)
class ParentLookup:
    """
    Re-asignación del padre de una fila hija antes del INSERT.

    - parent_table: tabla padre en la base local
    - match_columns: columna hija -> columna padre usadas para encontrarlo
    - parent_column: columna del padre cuyo valor se copia
    - target_column: columna de la fila hija que recibe ese valor
    """

    parent_table: str
    match_columns: tuple[tuple[str, str], ...]
    parent_column: str
    target_column: str

    def __post_init__(self) -> None:
        validate_identifier(self.parent_table)
        validate_identifier(self.parent_column)
        validate_identifier(self.target_column)
        for child, parent in self.match_columns:
            validate_identifier(child)
            validate_identifier(parent)


@dataclass(frozen=True)
class TableRules:
    """
    Excepciones a la regla general de upsert para una tabla.

    - update_protected_columns: nunca se pisan en un UPDATE
    - insert_excluded_columns: no se envían en el INSERT (identidad local)
    - parent_lookup: resolución de la FK local antes del INSERT
    """

    update_protected_columns: frozenset[str] = field(default_factory=frozenset)
    insert_excluded_columns: frozenset[str] = field(default_factory=frozenset)
    parent_lookup: Optional[ParentLookup] = None

    def is_update_protected(self, column: str) -> bool:
        return column.lower() in {c.lower() for c in self.update_protected_columns}

    def is_insert_excluded(self, column: str) -> bool:
        return column.lower() in {c.lower() for c in self.insert_excluded_columns}


NO_RULES = TableRules()


class TableRulesRegistry:
    """Tabla de reglas indexada por nombre de tabla (sin distinguir mayúsculas)."""

    def __init__(self, rules: Optional[Mapping[str, TableRules]] = None) -> None:
        self._rules: dict[str, TableRules] = {}
        for table_name, table_rules in (rules or {}).items():
            self._rules[validate_identifier(table_name).upper()] = table_rules

    def for_table(self, table_name: str) -> TableRules:
        return self._rules.get(table_name.upper(), NO_RULES)

    def __contains__(self, table_name: str) -> bool:
        return table_name.upper() in self._rules
