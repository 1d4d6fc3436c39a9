"""
Construcción del SQL del sincronizador.

Funciones puras, libres de I/O, para poder testearlas sin base de datos.

Los nombres de tabla/columna se validan y se citan con el preparer del
dialecto (corchetes en SQL Server, comillas dobles en Postgres/SQLite).
Los valores nunca se interpolan: siempre van como parámetros bind
`:<columna>`, usando el nombre de la columna como nombre del parámetro.
"""

from __future__ import annotations

from typing import Callable, Sequence

from sqlalchemy.engine import Dialect

from hms_sync.domain.entities.sync_target import SYNCED_COLUMN, validate_identifier

Quote = Callable[[str], str]


def quoter_for(dialect: Dialect) -> Quote:
    """Retorna la función de citado de identificadores del dialecto."""
    preparer = dialect.identifier_preparer

    def quote(name: str) -> str:
        return preparer.quote_identifier(validate_identifier(name))

    return quote


def build_where_clause(quote: Quote, columns: Sequence[str]) -> str:
    """`"A" = :A AND "B" = :B` (igualdad conjuntiva sobre todas las columnas)."""
    if not columns:
        raise ValueError("Se necesita al menos una columna para el WHERE")
    return " AND ".join(f"{quote(c)} = :{c}" for c in columns)


def build_select_unsynced_sql(quote: Quote, table: str) -> str:
    return f"SELECT * FROM {quote(table)} WHERE {quote(SYNCED_COLUMN)} = 0"


def build_exists_sql(quote: Quote, table: str, key_columns: Sequence[str]) -> str:
    return f"SELECT 1 FROM {quote(table)} WHERE {build_where_clause(quote, key_columns)}"


def build_update_sql(
    quote: Quote,
    table: str,
    set_columns: Sequence[str],
    key_columns: Sequence[str],
) -> str:
    """
    UPDATE que pisa `set_columns` en la fila identificada por `key_columns`.

    El caller es responsable de excluir las columnas clave de `set_columns`.
    """
    if not set_columns:
        raise ValueError(f"UPDATE sin columnas para {table}")
    set_list = ", ".join(f"{quote(c)} = :{c}" for c in set_columns)
    return (
        f"UPDATE {quote(table)} SET {set_list} "
        f"WHERE {build_where_clause(quote, key_columns)}"
    )


def build_insert_sql(quote: Quote, table: str, columns: Sequence[str]) -> str:
    if not columns:
        raise ValueError(f"INSERT sin columnas para {table}")
    cols = ", ".join(quote(c) for c in columns)
    vals = ", ".join(f":{c}" for c in columns)
    return f"INSERT INTO {quote(table)} ({cols}) VALUES ({vals})"


def build_mark_synced_sql(quote: Quote, table: str, key_columns: Sequence[str]) -> str:
    return (
        f"UPDATE {quote(table)} SET {quote(SYNCED_COLUMN)} = 1 "
        f"WHERE {build_where_clause(quote, key_columns)}"
    )


def build_lookup_sql(
    quote: Quote,
    table: str,
    select_column: str,
    match_columns: Sequence[str],
) -> str:
    """SELECT de una sola columna filtrando por igualdad en `match_columns`."""
    return (
        f"SELECT {quote(select_column)} FROM {quote(table)} "
        f"WHERE {build_where_clause(quote, match_columns)}"
    )
