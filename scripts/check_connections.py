"""
CLI: verifica la conectividad con las bases cloud y local.

Uso recomendado:
  - Antes de levantar el servicio en un equipo nuevo.
  - No sincroniza nada: solo ejecuta SELECT 1 y revisa que las tablas
    configuradas existan en cloud con su columna Synced.

Variables de entorno requeridas:
  - CLOUD_DATABASE_URL
  - LOCAL_DATABASE_URL

Ejecución:
  python scripts/check_connections.py
  python scripts/check_connections.py --skip-tables
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Cargar variables desde el .env de la raiz del repo si existe.
_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env", override=False)

from sqlalchemy import text  # noqa: E402

from hms_sync.core.config import CLOUD_DB, LOCAL_DB, Settings  # noqa: E402
from hms_sync.domain.entities.sync_target import SYNCED_COLUMN  # noqa: E402
from hms_sync.infrastructure.database.session import DatabaseProvider  # noqa: E402
from hms_sync.infrastructure.external.cloud_sync.sql_builder import quoter_for  # noqa: E402
from hms_sync.infrastructure.external.cloud_sync.sync_config import load_sync_targets  # noqa: E402


async def _check(config: Settings, check_tables: bool) -> int:
    db = DatabaseProvider(lambda: config)
    failures = 0
    try:
        for name in (CLOUD_DB, LOCAL_DB):
            try:
                async with db.connect(name) as conn:
                    await conn.execute(text("SELECT 1"))
                logger.success(f"{name}: conexion OK")
            except Exception as e:
                failures += 1
                logger.error(f"{name}: no se pudo conectar: {e}")

        if check_tables and failures == 0:
            async with db.connect(CLOUD_DB) as conn:
                quote = quoter_for(conn.dialect)
                for target in load_sync_targets(config):
                    try:
                        # WHERE 1 = 0: solo valida tabla y columnas, no trae filas
                        columns = ", ".join(quote(c) for c in (*target.key_columns, SYNCED_COLUMN))
                        await conn.execute(
                            text(f"SELECT {columns} FROM {quote(target.table_name)} WHERE 1 = 0")
                        )
                        logger.success(f"{CLOUD_DB}: {target.table_name} OK")
                    except Exception as e:
                        failures += 1
                        logger.error(f"{CLOUD_DB}: {target.table_name} invalida: {e}")
                        await conn.rollback()
    finally:
        await db.dispose()
    return failures


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--skip-tables",
        action="store_true",
        help="Solo prueba la conexion, sin revisar las tablas configuradas.",
    )
    args = parser.parse_args()

    failures = asyncio.run(_check(Settings(), check_tables=not args.skip_tables))
    if failures:
        logger.error(f"{failures} verificaciones fallaron")
        return 1
    logger.info("Todas las verificaciones OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
