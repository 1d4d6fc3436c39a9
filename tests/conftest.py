"""
Configuración de fixtures para pytest.

Las bases cloud y local se simulan con dos archivos SQLite (aiosqlite)
dentro de tmp_path, con el mismo esquema HMS salvo la columna Synced, que
solo existe en cloud.
"""
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from hms_sync.core.config import Settings
from hms_sync.infrastructure.database.session import DatabaseProvider


CLOUD_SCHEMA = [
    """CREATE TABLE HMS_GUESTS (
        GUEST_CODE TEXT NOT NULL,
        NAME TEXT,
        Synced INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE HMS_CHECKIN_HEADER (
        Auto_No INTEGER,
        RESV_ID TEXT NOT NULL,
        CHECKIN_ID TEXT NOT NULL,
        ROOM_NO TEXT,
        Synced INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE HMS_CHECKIN_LINES (
        Auto_No INTEGER,
        RESV_ID TEXT,
        CHECKIN_ID TEXT,
        LINE_NO INTEGER,
        AMOUNT REAL,
        Synced INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE HMS_POST_CHARGES (
        SERIAL_NO INTEGER NOT NULL,
        DESCRIPTION TEXT,
        AMOUNT REAL,
        Synced INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE HMS_RESERVATION_ROOM_GUEST (
        Auto_No INTEGER,
        RESV_ID TEXT NOT NULL,
        GUEST_CODE TEXT NOT NULL,
        Synced INTEGER NOT NULL DEFAULT 0
    )""",
]

LOCAL_SCHEMA = [
    """CREATE TABLE HMS_GUESTS (
        GUEST_CODE TEXT NOT NULL,
        NAME TEXT
    )""",
    """CREATE TABLE HMS_CHECKIN_HEADER (
        Auto_No INTEGER PRIMARY KEY AUTOINCREMENT,
        RESV_ID TEXT NOT NULL,
        CHECKIN_ID TEXT NOT NULL,
        ROOM_NO TEXT
    )""",
    """CREATE TABLE HMS_CHECKIN_LINES (
        Auto_No INTEGER,
        RESV_ID TEXT,
        CHECKIN_ID TEXT,
        LINE_NO INTEGER,
        AMOUNT REAL
    )""",
    """CREATE TABLE HMS_POST_CHARGES (
        SERIAL_NO INTEGER NOT NULL,
        DESCRIPTION TEXT,
        AMOUNT REAL
    )""",
    """CREATE TABLE HMS_RESERVATION_ROOM_GUEST (
        Auto_No INTEGER PRIMARY KEY AUTOINCREMENT,
        RESV_ID TEXT NOT NULL,
        GUEST_CODE TEXT NOT NULL
    )""",
]


class SqliteTestDb:
    """Acceso directo a una base de prueba, por fuera del código bajo test."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = create_async_engine(url)

    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(text(sql), params or {})

    async def fetch_all(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(text(sql), params or {})
            return [dict(m) for m in result.mappings().all()]

    async def create_schema(self, statements: List[str]) -> None:
        for statement in statements:
            await self.execute(statement)


@pytest.fixture
def sync_settings(tmp_path) -> Settings:
    """Settings apuntando a las bases SQLite temporales (sin leer .env)."""
    return Settings(
        _env_file=None,
        CLOUD_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'cloud.db'}",
        LOCAL_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'local.db'}",
        SYNC_INTERVAL_SECONDS=0.05,
        LOG_FILE=str(tmp_path / "sync.log"),
    )


@pytest_asyncio.fixture
async def cloud_db(sync_settings) -> AsyncGenerator[SqliteTestDb, None]:
    db = SqliteTestDb(sync_settings.CLOUD_DATABASE_URL)
    await db.create_schema(CLOUD_SCHEMA)
    yield db
    await db.engine.dispose()


@pytest_asyncio.fixture
async def local_db(sync_settings) -> AsyncGenerator[SqliteTestDb, None]:
    db = SqliteTestDb(sync_settings.LOCAL_DATABASE_URL)
    await db.create_schema(LOCAL_SCHEMA)
    yield db
    await db.engine.dispose()


@pytest_asyncio.fixture
async def db_provider(sync_settings, cloud_db, local_db) -> AsyncGenerator[DatabaseProvider, None]:
    """DatabaseProvider del código bajo test, con ambas bases ya creadas."""
    provider = DatabaseProvider(lambda: sync_settings)
    yield provider
    await provider.dispose()


@pytest.fixture
def log_messages() -> List[str]:
    """Captura los mensajes emitidos con loguru durante el test."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
