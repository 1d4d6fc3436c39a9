"""
Gestión de engines y conexiones hacia las bases cloud y local.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from hms_sync.core.config import Settings, settings as default_settings


def _create_engine_args(url: str, config: Settings) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    Las bases servidor usan pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": config.DEBUG,
    }

    # Configuracion de pool solo para bases servidor
    if not url.startswith("sqlite"):
        args.update({
            "pool_size": config.DB_POOL_SIZE,
            "max_overflow": config.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


class DatabaseProvider:
    """
    Entrega conexiones por nombre logico ("CloudDb" / "LocalDb").

    La cadena de conexion se vuelve a leer de la configuracion en cada
    llamada; los engines se cachean por URL, asi que cambiar la URL entre
    ciclos crea un engine nuevo y descarta el anterior.
    """

    def __init__(
        self,
        config_provider: Optional[Callable[[], Settings]] = None,
    ) -> None:
        self._config_provider = config_provider or (lambda: default_settings)
        # nombre logico -> (url, engine)
        self._engines: Dict[str, tuple[str, AsyncEngine]] = {}

    @property
    def config(self) -> Settings:
        return self._config_provider()

    async def get_engine(self, name: str) -> AsyncEngine:
        """Retorna el engine vigente para `name`, creandolo si hace falta."""
        config = self.config
        url = config.get_connection_string(name)

        cached = self._engines.get(name)
        if cached and cached[0] == url:
            return cached[1]

        if cached:
            logger.info(f"Cadena de conexion '{name}' cambio; recreando engine")
            await cached[1].dispose()

        engine = create_async_engine(url, **_create_engine_args(url, config))
        self._engines[name] = (url, engine)
        return engine

    @asynccontextmanager
    async def connect(self, name: str) -> AsyncIterator[AsyncConnection]:
        """
        Abre una conexion para una fase de la sincronizacion.

        La conexion se libera siempre al salir del bloque. Si el bloque falla
        se hace rollback de lo que no se haya confirmado.

        Example:
            >>> async with provider.connect("CloudDb") as conn:
            ...     await conn.execute(text("SELECT 1"))
        """
        engine = await self.get_engine(name)
        async with engine.connect() as conn:
            yield conn

    async def dispose(self) -> None:
        """Cierra todas las conexiones de todos los engines."""
        for _, engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()
