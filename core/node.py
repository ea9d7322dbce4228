from __future__ import annotations

import logging
import os
import platform
import psycopg

from pathlib import Path
from psycopg.errors import ConnectionTimeout
from psycopg_pool import AsyncConnectionPool
from typing import Optional

from core import utils
from core.const import DATABASE_PASSWORD_ENV

__all__ = [
    "Node",
    "FatalException"
]


class FatalException(Exception):
    def __init__(self, message: str | None = None):
        super().__init__(message)


class Node:
    """
    The local installation: main.yaml, the database pools and the plugin configurations below config_dir.
    """

    def __init__(self, config_dir: str = 'config', name: Optional[str] = None):
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.config_dir = config_dir
        self.name = name or platform.node()
        self.apool: Optional[AsyncConnectionPool] = None
        self.config = self.read_config()

    async def __aenter__(self):
        await self.init_db()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_db()

    def read_config(self) -> dict:
        config_file = os.path.join(self.config_dir, 'main.yaml')
        if not os.path.exists(config_file):
            raise FatalException(f"No {config_file} found. Exiting.")
        data: dict = utils.read_yaml(config_file) or {}
        validation = data.get('validation', 'lazy')
        if validation in ['strict', 'lazy']:
            schema_files = [str(Path(__file__).parent.parent / 'schemas' / 'main_schema.yaml')]
            utils.validate(config_file, schema_files, raise_exception=(validation == 'strict'))
        if not data.get('database', {}).get('url'):
            raise FatalException(f"No database URL configured in {config_file}!")
        return data

    @property
    def database_url(self) -> str:
        try:
            return utils.substitute_secret(self.config['database']['url'], DATABASE_PASSWORD_ENV)
        except ValueError as ex:
            raise FatalException(str(ex))

    async def init_db(self):
        async def check_db(url: str) -> Optional[str]:
            max_attempts = self.config['database'].get('max_retries', 10)
            for attempt in range(max_attempts + 1):
                try:
                    aconn = await psycopg.AsyncConnection.connect(url, connect_timeout=5)
                    async with aconn:
                        cursor = await aconn.execute("SHOW server_version")
                        return (await cursor.fetchone())[0]
                except ConnectionTimeout:
                    if attempt < max_attempts:
                        self.log.warning("- Database not available (yet), trying again ...")
                        continue
                    raise
            return None

        url = self.database_url
        try:
            version = await check_db(url)
        except psycopg.OperationalError as ex:
            raise FatalException(f"Database not reachable: {ex}")
        self.log.info(f"- Connection to PostgreSQL {version} established.")

        pool_min = self.config['database'].get('pool_min', 2)
        pool_max = self.config['database'].get('pool_max', 10)
        max_idle = self.config['database'].get('max_idle', 10 * 60.0)
        timeout = self.config['database'].get('timeout', 90.0)
        self.log.debug("- Initializing database pool ...")
        self.apool = AsyncConnectionPool(conninfo=url, name="AsyncPool", min_size=pool_min, max_size=pool_max,
                                         check=AsyncConnectionPool.check_connection, max_idle=max_idle,
                                         timeout=timeout, open=False)
        await self.apool.open()
        await self._init_schema()
        self.log.debug("- Database pool initialized.")

    async def _init_schema(self):
        async with self.apool.connection() as conn:
            async with conn.transaction():
                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS plugins (
                        plugin TEXT PRIMARY KEY,
                        version TEXT NOT NULL
                    )
                """)

    async def close_db(self):
        if self.apool and not self.apool.closed:
            try:
                await self.apool.close()
            except Exception as ex:
                self.log.exception(ex)
