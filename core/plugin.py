from __future__ import annotations

import aiofiles
import logging
import os
import psycopg
import sqlparse
import sys

from abc import ABC
from copy import deepcopy
from core import utils
from packaging.version import parse
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .const import DEFAULT_TAG

if TYPE_CHECKING:
    from core import Node

__all__ = [
    "Plugin",
    "PluginError",
    "PluginConfigurationError",
    "PluginInstallationError"
]


class Plugin:
    """
    Base class of all plugins.

    A plugin lives in plugins/<name>/ and brings its own configuration schema (schemas/*.yaml),
    its database tables (db/tables.sql) and optional migrations (db/update_v<version>.sql).
    """

    def __init__(self, node: Node, name: str | None = None):
        self.plugin_name = name or type(self).__module__.split('.')[-2]
        module = sys.modules['plugins.' + self.plugin_name]
        self.plugin_version = getattr(module, '__version__')
        self.plugin_dir = os.path.dirname(module.__file__)
        self.node = node
        self.log = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.apool = node.apool
        self.locals = self.read_locals()
        self._config = dict[str, dict]()

    async def install(self) -> bool:
        if not self.apool:
            raise PluginInstallationError(self.plugin_name, 'no database pool available')
        return await self._init_db()

    async def migrate(self, new_version: str, conn: psycopg.AsyncConnection | None = None) -> None:
        pass

    async def _execute_file(self, cursor: psycopg.AsyncCursor, filename: str) -> None:
        async with aiofiles.open(filename, mode='r', encoding='utf-8') as sql_file:
            for query in [
                stmt.strip()
                for stmt in sqlparse.split(await sql_file.read(), encoding='utf-8')
                if stmt.strip()
            ]:
                self.log.debug(query.rstrip())
                await cursor.execute(query.rstrip())

    async def _init_db(self) -> bool:
        async with self.apool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cursor:
                    await cursor.execute('SELECT version FROM plugins WHERE plugin = %s', (self.plugin_name,))
                    # first installation
                    if cursor.rowcount == 0:
                        tables_file = os.path.join(self.plugin_dir, 'db', 'tables.sql')
                        if os.path.exists(tables_file):
                            await self._execute_file(cursor, tables_file)
                        await cursor.execute("""
                            INSERT INTO plugins (plugin, version) VALUES (%s, %s)
                            ON CONFLICT (plugin) DO NOTHING
                        """, (self.plugin_name, self.plugin_version))
                        self.log.info(f'  => {self.plugin_name.title()} installed.')
                        return True
                    installed = (await cursor.fetchone())[0]
                    while parse(installed) < parse(self.plugin_version):
                        updates_file = os.path.join(self.plugin_dir, 'db', f'update_v{installed}.sql')
                        if os.path.exists(updates_file):
                            await self._execute_file(cursor, updates_file)
                            ver, rev = installed.split('.')
                            installed = ver + '.' + str(int(rev) + 1)
                        else:
                            installed = self.plugin_version
                        await self.migrate(installed, conn)
                        self.log.info(f'  => {self.plugin_name.title()} migrated to version {installed}.')
                    await cursor.execute('UPDATE plugins SET version = %s WHERE plugin = %s',
                                         (self.plugin_version, self.plugin_name))
                    return False

    def read_locals(self) -> dict:
        filename = os.path.join(self.node.config_dir, 'plugins', f'{self.plugin_name}.yaml')
        if not os.path.exists(filename):
            return {}
        self.log.debug(f'  => Reading plugin configuration from {filename} ...')
        validation = self.node.config.get('validation', 'lazy')
        path = os.path.join(self.plugin_dir, 'schemas')
        if os.path.exists(path) and validation in ['strict', 'lazy']:
            schema_files = [str(x) for x in Path(path).glob('*.yaml')]
            if schema_files:
                utils.validate(filename, schema_files, raise_exception=(validation == 'strict'))
            else:
                self.log.warning(f'  - No schema files found for plugin {self.plugin_name}.')
        return utils.read_yaml(filename) or {}

    # get default and specific configs to be merged in derived implementations
    def get_base_config(self, carrier_id: str) -> tuple[dict, dict]:
        default = deepcopy(self.locals.get(DEFAULT_TAG) or {})
        specific = deepcopy(self.locals.get(carrier_id) or {})
        return default, specific

    def get_config(self, carrier_id: Optional[str] = None, *, use_cache: bool | None = True) -> dict:
        if not carrier_id:
            return self.locals.get(DEFAULT_TAG, {})
        if carrier_id not in self._config or not use_cache:
            default, specific = self.get_base_config(carrier_id)
            self._config[carrier_id] = utils.deep_merge(default, specific)
        return self._config[carrier_id]


class PluginError(Exception, ABC):
    ...


class PluginConfigurationError(PluginError):
    def __init__(self, plugin: str, option: str):
        super().__init__(f'Option "{option}" missing in {plugin}.yaml!')


class PluginInstallationError(PluginError):
    def __init__(self, plugin: str, reason: str):
        super().__init__(f'Plugin "{plugin.title()}" could not be installed: {reason}')
