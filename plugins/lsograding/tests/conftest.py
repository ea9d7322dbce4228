from contextlib import asynccontextmanager
from typing import Any, Optional

import pytest


class FakeCursor:
    """Records the executed queries and hands out queued rows."""

    def __init__(self, rows: Optional[list] = None, rowcount: int = 0, error: Optional[Exception] = None):
        self.rows = list(rows or [])
        self.rowcount = rowcount
        self.error = error
        self.queries: list[tuple[str, Any]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def execute(self, query: str, params: Any = None):
        if self.error:
            raise self.error
        self.queries.append((query, params))
        return self

    async def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    async def __aiter__(self):
        while self.rows:
            yield self.rows.pop(0)


class FakeConnection:

    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor

    def cursor(self, row_factory=None):
        return self._cursor

    @asynccontextmanager
    async def transaction(self):
        yield

    async def execute(self, query: str, params: Any = None):
        return await self._cursor.execute(query, params)


class FakePool:

    def __init__(self, cursor: FakeCursor):
        self.cursor = cursor
        self.connections = 0

    @asynccontextmanager
    async def connection(self):
        self.connections += 1
        yield FakeConnection(self.cursor)

    @property
    def queries(self) -> list[str]:
        return [query for query, _ in self.cursor.queries]


@pytest.fixture
def make_pool():
    def _make_pool(rows: Optional[list] = None, *, rowcount: int = 0, error: Optional[Exception] = None) -> FakePool:
        return FakePool(FakeCursor(rows, rowcount=rowcount, error=error))

    return _make_pool
