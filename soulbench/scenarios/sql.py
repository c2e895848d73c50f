"""
SQL operation: run a user-supplied query against a Postgres-compatible backend.

The connection is opened lazily on the first call, which the warmup phase
absorbs, and reused for every later call the way a long-lived application
client would be. psycopg connections are thread-safe, so load-test workers
share it.
"""

from __future__ import annotations

import threading
from typing import Any, Optional, Sequence

from psycopg import Connection

from soulbench.config import get_settings
from soulbench.infrastructure.db_factory import apply_statement_timeout, get_connection


class SqlOperation:
    """
    Execute one parameterised query and fetch every row.

    Fetching is part of the measured work: a query that returns quickly but
    streams a large result set should not look cheap.
    """

    def __init__(
        self,
        backend: str,
        dsn: str,
        query: str,
        params: Optional[Sequence[Any]] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self.backend = backend
        self.query = query
        self.params = tuple(params or ())
        self._dsn = dsn
        self._timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else get_settings().db_statement_timeout_ms
        )
        self._conn: Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> Connection:
        with self._lock:
            if self._conn is None or self._conn.closed:
                conn = get_connection(self._dsn)
                try:
                    with conn.cursor() as cur:
                        apply_statement_timeout(cur, self._timeout_ms)
                except Exception:
                    conn.close()
                    raise
                self._conn = conn
            return self._conn

    def __call__(self) -> int:
        conn = self._get_connection()
        with conn.cursor() as cur:
            cur.execute(self.query, self.params or None)
            rows = cur.fetchall() if cur.description is not None else []
        return len(rows)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


__all__ = ["SqlOperation"]
