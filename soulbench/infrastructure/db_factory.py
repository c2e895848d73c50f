"""
Database connection factory for SoulBench.

Backends are addressed by DSN (taken from the scenario file), so the factory
is keyed by DSN rather than by a single configured database. Connection
attempts retry transient failures with tenacity; the measured queries
themselves are never retried, since a retry would hide latency.
"""

from __future__ import annotations

import psycopg
from psycopg import Connection
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from soulbench.config import get_settings
from soulbench.utils.logging import get_logger

log = get_logger(__name__)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_connection(dsn: str) -> Connection:
    """
    Open a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection
    errors. Autocommit is enabled so read-only benchmark queries do not hold
    a transaction open between iterations.

    Parameters
    ----------
    dsn : str
        libpq connection string or URI for the backend.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = get_settings()
    log.debug("Opening connection", extra={"connect_timeout_s": settings.db_connect_timeout_s})
    return psycopg.connect(dsn, connect_timeout=settings.db_connect_timeout_s, autocommit=True)


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """Set a per-session statement timeout; 0 disables it."""
    if timeout_ms > 0:
        cursor.execute(f"SET statement_timeout = {int(timeout_ms)}")


__all__ = ["get_connection", "apply_statement_timeout"]
