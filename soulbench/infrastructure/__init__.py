"""
Infrastructure package for SoulBench.

Centralizes database connectivity concerns. Keep this layer focused on I/O
and resource management, decoupled from scenario and orchestrator logic.
"""

from soulbench.infrastructure.db_factory import apply_statement_timeout, get_connection

__all__ = [
    "apply_statement_timeout",
    "get_connection",
]
