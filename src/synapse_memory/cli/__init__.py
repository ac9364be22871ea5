"""Command-line interface for synapse-memory.

Provides CLI commands for memory administration: health checks, healing,
memory maps, snapshots and session statistics.
"""

from .memory import memory_cli

__all__ = ["memory_cli"]
