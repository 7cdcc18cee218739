"""
State Store (JSON-based).

Flat-file persistence of the local transaction mirror.
"""

from .json_store import TransactionStore

__all__ = ["TransactionStore"]
