"""Sandbox services for mirroring vendor packages locally."""

from conga_sandbox.services.sample_data import build_sample_transactions
from conga_sandbox.services.transaction_mirror import TransactionMirror

__all__ = ["TransactionMirror", "build_sample_transactions"]
