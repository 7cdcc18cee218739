"""
Schemas shared across the sandbox.

Transaction records, the decoded package listing, and timestamp helpers.
"""

from .package_listing import PackageListing, decode_package_listing
from .timestamps import format_timestamp, parse_timestamp, utc_now
from .transaction import (
    Document,
    HistoryAction,
    HistoryEntry,
    Signer,
    SignerStatus,
    Transaction,
    TransactionStatus,
)

__all__ = [
    "Document",
    "HistoryAction",
    "HistoryEntry",
    "PackageListing",
    "Signer",
    "SignerStatus",
    "Transaction",
    "TransactionStatus",
    "decode_package_listing",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
