"""Demo transactions for exploring the sandbox without vendor credentials."""

from __future__ import annotations

from datetime import datetime, timedelta

from conga_sandbox.schemas.timestamps import format_timestamp
from conga_sandbox.schemas.transaction import (
    Document,
    HistoryAction,
    HistoryEntry,
    Signer,
    SignerStatus,
    Transaction,
    TransactionStatus,
)

# (id, name, status, created days ago, updated days ago, documents, signers)
# documents: (id, name, size); signers: (id, name, email, status)
_SAMPLES = [
    (
        "sample-txn-1",
        "Sample Contract 1",
        TransactionStatus.SENT,
        0,
        0,
        [("doc-1", "Contract.pdf", 125000)],
        [
            ("signer-1", "John Doe", "john.doe@example.com", SignerStatus.PENDING),
            ("signer-2", "Jane Smith", "jane.smith@example.com", SignerStatus.PENDING),
        ],
    ),
    (
        "sample-txn-2",
        "Sample Agreement 2",
        TransactionStatus.DRAFT,
        2,
        2,
        [("doc-2", "Agreement.pdf", 250000), ("doc-3", "Terms.pdf", 150000)],
        [("signer-3", "Robert Johnson", "robert.johnson@example.com", SignerStatus.PENDING)],
    ),
    (
        "sample-txn-3",
        "Sample Completion",
        TransactionStatus.COMPLETED,
        10,
        5,
        [("doc-4", "Completion.pdf", 180000)],
        [
            ("signer-4", "Sarah Williams", "sarah.williams@example.com", SignerStatus.COMPLETED),
            ("signer-5", "Michael Brown", "michael.brown@example.com", SignerStatus.COMPLETED),
        ],
    ),
]


def build_sample_transactions(now: datetime) -> list[Transaction]:
    """Build the three demo transactions relative to ``now``."""
    transactions = []

    for txn_id, name, status, created_ago, updated_ago, documents, signers in _SAMPLES:
        created = format_timestamp(now - timedelta(days=created_ago))
        updated = format_timestamp(now - timedelta(days=updated_ago))

        transactions.append(
            Transaction(
                id=txn_id,
                name=name,
                status=status.value,
                created=created,
                updated=updated,
                signers=[
                    Signer(id=sid, name=sname, email=email, status=sstatus.value, role=sid)
                    for sid, sname, email, sstatus in signers
                ],
                documents=[
                    Document(id=did, name=dname, type="application/pdf", size=size)
                    for did, dname, size in documents
                ],
                history=[
                    HistoryEntry(
                        action=HistoryAction.CREATE.value,
                        timestamp=created,
                        details="Sample transaction created",
                    )
                ],
            )
        )

    return transactions
