"""
JSON-file transaction store.

The whole transaction list is one JSON array, rewritten on every save.
There is no file locking: two processes saving at the same time race and
the last write wins.
"""

import json
import logging
from pathlib import Path

from ..schemas.transaction import Transaction

logger = logging.getLogger(__name__)


class TransactionStore:
    """Loads and saves the local transaction list."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> list[Transaction]:
        """
        Load all transactions.

        A missing file is created empty. Corrupt content, a non-array
        document, or records without an id are logged and dropped.
        """
        if not self.path.exists():
            logger.info("No transactions at %s, starting empty", self.path)
            self.save([])
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Error loading transactions from %s", self.path)
            return []

        if not isinstance(data, list):
            logger.error(
                "Transactions file %s does not hold a JSON array (%s)",
                self.path,
                type(data).__name__,
            )
            return []

        transactions = []
        for item in data:
            if not isinstance(item, dict) or "id" not in item:
                logger.warning("Skipping malformed transaction record: %r", item)
                continue
            try:
                transactions.append(Transaction.from_dict(item))
            except (AttributeError, TypeError, KeyError, ValueError):
                logger.exception("Skipping unreadable transaction record %r", item.get("id"))
        return transactions

    def save(self, transactions: list[Transaction]) -> bool:
        """Persist the full list. Returns success."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump([t.to_dict() for t in transactions], f, indent=2)
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving transactions to %s", self.path)
            return False
        return True
