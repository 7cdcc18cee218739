"""Local mirror of Conga Sign packages.

The mirror keeps a durable list of transactions in sync with the vendor
while owning fields the vendor listing does not return (signers, documents,
history). It is deliberately asymmetric about failures:
- Refresh paths (get_all, get_by_id) log vendor errors and fall back to the
  last known local data.
- Mutations (create, cancel, add_signer, ...) raise, and only touch local
  state after the vendor call succeeded.

Status transitions are mirrored, never enforced: nothing stops a second
cancel, and each one is recorded in the history.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from conga_sandbox.conga_client.exceptions import ApiRequestError, NotFoundError
from conga_sandbox.schemas.package_listing import decode_package_listing
from conga_sandbox.schemas.timestamps import format_timestamp, utc_now
from conga_sandbox.schemas.transaction import (
    Document,
    HistoryAction,
    HistoryEntry,
    Signer,
    SignerStatus,
    Transaction,
    TransactionStatus,
)
from conga_sandbox.services.sample_data import build_sample_transactions

if TYPE_CHECKING:
    from conga_sandbox.conga_client import CongaClient
    from conga_sandbox.state_store import TransactionStore

logger = logging.getLogger(__name__)

UNKNOWN_SIGNER_NAME = "Unknown"
UNKNOWN_SIGNER_EMAIL = "unknown@example.com"
UNNAMED_PACKAGE = "Unnamed Package"
DEFAULT_PACKAGE_NAME = "Signature Package"


def remote_status(package: dict) -> str:
    """Status reported by the vendor: status, then typeAsString, then UNKNOWN."""
    return package.get("status") or package.get("typeAsString") or TransactionStatus.UNKNOWN.value


def signer_from_role(role: dict) -> Signer:
    """Build a local signer from a vendor role.

    Person fields are read from the role itself, falling back to the role's
    first nested signer.
    """
    nested = role.get("signers")
    person = nested[0] if isinstance(nested, list) and nested and isinstance(nested[0], dict) else {}

    def pick(key: str) -> Any:
        return role.get(key) or person.get(key)

    full_name = f"{pick('firstName') or ''} {pick('lastName') or ''}".strip()

    return Signer(
        id=role.get("id") or role.get("uid") or f"role-{uuid.uuid4().hex[:7]}",
        name=role.get("name") or full_name or UNKNOWN_SIGNER_NAME,
        email=pick("email") or UNKNOWN_SIGNER_EMAIL,
        status=role.get("status") or SignerStatus.PENDING.value,
    )


def transaction_from_package(package: dict, timestamp: str) -> Transaction:
    """Create a local record for a package first seen in a vendor response."""
    roles = package.get("roles")
    signers = [signer_from_role(r) for r in roles if isinstance(r, dict)] if isinstance(roles, list) else []

    return Transaction(
        id=package["id"],
        name=package.get("name") or UNNAMED_PACKAGE,
        status=remote_status(package),
        created=timestamp,
        updated=timestamp,
        signers=signers,
        documents=[],
        history=[
            HistoryEntry(
                action=HistoryAction.DISCOVERED.value,
                timestamp=timestamp,
                details="Transaction discovered from API",
            )
        ],
        api_data=package,
    )


class TransactionMirror:
    """Keeps the local transaction list synchronized with the vendor.

    Usage:
        mirror = TransactionMirror(client, TransactionStore(path))
        transactions = mirror.get_all(refresh=True)
        mirror.cancel(transactions[0].id)
    """

    def __init__(
        self,
        client: CongaClient,
        store: TransactionStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the mirror and load the persisted transactions.

        Args:
            client: Conga Sign API client.
            store: Persistence for the transaction list.
            clock: Returns the current aware UTC datetime.
        """
        self.client = client
        self.store = store
        self.clock = clock
        self.transactions: list[Transaction] = store.load()

    def _now(self) -> str:
        return format_timestamp(self.clock())

    def _persist(self) -> bool:
        return self.store.save(self.transactions)

    def _find(self, transaction_id: str) -> Transaction | None:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def _require(self, transaction_id: str) -> Transaction:
        transaction = self._find(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return transaction

    # === Reads and reconciliation ===

    def get_all(
        self,
        refresh: bool = False,
        owner_email: str | None = None,
        from_: int | None = None,
        to: int | None = None,
    ) -> list[Transaction]:
        """Return all local transactions, optionally refreshed from the vendor.

        Refresh failures of any kind are logged and the local list is
        returned unchanged. The records are copies; edit them through the
        mutation methods.
        """
        if refresh:
            try:
                response = self.client.list_packages(owner_email=owner_email, from_=from_, to=to)
                listing = decode_package_listing(response)
                if not listing.is_empty:
                    logger.info(
                        "Found %d packages from API (%s array)",
                        len(listing.packages),
                        listing.source,
                    )
                    self.merge_from_remote(listing.packages)
            except Exception as e:
                logger.exception("Error refreshing transactions from API: %s", e)

        return copy.deepcopy(self.transactions)

    def merge_from_remote(self, remote_packages: list[dict]) -> bool:
        """Upsert vendor packages into the local list by id.

        Known ids get status, updated and apiData refreshed; signers,
        documents and history are left alone. Unknown ids become new
        records with a DISCOVERED history entry.

        Returns:
            True if the merged list was persisted.
        """
        if not isinstance(remote_packages, list):
            logger.error(
                "merge_from_remote expected a list, got %s", type(remote_packages).__name__
            )
            return False

        merged = copy.deepcopy(self.transactions)
        by_id = {t.id: t for t in merged}
        now = self._now()
        discovered = 0

        for package in remote_packages:
            package_id = package.get("id") if isinstance(package, dict) else None
            if not isinstance(package_id, (str, int)) or isinstance(package_id, bool):
                logger.warning("Skipping vendor package without usable id: %r", package)
                continue

            existing = by_id.get(package_id)
            if existing is not None:
                existing.status = remote_status(package)
                existing.updated = now
                existing.api_data = package
            else:
                transaction = transaction_from_package(package, now)
                merged.append(transaction)
                by_id[package_id] = transaction
                discovered += 1

        self.transactions = merged
        logger.info(
            "Merged %d vendor packages (%d discovered)", len(remote_packages), discovered
        )
        return self._persist()

    def get_by_id(self, transaction_id: str, refresh: bool = False) -> Transaction | None:
        """Return one transaction, fetching it from the vendor when asked or unknown.

        Vendor failures are logged; the local record (or None) is returned.
        The record is a copy, like the ones from get_all.
        """
        local = self._find(transaction_id)

        if refresh or local is None:
            try:
                package = self.client.get_package(transaction_id)
                if isinstance(package, dict):
                    self.merge_from_remote([{"id": transaction_id, **package}])
                    return copy.deepcopy(self._find(transaction_id))
                logger.warning("Unexpected package response for %s: %r", transaction_id, package)
            except Exception as e:
                logger.exception("Error getting transaction %s from API: %s", transaction_id, e)

        return copy.deepcopy(local)

    # === Mutations ===

    def create(self, package_data: dict) -> Transaction:
        """Create a package at the vendor and record it locally as CREATED."""
        response = self.client.create_package(package_data)
        package_id = response.get("id") if isinstance(response, dict) else None
        if not package_id:
            raise ApiRequestError("Invalid response from API when creating package: no id")

        now = self._now()
        transaction = Transaction(
            id=package_id,
            name=package_data.get("name") or DEFAULT_PACKAGE_NAME,
            status=TransactionStatus.CREATED.value,
            created=now,
            updated=now,
            api_data=response,
        )
        transaction.record(HistoryAction.CREATE, "Transaction created", now)

        if self._find(package_id) is not None:
            logger.warning("Vendor reused package id %s, replacing local record", package_id)
            self.transactions = [t for t in self.transactions if t.id != package_id]

        self.transactions.append(transaction)
        self._persist()
        logger.info("Created transaction %s", package_id)
        return transaction

    def add_signer(self, transaction_id: str, signer_data: dict) -> Transaction:
        """Add a signer role (firstName, lastName, email) to a transaction."""
        transaction = self._require(transaction_id)

        first_name = signer_data.get("firstName", "")
        last_name = signer_data.get("lastName", "")
        email = signer_data.get("email", "")
        if not (first_name and last_name and email):
            raise ValueError("Signer first name, last name, and email are required")

        response = self.client.add_signer(transaction_id, signer_data)

        role_id = None
        if isinstance(response, dict):
            role_id = response.get("id")
            api_signers = response.get("signers")
            if not role_id and isinstance(api_signers, list) and api_signers:
                role_id = api_signers[0].get("id")
        if not role_id:
            raise ApiRequestError("Invalid response from API when adding signer: no role id")

        name = f"{first_name} {last_name}"
        transaction.signers.append(
            Signer(
                id=role_id,
                name=name,
                email=email,
                status=SignerStatus.PENDING.value,
                role=role_id,
                api_data=response,
            )
        )
        transaction.record(HistoryAction.ADD_SIGNER, f"Added signer: {name} ({email})", self._now())
        self._persist()
        return transaction

    def add_document(
        self,
        transaction_id: str,
        content: bytes,
        filename: str | None = None,
        content_type: str = "application/pdf",
        name: str | None = None,
    ) -> Transaction:
        """Upload a document and attach it to the transaction."""
        transaction = self._require(transaction_id)

        response = self.client.add_document(
            transaction_id,
            content,
            filename=filename,
            content_type=content_type,
            name=name,
        )
        document_id = response.get("id") if isinstance(response, dict) else None
        if not document_id:
            raise ApiRequestError("Invalid response from API when adding document: no id")

        document = Document(
            id=document_id,
            name=name or filename or "Document",
            type=content_type,
            size=len(content),
            status="ADDED",
            api_data=response,
        )
        transaction.documents.append(document)
        transaction.record(
            HistoryAction.ADD_DOCUMENT,
            f"Added document: {document.name} (ID: {document.id})",
            self._now(),
        )
        self._persist()
        return transaction

    def add_signature_field(
        self,
        transaction_id: str,
        document_id: str,
        role_id: str,
        field_options: dict | None = None,
    ) -> Transaction:
        """Place a signature field for a signer role on one of the documents."""
        transaction = self._require(transaction_id)

        if transaction.find_document(document_id) is None:
            raise NotFoundError(f"Document not found in transaction: {document_id}")
        if transaction.find_signer_by_role(role_id) is None:
            raise NotFoundError(f"Signer role not found in transaction: {role_id}")

        self.client.add_signature_field(transaction_id, document_id, role_id, field_options)

        transaction.record(
            HistoryAction.ADD_SIGNATURE_FIELD,
            f"Added signature field to document {document_id} for role {role_id}",
            self._now(),
        )
        self._persist()
        return transaction

    def send(self, transaction_id: str) -> Transaction:
        """Send the transaction to its signers."""
        transaction = self._require(transaction_id)

        self.client.send_package(transaction_id)

        transaction.status = TransactionStatus.SENT.value
        transaction.record(HistoryAction.SEND, "Transaction sent for signing", self._now())
        self._persist()
        return transaction

    def refresh_status(self, transaction_id: str) -> Transaction:
        """Pull package and signer status from the signing status endpoint."""
        transaction = self._require(transaction_id)

        response = self.client.get_signing_status(transaction_id)

        previous = transaction.status
        if isinstance(response, dict):
            transaction.status = response.get("status") or transaction.status
            for api_signer in response.get("signers") or []:
                if not isinstance(api_signer, dict):
                    continue
                signer = transaction.find_signer_by_role(api_signer.get("id", ""))
                if signer is not None:
                    signer.status = api_signer.get("status") or signer.status

        transaction.record(
            HistoryAction.REFRESH_STATUS,
            f"Status updated from '{previous}' to '{transaction.status}'",
            self._now(),
        )
        self._persist()
        return transaction

    def resend_notification(
        self,
        transaction_id: str,
        email: str,
        message: str | None = None,
    ) -> Transaction:
        """Resend the signing invitation to the signer with this email."""
        transaction = self._require(transaction_id)

        if transaction.find_signer_by_email(email) is None:
            raise NotFoundError(f"Signer with email {email} not found in transaction")

        self.client.resend_notification(
            transaction_id,
            {"email": email, "message": message or f"Please sign {transaction.name}"},
        )

        transaction.record(
            HistoryAction.RESEND_NOTIFICATION, f"Notification resent to {email}", self._now()
        )
        self._persist()
        return transaction

    def cancel(self, transaction_id: str) -> bool:
        """Cancel the transaction. Repeated calls are accepted and recorded."""
        transaction = self._require(transaction_id)

        self.client.cancel_package(transaction_id)

        transaction.status = TransactionStatus.CANCELED.value
        transaction.record(HistoryAction.CANCEL, "Transaction canceled", self._now())
        self._persist()
        logger.info("Canceled transaction %s", transaction_id)
        return True

    def get_signing_url(self, transaction_id: str, role_id: str) -> str:
        """Get the signing ceremony URL for one signer role."""
        transaction = self._require(transaction_id)

        if transaction.find_signer_by_role(role_id) is None:
            raise NotFoundError(f"Signer role {role_id} not found in transaction")

        response = self.client.get_signing_url(transaction_id, role_id)
        url = response.get("url") if isinstance(response, dict) else None
        if not url:
            raise ApiRequestError("Signing URL not found in API response")

        transaction.record(
            HistoryAction.GET_SIGNING_URL, f"Generated signing URL for role {role_id}", self._now()
        )
        self._persist()
        return url

    # === Local maintenance ===

    def reset(self) -> bool:
        """Drop every local transaction."""
        self.transactions = []
        return self._persist()

    def load_sample_data(self) -> list[Transaction]:
        """Replace the local list with the demo transactions."""
        self.transactions = build_sample_transactions(self.clock())
        self._persist()
        return list(self.transactions)
