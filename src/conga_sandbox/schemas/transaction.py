"""
Local transaction records (mirror of vendor packages).

A Transaction is keyed by the vendor-assigned package id. Signers, documents
and history are owned locally: the vendor listing does not return them, so a
refresh never overwrites them. apiData keeps the last raw vendor payload.

JSON keys are camelCase to stay compatible with existing transactions.json
files; keys this module does not know about are carried through untouched.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransactionStatus(str, Enum):
    """Well-known package states. Any other vendor string is accepted as-is."""

    DRAFT = "DRAFT"
    CREATED = "CREATED"
    SENT = "SENT"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    UNKNOWN = "UNKNOWN"


class SignerStatus(str, Enum):
    """Well-known signer states."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"


class HistoryAction(str, Enum):
    """Actions recorded in a transaction's history log."""

    DISCOVERED = "DISCOVERED"
    CREATE = "CREATE"
    ADD_SIGNER = "ADD_SIGNER"
    ADD_DOCUMENT = "ADD_DOCUMENT"
    ADD_SIGNATURE_FIELD = "ADD_SIGNATURE_FIELD"
    SEND = "SEND"
    REFRESH_STATUS = "REFRESH_STATUS"
    RESEND_NOTIFICATION = "RESEND_NOTIFICATION"
    CANCEL = "CANCEL"
    GET_SIGNING_URL = "GET_SIGNING_URL"


@dataclass
class Signer:
    """A recipient; id is the vendor role id."""

    id: str
    name: str
    email: str
    status: str = SignerStatus.PENDING.value
    role: str | None = None
    api_data: Any = None

    def matches_role(self, role_id: str) -> bool:
        """True if this signer answers to the given role id."""
        return role_id in (self.id, self.role)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "status": self.status,
        }
        if self.role is not None:
            data["role"] = self.role
        if self.api_data is not None:
            data["apiData"] = self.api_data
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Signer":
        """Deserialize from dictionary."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            email=data.get("email", ""),
            status=data.get("status", SignerStatus.PENDING.value),
            role=data.get("role"),
            api_data=data.get("apiData"),
        )


@dataclass
class Document:
    """A document attached to a transaction."""

    id: str
    name: str
    type: str = "application/pdf"
    size: int | None = None
    status: str | None = None
    api_data: Any = None

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.size is not None:
            data["size"] = self.size
        if self.status is not None:
            data["status"] = self.status
        if self.api_data is not None:
            data["apiData"] = self.api_data
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Deserialize from dictionary."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", "application/pdf"),
            size=data.get("size"),
            status=data.get("status"),
            api_data=data.get("apiData"),
        )


@dataclass
class HistoryEntry:
    """One append-only history log entry."""

    action: str
    timestamp: str
    details: str = ""

    def to_dict(self) -> dict:
        return {"action": self.action, "timestamp": self.timestamp, "details": self.details}

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            action=data.get("action", ""),
            timestamp=data.get("timestamp", ""),
            details=data.get("details", ""),
        )


_KNOWN_KEYS = {
    "id",
    "name",
    "status",
    "created",
    "updated",
    "signers",
    "documents",
    "history",
    "apiData",
}


@dataclass
class Transaction:
    """Local record of one vendor package."""

    id: str
    name: str
    status: str
    created: str
    updated: str
    signers: list[Signer] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)
    history: list[HistoryEntry] = field(default_factory=list)
    api_data: Any = None
    # Keys found on disk that this schema does not model
    extra: dict[str, Any] = field(default_factory=dict)

    def record(self, action: HistoryAction | str, details: str, timestamp: str) -> None:
        """Append a history entry and bump the updated timestamp."""
        action_value = action.value if isinstance(action, HistoryAction) else action
        self.history.append(
            HistoryEntry(action=action_value, timestamp=timestamp, details=details)
        )
        self.updated = timestamp

    def find_signer_by_role(self, role_id: str) -> Signer | None:
        for signer in self.signers:
            if signer.matches_role(role_id):
                return signer
        return None

    def find_signer_by_email(self, email: str) -> Signer | None:
        for signer in self.signers:
            if signer.email == email:
                return signer
        return None

    def find_document(self, document_id: str) -> Document | None:
        for document in self.documents:
            if document.id == document_id:
                return document
        return None

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        return {
            **self.extra,
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "created": self.created,
            "updated": self.updated,
            "signers": [signer.to_dict() for signer in self.signers],
            "documents": [document.to_dict() for document in self.documents],
            "history": [entry.to_dict() for entry in self.history],
            "apiData": self.api_data,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            status=data.get("status", TransactionStatus.UNKNOWN.value),
            created=data.get("created", ""),
            updated=data.get("updated", ""),
            signers=[Signer.from_dict(s) for s in data.get("signers") or []],
            documents=[Document.from_dict(d) for d in data.get("documents") or []],
            history=[HistoryEntry.from_dict(h) for h in data.get("history") or []],
            api_data=data.get("apiData"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )
