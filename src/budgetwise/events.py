"""Ledger journal events.

Every successful store mutation is recorded as a ``LedgerEvent`` in an
ordered, append-only journal. Replaying the journal from an empty store
reproduces the current state, so it doubles as an audit trail.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from budgetwise.models import Account, AccountClassification, AccountType, Transaction


class LedgerEventType(str, Enum):
    """Types of mutations recorded in the journal."""

    ACCOUNT_TYPE_ADDED = "account_type.added"
    ACCOUNT_TYPE_UPDATED = "account_type.updated"
    ACCOUNT_TYPE_REMOVED = "account_type.removed"

    ACCOUNT_ADDED = "account.added"
    ACCOUNT_RENAMED = "account.renamed"
    ACCOUNT_REMOVED = "account.removed"

    HISTORY_LOADED = "history.loaded"
    TRANSACTION_ADDED = "transaction.added"
    TRANSACTION_REMOVED = "transaction.removed"
    TRANSFER_CREATED = "transfer.created"
    TRANSFER_REMOVED = "transfer.removed"
    TRANSACTIONS_IMPORTED = "transactions.imported"


@dataclass
class LedgerEvent:
    """A single journal entry."""

    event_type: LedgerEventType
    sequence: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: UUID = field(default_factory=uuid4)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to a JSON-safe dictionary."""
        return {
            "id": str(self.event_id),
            "sequence": self.sequence,
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerEvent":
        """Inverse of ``to_dict``, for journals read back from JSON."""
        return cls(
            event_type=LedgerEventType(data["type"]),
            sequence=data["sequence"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            event_id=UUID(data["id"]),
            data=data["data"],
        )


def _account_data(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type_id": account.type_id,
        "balance": str(account.current_balance),
    }


def account_type_added(account_type: AccountType) -> LedgerEvent:
    return LedgerEvent(
        event_type=LedgerEventType.ACCOUNT_TYPE_ADDED,
        data={
            "id": account_type.id,
            "name": account_type.name,
            "classification": AccountClassification(account_type.classification).value,
            "icon": account_type.icon,
        },
    )


def account_type_updated(account_type: AccountType) -> LedgerEvent:
    event = account_type_added(account_type)
    event.event_type = LedgerEventType.ACCOUNT_TYPE_UPDATED
    return event


def account_type_removed(type_id: str) -> LedgerEvent:
    return LedgerEvent(event_type=LedgerEventType.ACCOUNT_TYPE_REMOVED, data={"id": type_id})


def account_added(account: Account) -> LedgerEvent:
    return LedgerEvent(event_type=LedgerEventType.ACCOUNT_ADDED, data=_account_data(account))


def account_renamed(account: Account, old_name: str) -> LedgerEvent:
    data = _account_data(account)
    data["old_name"] = old_name
    return LedgerEvent(event_type=LedgerEventType.ACCOUNT_RENAMED, data=data)


def account_removed(account: Account) -> LedgerEvent:
    return LedgerEvent(event_type=LedgerEventType.ACCOUNT_REMOVED, data=_account_data(account))


def transaction_added(tx: Transaction) -> LedgerEvent:
    """Create a transaction added event."""
    return LedgerEvent(event_type=LedgerEventType.TRANSACTION_ADDED, data=tx.to_dict())


def transaction_removed(tx: Transaction) -> LedgerEvent:
    return LedgerEvent(event_type=LedgerEventType.TRANSACTION_REMOVED, data=tx.to_dict())


def transfer_created(expense: Transaction, income: Transaction) -> LedgerEvent:
    """Create a transfer event carrying both legs."""
    return LedgerEvent(
        event_type=LedgerEventType.TRANSFER_CREATED,
        data={
            "transfer_id": expense.transfer_id,
            "legs": [expense.to_dict(), income.to_dict()],
        },
    )


def transfer_removed(transfer_id: str, legs: list[Transaction]) -> LedgerEvent:
    return LedgerEvent(
        event_type=LedgerEventType.TRANSFER_REMOVED,
        data={"transfer_id": transfer_id, "legs": [t.to_dict() for t in legs]},
    )


def transactions_imported(txs: list[Transaction]) -> LedgerEvent:
    return LedgerEvent(
        event_type=LedgerEventType.TRANSACTIONS_IMPORTED,
        data={"count": len(txs), "transactions": [t.to_dict() for t in txs]},
    )


def history_loaded(txs: list[Transaction]) -> LedgerEvent:
    """Past transactions recorded without touching balances."""
    return LedgerEvent(
        event_type=LedgerEventType.HISTORY_LOADED,
        data={"transactions": [t.to_dict() for t in txs]},
    )
