"""Ledger data model: accounts, transactions, budgets and reminders."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import uuid4

from budgetwise.errors import ValidationError

TRANSFER_CATEGORY = "Transfers"


class AccountClassification(str, Enum):
    """How an account type is grouped on the balance sheet."""

    ASSET = "asset"
    LIABILITY = "liability"


class TransactionType(str, Enum):
    """Direction of a ledger entry relative to its account."""

    INCOME = "income"
    EXPENSE = "expense"


class ReminderFrequency(str, Enum):
    """Descriptive recurrence of a bill reminder."""

    ONCE = "once"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def new_id(prefix: str) -> str:
    """Return a fresh record id such as ``txn_3f2a...``."""
    return f"{prefix}_{uuid4().hex[:12]}"


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Convert ints, strings and floats to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be numeric", field=field_name, value=value)
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field_name} must be numeric, got {value!r}", field=field_name, value=value
        ) from exc


def naive_local(value: datetime) -> datetime:
    """Drop timezone info, converting aware values to local wall-clock time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


@dataclass(frozen=True)
class AccountType:
    """Reference data describing a kind of account."""

    id: str
    name: str
    classification: AccountClassification
    icon: str = "HelpCircle"


@dataclass(frozen=True)
class Account:
    """A financial account and its authoritative as-of-now balance."""

    id: str
    name: str
    type_id: str
    current_balance: Decimal = Decimal("0")

    def with_balance(self, balance: Decimal) -> Account:
        return replace(self, current_balance=balance)


@dataclass(frozen=True)
class Transaction:
    """An immutable ledger entry.

    ``amount`` is always positive; ``type`` carries the direction.
    """

    id: str
    date: datetime
    description: str
    amount: Decimal
    type: TransactionType
    category: str
    account_id: str
    subcategory: str | None = None
    label: str | None = None
    transfer_id: str | None = None

    @property
    def day(self) -> date:
        return self.date.date()

    @property
    def signed_amount(self) -> Decimal:
        """Forward effect on the account balance."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    def is_transfer(self, transfer_category: str = TRANSFER_CATEGORY) -> bool:
        return self.transfer_id is not None or self.category == transfer_category

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Inverse of ``to_dict``."""
        return cls(
            id=data["id"],
            date=datetime.fromisoformat(data["date"]),
            description=data["description"],
            amount=to_decimal(data["amount"]),
            type=TransactionType(data["type"]),
            category=data["category"],
            account_id=data["account_id"],
            subcategory=data.get("subcategory"),
            label=data.get("label"),
            transfer_id=data.get("transfer_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        data: dict[str, Any] = {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": str(self.amount),
            "type": TransactionType(self.type).value,
            "category": self.category,
            "account_id": self.account_id,
        }
        if self.subcategory:
            data["subcategory"] = self.subcategory
        if self.label:
            data["label"] = self.label
        if self.transfer_id:
            data["transfer_id"] = self.transfer_id
        return data


@dataclass(frozen=True)
class Budget:
    """Spending ceiling for a category over a caller-chosen period.

    Spent is always derived from the ledger, never stored here.
    """

    id: str
    category: str
    amount: Decimal


@dataclass(frozen=True)
class Reminder:
    """A bill reminder. ``is_paid`` is toggled by the user only."""

    id: str
    description: str
    amount: Decimal
    due_date: date
    frequency: ReminderFrequency
    account_id: str
    is_paid: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": str(self.amount),
            "due_date": self.due_date.isoformat(),
            "frequency": ReminderFrequency(self.frequency).value,
            "account_id": self.account_id,
            "is_paid": self.is_paid,
        }


@dataclass(frozen=True)
class TransactionCategory:
    """A spending or income category with its subcategories."""

    name: str
    subcategories: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TransactionLabel:
    """Free-form tag attached to transactions (e.g. ``Work``)."""

    name: str
    description: str = ""
