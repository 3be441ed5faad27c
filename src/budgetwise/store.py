"""In-memory transaction store.

The store is the only owner of mutable ledger state. Every mutation is
validated in full before anything changes, runs under a single writer lock,
and is appended to the journal. Readers work from ``snapshot()`` copies.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from budgetwise import events
from budgetwise.catalog import CategoryCatalog
from budgetwise.config import get_logger, get_settings
from budgetwise.errors import ConflictError, NotFoundError, ValidationError
from budgetwise.events import LedgerEvent, LedgerEventType
from budgetwise.models import (
    Account,
    AccountClassification,
    AccountType,
    Transaction,
    TransactionType,
    naive_local,
    new_id,
    to_decimal,
)

logger = get_logger(__name__)

EventHandler = Callable[[LedgerEvent], None]


@dataclass(frozen=True)
class LedgerSnapshot:
    """Consistent, immutable view of the store at one point in its history."""

    accounts: tuple[Account, ...]
    account_types: tuple[AccountType, ...]
    transactions: tuple[Transaction, ...]
    sequence: int = 0
    transfer_category: str = "Transfers"

    def account_type_for(self, account: Account) -> AccountType | None:
        for account_type in self.account_types:
            if account_type.id == account.type_id:
                return account_type
        return None

    def current_balances(self) -> dict[str, Decimal]:
        return {a.id: a.current_balance for a in self.accounts}


@dataclass(frozen=True)
class TransactionFilter:
    """Declarative filter for ``list_transactions``. Date bounds are inclusive days."""

    account_id: str | None = None
    category: str | None = None
    type: TransactionType | None = None
    start: date | None = None
    end: date | None = None
    include_transfers: bool = True

    def matches(self, tx: Transaction, transfer_category: str) -> bool:
        if self.account_id is not None and tx.account_id != self.account_id:
            return False
        if self.category is not None and tx.category != self.category:
            return False
        if self.type is not None and tx.type != self.type:
            return False
        if self.start is not None and tx.day < self.start:
            return False
        if self.end is not None and tx.day > self.end:
            return False
        if not self.include_transfers and tx.is_transfer(transfer_category):
            return False
        return True


def check_transfer_pairs(transactions: Iterable[Transaction]) -> None:
    """Raise ValidationError unless every transfer id links one income and one expense
    leg of equal amount on different accounts."""
    legs: dict[str, list[Transaction]] = {}
    for tx in transactions:
        if tx.transfer_id is not None:
            legs.setdefault(tx.transfer_id, []).append(tx)

    for transfer_id, pair in legs.items():
        if len(pair) != 2:
            raise ValidationError(
                f"Transfer {transfer_id} has {len(pair)} legs, expected 2",
                field="transfer_id",
                value=transfer_id,
            )
        first, second = pair
        if {first.type, second.type} != {TransactionType.INCOME, TransactionType.EXPENSE}:
            raise ValidationError(
                f"Transfer {transfer_id} needs one income and one expense leg",
                field="transfer_id",
                value=transfer_id,
            )
        if first.amount != second.amount:
            raise ValidationError(
                f"Transfer {transfer_id} legs differ in amount",
                field="amount",
                value=(first.amount, second.amount),
            )
        if first.account_id == second.account_id:
            raise ValidationError(
                f"Transfer {transfer_id} legs share account {first.account_id}",
                field="account_id",
                value=first.account_id,
            )


class TransactionStore:
    """Owns accounts, account types and the append-only transaction sequence."""

    def __init__(
        self,
        transfer_category: str | None = None,
        catalog: CategoryCatalog | None = None,
    ):
        self._lock = threading.RLock()
        self._account_types: dict[str, AccountType] = {}
        self._accounts: dict[str, Account] = {}
        self._transactions: list[Transaction] = []
        self._by_id: dict[str, Transaction] = {}
        self._journal: list[LedgerEvent] = []
        self._subscribers: list[EventHandler] = []
        self._transfer_category = transfer_category or get_settings().transfer_category
        self._catalog = catalog
        self._logger = logger.bind(component="transaction_store")

    @classmethod
    def from_records(
        cls,
        account_types: Iterable[AccountType],
        accounts: Iterable[Account],
        transactions: Iterable[Transaction] = (),
        transfer_category: str | None = None,
        catalog: CategoryCatalog | None = None,
    ) -> TransactionStore:
        """Build a store from existing records.

        Account balances are taken as the authoritative current balances and
        ``transactions`` as the history that produced them, so loading does not
        re-apply them.
        """
        store = cls(transfer_category=transfer_category, catalog=catalog)
        for account_type in account_types:
            store.add_account_type(account_type)
        for account in accounts:
            store.add_account(account)
        store.load_history(transactions)
        return store

    @classmethod
    def from_journal(
        cls,
        journal: Iterable[LedgerEvent],
        transfer_category: str | None = None,
        catalog: CategoryCatalog | None = None,
    ) -> TransactionStore:
        """Rebuild a store by replaying journal events in sequence order."""
        store = cls(transfer_category=transfer_category, catalog=catalog)
        for event in sorted(journal, key=lambda e: e.sequence):
            store._apply_event(event)
        return store

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    @property
    def journal(self) -> tuple[LedgerEvent, ...]:
        with self._lock:
            return tuple(self._journal)

    @property
    def transfer_category(self) -> str:
        return self._transfer_category

    @property
    def catalog(self) -> CategoryCatalog | None:
        return self._catalog

    def subscribe(self, handler: EventHandler) -> None:
        """Register a callback invoked after every committed mutation."""
        self._subscribers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def _commit(self, event: LedgerEvent) -> None:
        event.sequence = len(self._journal) + 1
        self._journal.append(event)
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    "event_hook_error", event_type=event.event_type.value, error=str(e)
                )

    def _apply_event(self, event: LedgerEvent) -> None:
        data = event.data
        kind = event.event_type
        if kind == LedgerEventType.ACCOUNT_TYPE_ADDED:
            self.add_account_type(_account_type_from(data))
        elif kind == LedgerEventType.ACCOUNT_TYPE_UPDATED:
            self.update_account_type(_account_type_from(data))
        elif kind == LedgerEventType.ACCOUNT_TYPE_REMOVED:
            self.remove_account_type(data["id"])
        elif kind == LedgerEventType.ACCOUNT_ADDED:
            self.add_account(
                Account(
                    id=data["id"],
                    name=data["name"],
                    type_id=data["type_id"],
                    current_balance=to_decimal(data["balance"], "balance"),
                )
            )
        elif kind == LedgerEventType.ACCOUNT_RENAMED:
            self.rename_account(data["id"], data["name"])
        elif kind == LedgerEventType.ACCOUNT_REMOVED:
            self.remove_account(data["id"])
        elif kind == LedgerEventType.HISTORY_LOADED:
            self.load_history(Transaction.from_dict(t) for t in data["transactions"])
        elif kind == LedgerEventType.TRANSACTION_ADDED:
            self.add_transaction(Transaction.from_dict(data))
        elif kind == LedgerEventType.TRANSACTION_REMOVED:
            self.remove_transaction(data["id"])
        elif kind == LedgerEventType.TRANSFER_CREATED:
            legs = [Transaction.from_dict(t) for t in data["legs"]]
            self._insert_transfer(legs[0], legs[1])
        elif kind == LedgerEventType.TRANSFER_REMOVED:
            self.remove_transfer(data["transfer_id"])
        elif kind == LedgerEventType.TRANSACTIONS_IMPORTED:
            self.import_transactions(Transaction.from_dict(t) for t in data["transactions"])
        else:
            raise ValidationError(f"Unknown journal event {kind!r}", field="event_type", value=kind)

    # ------------------------------------------------------------------
    # Account types
    # ------------------------------------------------------------------

    def add_account_type(self, account_type: AccountType) -> AccountType:
        with self._lock:
            if account_type.id in self._account_types:
                raise ValidationError(
                    f"Account type {account_type.id} already exists",
                    field="id",
                    value=account_type.id,
                )
            account_type = replace(
                account_type,
                classification=_classification(account_type.classification),
            )
            self._account_types[account_type.id] = account_type
            self._commit(events.account_type_added(account_type))
        return account_type

    def update_account_type(self, account_type: AccountType) -> AccountType:
        with self._lock:
            self.get_account_type(account_type.id)
            account_type = replace(
                account_type,
                classification=_classification(account_type.classification),
            )
            self._account_types[account_type.id] = account_type
            self._commit(events.account_type_updated(account_type))
        return account_type

    def remove_account_type(self, type_id: str) -> None:
        with self._lock:
            self.get_account_type(type_id)
            in_use = [a.id for a in self._accounts.values() if a.type_id == type_id]
            if in_use:
                raise ConflictError(
                    f"Account type {type_id} is used by {len(in_use)} account(s)",
                    details={"type_id": type_id, "accounts": in_use},
                )
            del self._account_types[type_id]
            self._commit(events.account_type_removed(type_id))

    def get_account_type(self, type_id: str) -> AccountType:
        with self._lock:
            account_type = self._account_types.get(type_id)
        if account_type is None:
            raise NotFoundError("account type", type_id)
        return account_type

    def list_account_types(self) -> list[AccountType]:
        with self._lock:
            return list(self._account_types.values())

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def add_account(self, account: Account) -> Account:
        with self._lock:
            if account.id in self._accounts:
                raise ValidationError(
                    f"Account {account.id} already exists", field="id", value=account.id
                )
            if account.type_id not in self._account_types:
                raise ValidationError(
                    f"Unknown account type {account.type_id}",
                    field="type_id",
                    value=account.type_id,
                )
            account = account.with_balance(
                to_decimal(account.current_balance, "current_balance")
            )
            self._accounts[account.id] = account
            self._commit(events.account_added(account))
        self._logger.info("account_added", account_id=account.id, name=account.name)
        return account

    def rename_account(self, account_id: str, name: str) -> Account:
        if not name.strip():
            raise ValidationError("Account name must not be empty", field="name", value=name)
        with self._lock:
            account = self.get_account(account_id)
            renamed = replace(account, name=name)
            self._accounts[account_id] = renamed
            self._commit(events.account_renamed(renamed, account.name))
        return renamed

    def remove_account(self, account_id: str) -> None:
        with self._lock:
            account = self.get_account(account_id)
            referenced = sum(1 for t in self._transactions if t.account_id == account_id)
            if referenced:
                raise ConflictError(
                    f"Account {account_id} is referenced by {referenced} transaction(s)",
                    details={"account_id": account_id, "transactions": referenced},
                )
            del self._accounts[account_id]
            self._commit(events.account_removed(account))
        self._logger.info("account_removed", account_id=account_id)

    def get_account(self, account_id: str) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return account

    def find_account_by_name(self, name: str) -> Account:
        """Exact-name lookup, as used by CSV import."""
        with self._lock:
            for account in self._accounts.values():
                if account.name == name:
                    return account
        raise NotFoundError("account", name)

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _normalize(self, tx: Transaction) -> Transaction:
        """Validate a single transaction against current state and coerce its fields."""
        amount = to_decimal(tx.amount)
        if amount <= 0:
            raise ValidationError(
                f"Transaction amount must be positive, got {amount}",
                field="amount",
                value=tx.amount,
            )
        if tx.type not in (TransactionType.INCOME, TransactionType.EXPENSE):
            raise ValidationError(
                f"Transaction type must be income or expense, got {tx.type!r}",
                field="type",
                value=tx.type,
            )
        if tx.account_id not in self._accounts:
            raise ValidationError(
                f"Unknown account {tx.account_id}", field="account_id", value=tx.account_id
            )
        if not isinstance(tx.date, datetime):
            raise ValidationError(
                "Transaction date must be a datetime", field="date", value=tx.date
            )
        if tx.id in self._by_id:
            raise ValidationError(
                f"Transaction {tx.id} already exists", field="id", value=tx.id
            )
        if tx.transfer_id is None and tx.category == self._transfer_category:
            raise ValidationError(
                f'Category "{tx.category}" is reserved for transfers; use add_transfer',
                field="category",
                value=tx.category,
            )
        if self._catalog is not None:
            self._catalog.check_transaction(tx)
        # Ledger timestamps are naive local time.
        return replace(
            tx, date=naive_local(tx.date), amount=amount, type=TransactionType(tx.type)
        )

    def _append(self, tx: Transaction, apply_balance: bool = True) -> None:
        self._transactions.append(tx)
        self._by_id[tx.id] = tx
        if apply_balance:
            account = self._accounts[tx.account_id]
            self._accounts[tx.account_id] = account.with_balance(
                account.current_balance + tx.signed_amount
            )

    def _drop(self, tx: Transaction) -> None:
        self._transactions.remove(tx)
        del self._by_id[tx.id]
        account = self._accounts.get(tx.account_id)
        if account is not None:
            self._accounts[tx.account_id] = account.with_balance(
                account.current_balance - tx.signed_amount
            )

    def add_transaction(self, tx: Transaction) -> Transaction:
        """Append a transaction and apply it to its account balance."""
        with self._lock:
            try:
                tx = self._normalize(tx)
                if tx.transfer_id is not None:
                    raise ValidationError(
                        "Transfer legs must be created with add_transfer",
                        field="transfer_id",
                        value=tx.transfer_id,
                    )
            except ValidationError as e:
                self._logger.warning("transaction_rejected", field=e.field, error=e.message)
                raise
            self._append(tx)
            self._commit(events.transaction_added(tx))
        self._logger.info(
            "transaction_added",
            transaction_id=tx.id,
            account_id=tx.account_id,
            type=tx.type.value,
            amount=str(tx.amount),
        )
        return tx

    def add_transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal | int | str,
        description: str | None = None,
        date: datetime | None = None,
    ) -> tuple[Transaction, Transaction]:
        """Move funds between two owned accounts as a linked expense/income pair.

        Returns:
            The ``(expense, income)`` legs sharing a new transfer id.
        """
        value = to_decimal(amount)
        if from_account_id == to_account_id:
            raise ValidationError(
                "Cannot transfer to the same account",
                field="to_account_id",
                value=to_account_id,
            )
        if value <= 0:
            raise ValidationError(
                f"Transfer amount must be positive, got {value}", field="amount", value=amount
            )

        with self._lock:
            source = self.get_account(from_account_id)
            target = self.get_account(to_account_id)
            when = date or datetime.now()
            transfer_id = new_id("transfer")
            expense = Transaction(
                id=new_id("txn"),
                date=when,
                description=description or f"Transfer to {target.name}",
                amount=value,
                type=TransactionType.EXPENSE,
                category=self._transfer_category,
                account_id=source.id,
                transfer_id=transfer_id,
            )
            income = Transaction(
                id=new_id("txn"),
                date=when,
                description=description or f"Transfer from {source.name}",
                amount=value,
                type=TransactionType.INCOME,
                category=self._transfer_category,
                account_id=target.id,
                transfer_id=transfer_id,
            )
            self._insert_transfer(expense, income)
        return expense, income

    def _insert_transfer(self, first: Transaction, second: Transaction) -> None:
        with self._lock:
            first = self._normalize(first)
            second = self._normalize(second)
            check_transfer_pairs([first, second])
            if first.transfer_id in self._transfer_ids():
                raise ConflictError(
                    f"Transfer {first.transfer_id} already exists",
                    details={"transfer_id": first.transfer_id},
                )
            expense, income = (
                (first, second) if first.type == TransactionType.EXPENSE else (second, first)
            )
            self._append(expense)
            self._append(income)
            self._commit(events.transfer_created(expense, income))
        self._logger.info(
            "transfer_created",
            transfer_id=expense.transfer_id,
            from_account=expense.account_id,
            to_account=income.account_id,
            amount=str(expense.amount),
        )

    def _transfer_ids(self) -> set[str]:
        return {t.transfer_id for t in self._transactions if t.transfer_id is not None}

    def transfer_legs(self, transfer_id: str) -> list[Transaction]:
        with self._lock:
            legs = [t for t in self._transactions if t.transfer_id == transfer_id]
        if not legs:
            raise NotFoundError("transfer", transfer_id)
        return legs

    def remove_transaction(self, tx_id: str, *, with_counterpart: bool = False) -> list[Transaction]:
        """Remove a transaction and reverse its effect on the account balance.

        A transfer leg can only be removed together with its counterpart.

        Returns:
            The removed transactions.
        """
        with self._lock:
            tx = self.get_transaction(tx_id)
            if tx.transfer_id is not None:
                if not with_counterpart:
                    self._logger.warning(
                        "partial_transfer_removal_rejected",
                        transaction_id=tx_id,
                        transfer_id=tx.transfer_id,
                    )
                    raise ConflictError(
                        f"Transaction {tx_id} is part of transfer {tx.transfer_id}; "
                        "remove both legs together",
                        details={"transaction_id": tx_id, "transfer_id": tx.transfer_id},
                    )
                return self.remove_transfer(tx.transfer_id)
            self._drop(tx)
            self._commit(events.transaction_removed(tx))
        self._logger.info("transaction_removed", transaction_id=tx_id)
        return [tx]

    def remove_transfer(self, transfer_id: str) -> list[Transaction]:
        """Remove both legs of a transfer atomically."""
        with self._lock:
            legs = self.transfer_legs(transfer_id)
            for leg in legs:
                self._drop(leg)
            self._commit(events.transfer_removed(transfer_id, legs))
        self._logger.info("transfer_removed", transfer_id=transfer_id)
        return legs

    def import_transactions(self, txs: Iterable[Transaction]) -> list[Transaction]:
        """Validate every transaction, then apply all of them or none."""
        batch = list(txs)
        with self._lock:
            normalized: list[Transaction] = []
            seen: set[str] = set()
            for tx in batch:
                if tx.transfer_id is not None:
                    raise ValidationError(
                        "Transfers cannot be imported", field="transfer_id", value=tx.transfer_id
                    )
                if tx.id in seen:
                    raise ValidationError(
                        f"Duplicate transaction id {tx.id} in batch", field="id", value=tx.id
                    )
                seen.add(tx.id)
                normalized.append(self._normalize(tx))
            for tx in normalized:
                self._append(tx)
            self._commit(events.transactions_imported(normalized))
        self._logger.info("transactions_imported", count=len(normalized))
        return normalized

    def load_history(self, txs: Iterable[Transaction]) -> list[Transaction]:
        """Record past transactions already reflected in current balances."""
        batch = list(txs)
        with self._lock:
            normalized = [self._normalize(tx) for tx in batch]
            if len({t.id for t in normalized}) != len(normalized):
                raise ValidationError("Duplicate transaction ids in history", field="id")
            check_transfer_pairs([*self._transactions, *normalized])
            for tx in normalized:
                self._append(tx, apply_balance=False)
            self._commit(events.history_loaded(normalized))
        return normalized

    def get_transaction(self, tx_id: str) -> Transaction:
        with self._lock:
            tx = self._by_id.get(tx_id)
        if tx is None:
            raise NotFoundError("transaction", tx_id)
        return tx

    def list_transactions(
        self,
        filter: TransactionFilter | Callable[[Transaction], bool] | None = None,
    ) -> list[Transaction]:
        """Return transactions in insertion order; sort explicitly for date order."""
        with self._lock:
            txs = list(self._transactions)
        if filter is None:
            return txs
        if isinstance(filter, TransactionFilter):
            return [t for t in txs if filter.matches(t, self._transfer_category)]
        return [t for t in txs if filter(t)]

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                accounts=tuple(self._accounts.values()),
                account_types=tuple(self._account_types.values()),
                transactions=tuple(self._transactions),
                sequence=len(self._journal),
                transfer_category=self._transfer_category,
            )


def _classification(value: Any) -> AccountClassification:
    try:
        return AccountClassification(value)
    except ValueError as exc:
        raise ValidationError(
            f"Classification must be asset or liability, got {value!r}",
            field="classification",
            value=value,
        ) from exc


def _account_type_from(data: dict[str, Any]) -> AccountType:
    return AccountType(
        id=data["id"],
        name=data["name"],
        classification=_classification(data["classification"]),
        icon=data.get("icon", "HelpCircle"),
    )
