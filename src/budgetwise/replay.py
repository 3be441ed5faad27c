"""Ledger replay: point-in-time balances reconstructed from current balances.

Historical balances are never stored. To find the balance of every account
at the end of day ``D`` we start from the current balances and undo each
transaction dated strictly after ``D``, newest first. A transaction dated on
``D`` itself counts as already applied.

Net worth is the plain sum of balances. Liability balances are added with the
sign they are stored with (a credit card owing 890 is stored as -890), so
classification only affects grouping, never the arithmetic.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from budgetwise.errors import NotFoundError
from budgetwise.models import Account, AccountClassification, Transaction, TransactionType
from budgetwise.store import LedgerSnapshot


@dataclass(frozen=True)
class AccountBalance:
    """One account's balance on the balance sheet."""

    account: Account
    balance: Decimal
    classification: AccountClassification | None


@dataclass(frozen=True)
class BalanceSheet:
    """Balances as of the end of a day, grouped by classification for display."""

    as_of: date
    balances: tuple[AccountBalance, ...]
    net_worth: Decimal

    def by_classification(
        self, classification: AccountClassification | None
    ) -> list[AccountBalance]:
        return [b for b in self.balances if b.classification == classification]

    @property
    def assets_total(self) -> Decimal:
        return sum(
            (b.balance for b in self.by_classification(AccountClassification.ASSET)),
            Decimal("0"),
        )

    @property
    def liabilities_total(self) -> Decimal:
        return sum(
            (b.balance for b in self.by_classification(AccountClassification.LIABILITY)),
            Decimal("0"),
        )

    def balance_of(self, account_id: str) -> Decimal:
        for entry in self.balances:
            if entry.account.id == account_id:
                return entry.balance
        raise NotFoundError("account", account_id)


@dataclass(frozen=True)
class DayView:
    """Everything the calendar shows for one day."""

    day: date
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    balance_sheet: BalanceSheet | None = None

    @property
    def net_worth(self) -> Decimal:
        return self.balance_sheet.net_worth if self.balance_sheet else Decimal("0")


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    # Stable sort on the reversed sequence keeps same-instant ties in reverse
    # insertion order, the exact mirror of forward application.
    return sorted(reversed(list(transactions)), key=lambda t: t.date, reverse=True)


def _oldest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date)


def balances_as_of(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    as_of: date,
) -> dict[str, Decimal]:
    """Reconstruct each account's balance at the end of ``as_of``.

    Args:
        accounts: Accounts carrying their current balances.
        transactions: The full ledger, in any order.
        as_of: Calendar day to reconstruct.

    Returns:
        Mapping of account id to balance.

    Raises:
        NotFoundError: A transaction after ``as_of`` references an unknown account.
    """
    balances = {a.id: a.current_balance for a in accounts}
    later = [t for t in transactions if t.day > as_of]

    for tx in _newest_first(later):
        if tx.account_id not in balances:
            raise NotFoundError("account", tx.account_id)
        if tx.type == TransactionType.INCOME:
            balances[tx.account_id] -= tx.amount
        else:
            balances[tx.account_id] += tx.amount

    return balances


def replay_forward(
    balances: Mapping[str, Decimal],
    transactions: Iterable[Transaction],
    after: date,
) -> dict[str, Decimal]:
    """Re-apply every transaction dated after ``after`` to historical balances.

    ``replay_forward(balances_as_of(accounts, txs, d), txs, d)`` reproduces the
    current balances exactly.
    """
    result = dict(balances)
    later = [t for t in transactions if t.day > after]

    for tx in _oldest_first(later):
        if tx.account_id not in result:
            raise NotFoundError("account", tx.account_id)
        result[tx.account_id] += tx.signed_amount

    return result


def net_worth(balances: Mapping[str, Decimal] | Iterable[Decimal]) -> Decimal:
    """Sum balances; liabilities contribute with their stored sign."""
    values = balances.values() if isinstance(balances, Mapping) else balances
    return sum(values, Decimal("0"))


def net_worth_as_of(snapshot: LedgerSnapshot, as_of: date) -> Decimal:
    return net_worth(balances_as_of(snapshot.accounts, snapshot.transactions, as_of))


def balance_sheet(snapshot: LedgerSnapshot, as_of: date) -> BalanceSheet:
    """Balances of every account at the end of ``as_of`` with classification groups."""
    balances = balances_as_of(snapshot.accounts, snapshot.transactions, as_of)
    entries = []
    for account in snapshot.accounts:
        account_type = snapshot.account_type_for(account)
        entries.append(
            AccountBalance(
                account=account,
                balance=balances[account.id],
                classification=account_type.classification if account_type else None,
            )
        )
    return BalanceSheet(as_of=as_of, balances=tuple(entries), net_worth=net_worth(balances))


def day_view(snapshot: LedgerSnapshot, day: date) -> DayView:
    """The calendar view of ``day``: its transactions and the closing balance sheet."""
    return DayView(
        day=day,
        transactions=tuple(t for t in snapshot.transactions if t.day == day),
        balance_sheet=balance_sheet(snapshot, day),
    )
