"""Time-bucketed views over the ledger.

Every function here is pure: it reads transactions (or a snapshot) and a
window and returns new values. Windows are inclusive calendar days.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from budgetwise.errors import NotFoundError, ValidationError
from budgetwise.models import TRANSFER_CATEGORY, Budget, Transaction, TransactionType
from budgetwise.replay import balances_as_of, net_worth
from budgetwise.store import LedgerSnapshot

ZERO = Decimal("0")


@dataclass(frozen=True)
class Period:
    """Inclusive date window."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError(
                f"Window start {self.start} is after end {self.end}",
                field="start",
                value=self.start,
            )

    @classmethod
    def month_of(cls, day: date) -> Period:
        """The calendar month containing ``day``."""
        last = calendar.monthrange(day.year, day.month)[1]
        return cls(start=day.replace(day=1), end=day.replace(day=last))

    @classmethod
    def last_days(cls, end: date, days: int) -> Period:
        """``days`` days ending on ``end`` (``last_days(today, 30)`` is the reports window)."""
        if days < 1:
            raise ValidationError("days must be at least 1", field="days", value=days)
        return cls(start=end - timedelta(days=days - 1), end=end)

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class DailyTotal:
    day: date
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal


@dataclass(frozen=True)
class CashFlowPoint:
    day: date
    income: Decimal
    expense: Decimal
    balance: Decimal


@dataclass(frozen=True)
class NetWorthPoint:
    day: date
    net_worth: Decimal


@dataclass(frozen=True)
class AccountBalancePoint:
    day: date
    balances: dict[str, Decimal]


@dataclass(frozen=True)
class IncomeExpenseSummary:
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class BudgetSpending:
    budget: Budget
    spent: Decimal


def _window(start: date, end: date) -> Period:
    return Period(start=start, end=end)


def _in_window(transactions: Iterable[Transaction], window: Period) -> list[Transaction]:
    return [t for t in transactions if window.contains(t.day)]


def daily_totals(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    include_empty_days: bool = False,
) -> list[DailyTotal]:
    """Income and expense summed per calendar day, ascending.

    Args:
        include_empty_days: Zero-fill days without transactions instead of
            omitting them.
    """
    window = _window(start, end)
    income: dict[date, Decimal] = defaultdict(lambda: ZERO)
    expense: dict[date, Decimal] = defaultdict(lambda: ZERO)
    seen: set[date] = set()

    for tx in _in_window(transactions, window):
        seen.add(tx.day)
        if tx.type == TransactionType.INCOME:
            income[tx.day] += tx.amount
        else:
            expense[tx.day] += tx.amount

    days = list(window.days()) if include_empty_days else sorted(seen)
    return [DailyTotal(day=d, income=income[d], expense=expense[d]) for d in days]


def spending_by_category(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    include_transfers: bool = False,
    transfer_category: str = TRANSFER_CATEGORY,
) -> list[CategoryTotal]:
    """Expense totals per category, largest first (ties by name)."""
    window = _window(start, end)
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for tx in _in_window(transactions, window):
        if tx.type != TransactionType.EXPENSE:
            continue
        if not include_transfers and tx.is_transfer(transfer_category):
            continue
        totals[tx.category] += tx.amount

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryTotal(category=name, total=total) for name, total in ranked]


def cash_flow_series(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    opening_balance: Decimal = ZERO,
    include_empty_days: bool = True,
) -> list[CashFlowPoint]:
    """Running balance from ``opening_balance``, adding income and subtracting expense."""
    running = opening_balance
    points = []
    for bucket in daily_totals(transactions, start, end, include_empty_days=include_empty_days):
        running = running + bucket.income - bucket.expense
        points.append(
            CashFlowPoint(
                day=bucket.day,
                income=bucket.income,
                expense=bucket.expense,
                balance=running,
            )
        )
    return points


def net_worth_series(snapshot: LedgerSnapshot, start: date, end: date) -> list[NetWorthPoint]:
    """Net worth at the end of each day in the window, ascending.

    Transfer legs move money between owned accounts, so they are skipped
    outright. Everything else dated after a day is reversed, walking back from
    today's net worth one day at a time.
    """
    window = _window(start, end)
    transfer_category = snapshot.transfer_category
    movements = [t for t in snapshot.transactions if not t.is_transfer(transfer_category)]

    current = net_worth(a.current_balance for a in snapshot.accounts)
    # Undo everything after the window first, then walk back through it.
    for tx in movements:
        if tx.day > window.end:
            current -= tx.signed_amount

    by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for tx in movements:
        if window.contains(tx.day):
            by_day[tx.day] += tx.signed_amount

    points = []
    for day in reversed(list(window.days())):
        points.append(NetWorthPoint(day=day, net_worth=current))
        current -= by_day[day]
    points.reverse()
    return points


def account_balance_series(
    snapshot: LedgerSnapshot, start: date, end: date
) -> list[AccountBalancePoint]:
    """Every account's closing balance for each day in the window, ascending."""
    window = _window(start, end)
    balances = balances_as_of(snapshot.accounts, snapshot.transactions, window.end)

    by_day: dict[date, list[Transaction]] = defaultdict(list)
    for tx in snapshot.transactions:
        if window.contains(tx.day):
            if tx.account_id not in balances:
                raise NotFoundError("account", tx.account_id)
            by_day[tx.day].append(tx)

    points = []
    for day in reversed(list(window.days())):
        points.append(AccountBalancePoint(day=day, balances=dict(balances)))
        for tx in by_day[day]:
            balances[tx.account_id] -= tx.signed_amount
    points.reverse()
    return points


def income_expense_summary(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    include_transfers: bool = False,
    transfer_category: str = TRANSFER_CATEGORY,
) -> IncomeExpenseSummary:
    """Total income, expense and net earnings over the window."""
    window = _window(start, end)
    income = ZERO
    expense = ZERO
    for tx in _in_window(transactions, window):
        if not include_transfers and tx.is_transfer(transfer_category):
            continue
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return IncomeExpenseSummary(income=income, expense=expense)


def spent_in_period(
    transactions: Iterable[Transaction], category: str, period: Period
) -> Decimal:
    """Sum of expense amounts in ``category`` within ``period``."""
    return sum(
        (
            t.amount
            for t in transactions
            if t.type == TransactionType.EXPENSE
            and t.category == category
            and period.contains(t.day)
        ),
        ZERO,
    )


def budget_vs_spent(
    budgets: Iterable[Budget], transactions: Iterable[Transaction], period: Period
) -> list[BudgetSpending]:
    """Derive each budget's spent amount for the caller-supplied period."""
    ledger = list(transactions)
    return [
        BudgetSpending(budget=b, spent=spent_in_period(ledger, b.category, period))
        for b in budgets
    ]
