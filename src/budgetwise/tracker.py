"""Budget progress and bill-reminder state."""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from budgetwise.aggregation import Period, budget_vs_spent
from budgetwise.config import get_logger
from budgetwise.errors import ValidationError
from budgetwise.models import Budget, Reminder, ReminderFrequency, Transaction

logger = get_logger(__name__)


class BudgetStatus(str, Enum):
    ON_TRACK = "on-track"
    OVERSPENT = "overspent"


class ReminderStatus(str, Enum):
    PAID = "paid"
    DUE = "due"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class BudgetProgress:
    """Spend-to-budget ratio for one budget."""

    budget: Budget
    spent: Decimal
    ratio: Decimal
    status: BudgetStatus

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0"), self.budget.amount - self.spent)


def progress(budget: Budget, spent: Decimal) -> BudgetProgress:
    """Compare ``spent`` against the budget ceiling.

    Raises:
        ValidationError: The budget amount is not positive.
    """
    if budget.amount <= 0:
        raise ValidationError(
            f"Budget amount must be positive, got {budget.amount}",
            field="amount",
            value=budget.amount,
        )
    ratio = spent / budget.amount
    status = BudgetStatus.OVERSPENT if ratio > 1 else BudgetStatus.ON_TRACK
    return BudgetProgress(budget=budget, spent=spent, ratio=ratio, status=status)


def budget_report(
    budgets: Iterable[Budget], transactions: Iterable[Transaction], period: Period
) -> list[BudgetProgress]:
    """Progress of every budget over ``period``."""
    report = [progress(row.budget, row.spent) for row in budget_vs_spent(budgets, transactions, period)]
    overspent = [p.budget.category for p in report if p.status == BudgetStatus.OVERSPENT]
    if overspent:
        logger.info("budgets_overspent", categories=overspent, period_start=str(period.start))
    return report


def toggle_reminder_paid(reminder: Reminder) -> Reminder:
    """Flip the paid flag. Never creates or touches transactions."""
    return replace(reminder, is_paid=not reminder.is_paid)


def sort_reminders(reminders: Iterable[Reminder]) -> list[Reminder]:
    return sorted(reminders, key=lambda r: r.due_date)


def reminder_status(reminder: Reminder, today: date) -> ReminderStatus:
    if reminder.is_paid:
        return ReminderStatus.PAID
    if reminder.due_date < today:
        return ReminderStatus.OVERDUE
    return ReminderStatus.DUE


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def next_due_date(reminder: Reminder) -> date | None:
    """The following occurrence for a recurring reminder, or None for ``once``.

    Nothing calls this automatically; advancing a reminder is the caller's decision.
    """
    frequency = ReminderFrequency(reminder.frequency)
    if frequency == ReminderFrequency.ONCE:
        return None
    if frequency == ReminderFrequency.WEEKLY:
        return reminder.due_date + timedelta(weeks=1)
    if frequency == ReminderFrequency.MONTHLY:
        return _add_months(reminder.due_date, 1)
    return _add_months(reminder.due_date, 12)
