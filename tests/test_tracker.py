"""Tests for budget progress and reminders."""

from datetime import date
from decimal import Decimal

import pytest
from conftest import make_tx

from budgetwise.aggregation import Period
from budgetwise.errors import ValidationError
from budgetwise.models import Budget, Reminder, ReminderFrequency
from budgetwise.tracker import (
    BudgetStatus,
    ReminderStatus,
    budget_report,
    next_due_date,
    progress,
    reminder_status,
    sort_reminders,
    toggle_reminder_paid,
)

SHOPPING = Budget("bud_2", "Shopping", Decimal("300"))


def reminder(rem_id="rem_1", due=date(2024, 3, 20), frequency=ReminderFrequency.MONTHLY, paid=False):
    return Reminder(rem_id, "Rent", Decimal("1200"), due, frequency, "acc_a", is_paid=paid)


class TestProgress:
    def test_overspent_shopping(self):
        result = progress(SHOPPING, Decimal("310"))

        assert result.ratio == Decimal("310") / Decimal("300")
        assert result.ratio > 1
        assert result.status == BudgetStatus.OVERSPENT
        assert result.remaining == Decimal("0")

    def test_exactly_on_budget_is_on_track(self):
        result = progress(SHOPPING, Decimal("300"))

        assert result.ratio == 1
        assert result.status == BudgetStatus.ON_TRACK

    def test_remaining(self):
        assert progress(SHOPPING, Decimal("120")).remaining == Decimal("180")

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_non_positive_budget_rejected(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            progress(Budget("b", "Shopping", Decimal(amount)), Decimal("5"))
        assert exc_info.value.field == "amount"

    def test_ratio_monotonic_and_status_consistent(self):
        previous = None
        for spent in range(0, 700, 25):
            result = progress(SHOPPING, Decimal(spent))
            if previous is not None:
                assert result.ratio >= previous
            assert (result.ratio > 1) == (result.status == BudgetStatus.OVERSPENT)
            previous = result.ratio


class TestBudgetReport:
    def test_report_for_period(self):
        march = Period.month_of(date(2024, 3, 1))
        ledger = [
            make_tx("a", date(2024, 3, 2), "200", category="Shopping"),
            make_tx("b", date(2024, 3, 9), "110", category="Shopping"),
            make_tx("old", date(2024, 2, 28), "999", category="Shopping"),
        ]

        (row,) = budget_report([SHOPPING], ledger, march)

        assert row.spent == Decimal("310")
        assert row.status == BudgetStatus.OVERSPENT


class TestReminders:
    def test_toggle_flips_paid_only(self):
        original = reminder()

        paid = toggle_reminder_paid(original)

        assert paid.is_paid is True
        assert paid.due_date == original.due_date
        assert original.is_paid is False
        assert toggle_reminder_paid(paid).is_paid is False

    def test_sorted_by_due_date(self):
        items = [
            reminder("late", date(2024, 4, 1)),
            reminder("early", date(2024, 3, 1)),
            reminder("mid", date(2024, 3, 15)),
        ]
        assert [r.id for r in sort_reminders(items)] == ["early", "mid", "late"]

    def test_status(self):
        today = date(2024, 3, 20)

        assert reminder_status(reminder(due=date(2024, 3, 19)), today) == ReminderStatus.OVERDUE
        assert reminder_status(reminder(due=today), today) == ReminderStatus.DUE
        assert reminder_status(reminder(due=date(2024, 3, 1), paid=True), today) == ReminderStatus.PAID

    @pytest.mark.parametrize(
        "frequency,due,expected",
        [
            (ReminderFrequency.ONCE, date(2024, 1, 31), None),
            (ReminderFrequency.WEEKLY, date(2024, 1, 31), date(2024, 2, 7)),
            (ReminderFrequency.MONTHLY, date(2024, 1, 31), date(2024, 2, 29)),
            (ReminderFrequency.MONTHLY, date(2024, 12, 15), date(2025, 1, 15)),
            (ReminderFrequency.YEARLY, date(2024, 2, 29), date(2025, 2, 28)),
        ],
    )
    def test_next_due_date(self, frequency, due, expected):
        assert next_due_date(reminder(due=due, frequency=frequency)) == expected

    def test_paying_does_not_advance_due_date(self):
        monthly = reminder(due=date(2024, 3, 20))
        assert toggle_reminder_paid(monthly).due_date == date(2024, 3, 20)

    def test_to_dict(self):
        data = reminder(paid=True).to_dict()

        assert data == {
            "id": "rem_1",
            "description": "Rent",
            "amount": "1200",
            "due_date": "2024-03-20",
            "frequency": "monthly",
            "account_id": "acc_a",
            "is_paid": True,
        }
