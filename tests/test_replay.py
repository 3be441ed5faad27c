"""Tests for point-in-time balance replay."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from conftest import TODAY, at, make_tx

from budgetwise.aggregation import net_worth_series
from budgetwise.errors import NotFoundError, ValidationError
from budgetwise.models import Account, AccountClassification, TransactionType
from budgetwise.replay import (
    balance_sheet,
    balances_as_of,
    day_view,
    net_worth,
    net_worth_as_of,
    replay_forward,
)
from budgetwise.store import TransactionStore

YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def expense_today(account_types):
    """A=1000 and B=500 now, after a 200 expense from A earlier today."""
    return TransactionStore.from_records(
        account_types,
        [
            Account("acc_a", "Account A", "checking", Decimal("1000")),
            Account("acc_b", "Account B", "savings", Decimal("500")),
        ],
        [make_tx("t1", TODAY, "200")],
    )


class TestBalancesAsOf:
    """Reverse replay from current balances."""

    def test_expense_today_reversed_for_yesterday(self, expense_today):
        snapshot = expense_today.snapshot()

        past = balances_as_of(snapshot.accounts, snapshot.transactions, YESTERDAY)

        assert past["acc_a"] == Decimal("1200")
        assert past["acc_b"] == Decimal("500")

    def test_net_worth_today_and_yesterday(self, expense_today):
        snapshot = expense_today.snapshot()

        assert net_worth_as_of(snapshot, TODAY) == Decimal("1500")
        assert net_worth_as_of(snapshot, YESTERDAY) == Decimal("1700")

    def test_same_day_transactions_count_as_applied(self, expense_today):
        snapshot = expense_today.snapshot()

        today = balances_as_of(snapshot.accounts, snapshot.transactions, TODAY)

        assert today == snapshot.current_balances()

    def test_income_reversed_by_subtraction(self, store):
        store.add_transaction(make_tx("t1", TODAY, "75", type=TransactionType.INCOME))
        snapshot = store.snapshot()

        past = balances_as_of(snapshot.accounts, snapshot.transactions, YESTERDAY)

        assert past["acc_a"] == Decimal("1000")

    def test_future_dated_transactions_are_undone_for_today(self, store):
        store.add_transaction(make_tx("future", TODAY + timedelta(days=3), "40"))
        snapshot = store.snapshot()

        assert balances_as_of(snapshot.accounts, snapshot.transactions, TODAY)["acc_a"] == Decimal(
            "1000"
        )

    def test_before_first_transaction(self, store):
        store.add_transaction(make_tx("t1", TODAY - timedelta(days=5), "100"))
        store.add_transaction(make_tx("t2", TODAY - timedelta(days=2), "50"))
        snapshot = store.snapshot()

        past = balances_as_of(snapshot.accounts, snapshot.transactions, date(2000, 1, 1))

        assert past["acc_a"] == Decimal("1000")

    def test_empty_ledger_returns_current(self, store):
        snapshot = store.snapshot()
        assert balances_as_of(snapshot.accounts, [], YESTERDAY) == snapshot.current_balances()

    def test_timestamps_compare_by_calendar_day(self, store):
        late = make_tx("late", TODAY, "10", hour=23)
        early = make_tx("early", TODAY, "5", hour=0)
        store.add_transaction(late)
        store.add_transaction(early)
        snapshot = store.snapshot()

        assert balances_as_of(snapshot.accounts, snapshot.transactions, TODAY)["acc_a"] == Decimal(
            "985"
        )
        assert balances_as_of(snapshot.accounts, snapshot.transactions, YESTERDAY)[
            "acc_a"
        ] == Decimal("1000")

    def test_unknown_account_in_ledger(self, store):
        snapshot = store.snapshot()
        orphan = make_tx("x", TODAY, "10", account_id="ghost")

        with pytest.raises(NotFoundError):
            balances_as_of(snapshot.accounts, [orphan], YESTERDAY)


class TestRoundTrip:
    def test_forward_replay_restores_current(self, store):
        for offset, amount, kind in [
            (9, "120", TransactionType.EXPENSE),
            (6, "300", TransactionType.INCOME),
            (3, "45.55", TransactionType.EXPENSE),
            (0, "10", TransactionType.INCOME),
        ]:
            store.add_transaction(make_tx(f"t{offset}", TODAY - timedelta(days=offset), amount, type=kind))
        store.add_transfer("acc_a", "acc_b", "80", date=at(TODAY - timedelta(days=4)))
        snapshot = store.snapshot()

        for day_offset in range(12):
            day = TODAY - timedelta(days=day_offset)
            past = balances_as_of(snapshot.accounts, snapshot.transactions, day)
            assert replay_forward(past, snapshot.transactions, day) == snapshot.current_balances()


class TestTransfers:
    def test_transfer_leaves_net_worth_unchanged(self, store):
        before = net_worth(store.snapshot().current_balances())

        store.add_transfer("acc_a", "acc_b", "300", date=at(TODAY))

        snapshot = store.snapshot()
        assert store.get_account("acc_a").current_balance == Decimal("700")
        assert store.get_account("acc_b").current_balance == Decimal("800")
        assert before == net_worth(snapshot.current_balances()) == Decimal("1500")
        assert net_worth_as_of(snapshot, YESTERDAY) == Decimal("1500")

    def test_transfer_excluded_from_net_worth_series(self, store):
        store.add_transfer("acc_a", "acc_b", "300", date=at(TODAY))

        series = net_worth_series(store.snapshot(), YESTERDAY, TODAY)

        assert [p.net_worth for p in series] == [Decimal("1500"), Decimal("1500")]

    def test_series_matches_point_in_time_net_worth(self, store):
        with pytest.raises(ValidationError):
            store.add_transaction(make_tx("x", TODAY, "100", category="Transfers"))
        store.add_transaction(make_tx("t1", TODAY, "100"))
        store.add_transfer("acc_a", "acc_b", "300", date=at(TODAY))
        snapshot = store.snapshot()

        series = net_worth_series(snapshot, YESTERDAY, TODAY)

        assert [p.net_worth for p in series] == [
            net_worth_as_of(snapshot, YESTERDAY),
            net_worth_as_of(snapshot, TODAY),
        ]
        assert series[-1].net_worth == Decimal("1400")


class TestBalanceSheet:
    def test_liabilities_summed_with_stored_sign(self, store):
        store.add_account(Account("acc_card", "Visa", "card", Decimal("-890.21")))

        sheet = balance_sheet(store.snapshot(), TODAY)

        assert sheet.net_worth == Decimal("609.79")
        assert sheet.liabilities_total == Decimal("-890.21")
        assert sheet.assets_total == Decimal("1500")
        assert [b.account.id for b in sheet.by_classification(AccountClassification.LIABILITY)] == [
            "acc_card"
        ]

    def test_balance_of_unknown_account(self, store):
        sheet = balance_sheet(store.snapshot(), TODAY)
        with pytest.raises(NotFoundError):
            sheet.balance_of("ghost")

    def test_day_view(self, expense_today):
        view = day_view(expense_today.snapshot(), TODAY)

        assert [t.id for t in view.transactions] == ["t1"]
        assert view.net_worth == Decimal("1500")
        assert view.balance_sheet.balance_of("acc_a") == Decimal("1000")

    def test_day_view_before_history(self, expense_today):
        view = day_view(expense_today.snapshot(), YESTERDAY)

        assert view.transactions == ()
        assert view.net_worth == Decimal("1700")


def test_net_worth_accepts_iterables():
    assert net_worth([Decimal("1"), Decimal("-3")]) == Decimal("-2")
    assert net_worth({}) == Decimal("0")


def test_aware_timestamps_stored_as_naive_local_time(store):
    from dataclasses import replace
    from datetime import timezone

    aware = datetime(TODAY.year, TODAY.month, TODAY.day, 23, 30, tzinfo=timezone.utc)
    tx = store.add_transaction(replace(make_tx("utc", TODAY, "10"), date=aware))
    store.add_transaction(make_tx("naive", TODAY, "5"))
    snapshot = store.snapshot()

    assert tx.date.tzinfo is None
    assert tx.date == aware.astimezone().replace(tzinfo=None)
    assert balances_as_of(snapshot.accounts, snapshot.transactions, YESTERDAY)["acc_a"] == Decimal(
        "1000"
    )
