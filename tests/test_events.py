"""Tests for the ledger journal."""

import json
from datetime import timedelta
from decimal import Decimal

import pytest
from conftest import TODAY, at, make_tx

from budgetwise import events
from budgetwise.events import LedgerEvent, LedgerEventType
from budgetwise.models import Account, TransactionType
from budgetwise.store import TransactionStore


class TestEventTypes:
    """Tests for event type definitions."""

    def test_event_type_values(self):
        """Test that all event types have correct values."""
        assert LedgerEventType.TRANSACTION_ADDED.value == "transaction.added"
        assert LedgerEventType.TRANSFER_CREATED.value == "transfer.created"
        assert LedgerEventType.HISTORY_LOADED.value == "history.loaded"
        assert LedgerEventType.ACCOUNT_TYPE_ADDED.value == "account_type.added"

    def test_ledger_event_to_dict(self):
        """Test basic event serialization."""
        event = LedgerEvent(event_type=LedgerEventType.ACCOUNT_REMOVED, data={"id": "acc_1"})

        result = event.to_dict()

        assert result["type"] == "account.removed"
        assert result["data"]["id"] == "acc_1"
        assert "id" in result
        assert "timestamp" in result

    def test_event_is_json_serializable(self):
        event = events.transaction_added(make_tx("t1", TODAY, "12.5"))

        decoded = json.loads(json.dumps(event.to_dict()))

        assert decoded["data"]["amount"] == "12.5"
        assert decoded["data"]["type"] == "expense"

    def test_transfer_event_carries_both_legs(self, store):
        expense, income = store.add_transfer("acc_a", "acc_b", "300")

        event = store.journal[-1]

        assert event.event_type == LedgerEventType.TRANSFER_CREATED
        assert event.data["transfer_id"] == expense.transfer_id
        assert [leg["id"] for leg in event.data["legs"]] == [expense.id, income.id]


class TestJournal:
    def test_sequence_increments_per_mutation(self, store):
        store.add_transaction(make_tx("t1", TODAY, "5"))

        sequences = [e.sequence for e in store.journal]

        assert sequences == list(range(1, len(sequences) + 1))

    def test_rejected_mutation_not_journaled(self, store):
        before = len(store.journal)
        with pytest.raises(Exception):
            store.add_transaction(make_tx("t1", TODAY, "-5"))
        assert len(store.journal) == before

    def test_subscribers_notified(self, store):
        seen = []
        store.subscribe(seen.append)

        store.add_transaction(make_tx("t1", TODAY, "5"))
        store.unsubscribe(seen.append)
        store.add_transaction(make_tx("t2", TODAY, "5"))

        assert [e.event_type for e in seen] == [LedgerEventType.TRANSACTION_ADDED]

    def test_failing_subscriber_does_not_block_commit(self, store):
        def broken(event):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.add_transaction(make_tx("t1", TODAY, "5"))

        assert store.get_account("acc_a").current_balance == Decimal("995")


class TestReplayFromJournal:
    def test_rebuilds_identical_state(self, store):
        store.add_transaction(make_tx("t1", TODAY - timedelta(days=2), "200"))
        store.add_transaction(make_tx("t2", TODAY, "75", type=TransactionType.INCOME))
        expense, _ = store.add_transfer("acc_a", "acc_b", "300", date=at(TODAY))
        store.import_transactions([make_tx("i1", TODAY, "10.25", account_id="acc_b")])
        store.add_account(Account("acc_c", "Cash", "checking", Decimal("40")))
        store.rename_account("acc_c", "Wallet")
        store.remove_transaction("t2")
        store.remove_transfer(expense.transfer_id)

        rebuilt = TransactionStore.from_journal(store.journal)

        original = store.snapshot()
        copy = rebuilt.snapshot()
        assert copy.current_balances() == original.current_balances()
        assert [t.id for t in copy.transactions] == [t.id for t in original.transactions]
        assert rebuilt.get_account("acc_c").name == "Wallet"
        assert len(rebuilt.journal) == len(store.journal)

    def test_history_loaded_does_not_reapply(self, account_types):
        store = TransactionStore.from_records(
            account_types,
            [Account("acc_a", "A", "checking", Decimal("1000"))],
            [make_tx("h1", TODAY, "200")],
        )

        rebuilt = TransactionStore.from_journal(store.journal)

        assert rebuilt.get_account("acc_a").current_balance == Decimal("1000")
        assert rebuilt.get_transaction("h1").amount == Decimal("200")

    def test_large_balances_survive_json_exactly(self, account_types):
        store = TransactionStore()
        for account_type in account_types:
            store.add_account_type(account_type)
        store.add_account(Account("acc_big", "Trust", "savings", Decimal("12345678901234567.89")))
        store.add_transaction(
            make_tx("cent", TODAY, "0.01", type=TransactionType.INCOME, account_id="acc_big")
        )

        wire = json.loads(json.dumps([e.to_dict() for e in store.journal]))
        assert wire[-2]["data"]["balance"] == "12345678901234567.89"
        assert wire[-1]["data"]["amount"] == "0.01"

        rebuilt = TransactionStore.from_journal(LedgerEvent.from_dict(e) for e in wire)
        assert rebuilt.get_account("acc_big").current_balance == Decimal("12345678901234567.90")
        assert rebuilt.get_account("acc_big").current_balance == (
            store.get_account("acc_big").current_balance
        )
