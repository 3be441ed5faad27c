"""Sample ledger used by the demo report and the tests.

Transaction and reminder dates are relative to ``today`` so the data always
looks recent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from budgetwise.catalog import CategoryCatalog
from budgetwise.models import (
    Account,
    AccountClassification,
    AccountType,
    Budget,
    Reminder,
    ReminderFrequency,
    Transaction,
    TransactionCategory,
    TransactionLabel,
    TransactionType,
)
from budgetwise.store import TransactionStore

ACCOUNT_TYPES = [
    AccountType("type_1", "Checking", AccountClassification.ASSET, "Landmark"),
    AccountType("type_2", "Savings", AccountClassification.ASSET, "Banknote"),
    AccountType("type_3", "Credit Card", AccountClassification.LIABILITY, "CreditCard"),
    AccountType("type_4", "Cash", AccountClassification.ASSET, "Wallet"),
    AccountType("type_5", "Loan/IOU", AccountClassification.ASSET, "Scale"),
]

ACCOUNTS = [
    Account("acc_1", "Checking Account", "type_1", Decimal("5230.50")),
    Account("acc_2", "Savings Account", "type_2", Decimal("15820.75")),
    Account("acc_3", "Visa Credit Card", "type_3", Decimal("-890.21")),
    Account("acc_4", "Cash Wallet", "type_4", Decimal("340.00")),
]

CATEGORIES = [
    TransactionCategory("Food & Drink", ("Groceries", "Restaurants", "Coffee Shops", "Bars")),
    TransactionCategory("Shopping", ("Clothing", "Electronics", "Home Goods", "Books")),
    TransactionCategory("Transportation", ("Gasoline", "Public Transit", "Ride Share", "Parking")),
    TransactionCategory("Subscriptions", ("Streaming", "Software", "Gym", "News")),
    TransactionCategory("Utilities", ("Electricity", "Water", "Internet", "Phone")),
    TransactionCategory("Health & Fitness", ("Gym Membership", "Doctor", "Pharmacy")),
    TransactionCategory("Entertainment", ("Movies", "Concerts", "Games")),
    TransactionCategory("Salary"),
    TransactionCategory("Freelance"),
    TransactionCategory("Reimbursement"),
    TransactionCategory("Transfers"),
    TransactionCategory("Other"),
]

LABELS = [
    TransactionLabel("Personal", "For personal expenses and purchases."),
    TransactionLabel("Work", "Work-related expenses that may be reimbursable."),
    TransactionLabel("Household", "Shared expenses for the home."),
    TransactionLabel("Reimbursable", "Expenses that will be reimbursed."),
]

BUDGETS = [
    Budget("bud_1", "Food & Drink", Decimal("700")),
    Budget("bud_2", "Shopping", Decimal("300")),
    Budget("bud_3", "Transportation", Decimal("150")),
    Budget("bud_4", "Entertainment", Decimal("100")),
    Budget("bud_5", "Subscriptions", Decimal("50")),
    Budget("bud_6", "Health & Fitness", Decimal("50")),
    Budget("bud_7", "Utilities", Decimal("100")),
]

# (id, days ago, description, amount, type, category, subcategory, label, account, transfer)
_TRANSACTIONS = [
    ("txn_1", 1, "Starbucks Coffee", "5.75", "expense", "Food & Drink", "Coffee Shops", "Personal", "acc_3", None),
    ("txn_2", 1, "Monthly Salary", "4500", "income", "Salary", None, None, "acc_1", None),
    ("txn_3", 2, "Groceries from Whole Foods", "154.32", "expense", "Food & Drink", "Groceries", "Household", "acc_3", None),
    ("txn_4", 3, "Netflix Subscription", "15.99", "expense", "Subscriptions", "Streaming", None, "acc_3", None),
    ("txn_5_exp", 4, "Transfer to Savings", "1000", "expense", "Transfers", None, None, "acc_1", "transfer_1"),
    ("txn_5_inc", 4, "Transfer to Savings", "1000", "income", "Transfers", None, None, "acc_2", "transfer_1"),
    ("txn_6", 5, "Dinner at Italian Restaurant", "85.50", "expense", "Food & Drink", "Restaurants", None, "acc_3", None),
    ("txn_7", 6, "Gasoline", "55.20", "expense", "Transportation", "Gasoline", None, "acc_1", None),
    ("txn_8", 8, "Freelance Project Payment", "750", "income", "Freelance", None, None, "acc_1", None),
    ("txn_9", 10, "Amazon Purchase", "42.10", "expense", "Shopping", "Home Goods", "Personal", "acc_3", None),
    ("txn_10", 15, "Gym Membership", "49.99", "expense", "Health & Fitness", "Gym Membership", None, "acc_3", None),
    ("txn_11", 18, "Movie Tickets", "32.00", "expense", "Entertainment", "Movies", None, "acc_3", None),
    ("txn_12", 20, "Groceries from Trader Joe's", "98.75", "expense", "Food & Drink", "Groceries", "Household", "acc_1", None),
    ("txn_13", 22, "Electricity Bill", "75.60", "expense", "Utilities", "Electricity", None, "acc_1", None),
    ("txn_14", 25, "Lunch with colleagues", "25.40", "expense", "Food & Drink", "Restaurants", "Work", "acc_4", None),
    ("txn_15", 28, "New Book", "18.99", "expense", "Shopping", "Books", None, "acc_3", None),
]


@dataclass
class DemoLedger:
    store: TransactionStore
    catalog: CategoryCatalog
    budgets: list[Budget]
    reminders: list[Reminder]
    today: date


def demo_transactions(today: date) -> list[Transaction]:
    noon = time(12, 0)
    return [
        Transaction(
            id=tx_id,
            date=datetime.combine(today - timedelta(days=days_ago), noon),
            description=description,
            amount=Decimal(amount),
            type=TransactionType(tx_type),
            category=category,
            account_id=account_id,
            subcategory=subcategory,
            label=label,
            transfer_id=transfer_id,
        )
        for (
            tx_id,
            days_ago,
            description,
            amount,
            tx_type,
            category,
            subcategory,
            label,
            account_id,
            transfer_id,
        ) in _TRANSACTIONS
    ]


def demo_reminders(today: date) -> list[Reminder]:
    return [
        Reminder("rem_1", "Rent Payment", Decimal("1200"), today + timedelta(days=5),
                 ReminderFrequency.MONTHLY, "acc_1"),
        Reminder("rem_2", "Netflix Subscription", Decimal("15.99"), today + timedelta(days=10),
                 ReminderFrequency.MONTHLY, "acc_3"),
        Reminder("rem_3", "Car Insurance", Decimal("150"), today + timedelta(days=20),
                 ReminderFrequency.YEARLY, "acc_1", is_paid=True),
    ]


def build_demo_ledger(today: date | None = None) -> DemoLedger:
    """Load the sample accounts, history, budgets and reminders.

    Account balances are the current balances; the history is recorded
    without being re-applied to them.
    """
    today = today or date.today()
    catalog = CategoryCatalog(CATEGORIES, LABELS)
    store = TransactionStore.from_records(
        ACCOUNT_TYPES,
        ACCOUNTS,
        demo_transactions(today),
        catalog=catalog,
    )
    return DemoLedger(
        store=store,
        catalog=catalog,
        budgets=list(BUDGETS),
        reminders=demo_reminders(today),
        today=today,
    )
