"""Budgetwise - personal finance ledger with point-in-time replay and reports."""

__version__ = "0.1.0"

from budgetwise.aggregation import (
    Period,
    account_balance_series,
    budget_vs_spent,
    cash_flow_series,
    daily_totals,
    income_expense_summary,
    net_worth_series,
    spending_by_category,
)
from budgetwise.catalog import CategoryCatalog
from budgetwise.clients import GeminiClient
from budgetwise.config import configure_logging, get_settings
from budgetwise.csv_io import (
    export_transactions_csv,
    import_transactions_csv,
    parse_transactions_csv,
)
from budgetwise.errors import (
    BudgetwiseError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from budgetwise.insights import FinancialAdvisor
from budgetwise.models import (
    Account,
    AccountClassification,
    AccountType,
    Budget,
    Reminder,
    ReminderFrequency,
    Transaction,
    TransactionType,
)
from budgetwise.replay import balance_sheet, balances_as_of, day_view, net_worth
from budgetwise.store import LedgerSnapshot, TransactionFilter, TransactionStore
from budgetwise.tracker import budget_report, progress, toggle_reminder_paid

__all__ = [
    # Version
    "__version__",
    # Model
    "Account",
    "AccountClassification",
    "AccountType",
    "Budget",
    "Reminder",
    "ReminderFrequency",
    "Transaction",
    "TransactionType",
    "CategoryCatalog",
    # Store
    "TransactionStore",
    "TransactionFilter",
    "LedgerSnapshot",
    # Replay & aggregation
    "balances_as_of",
    "balance_sheet",
    "day_view",
    "net_worth",
    "Period",
    "daily_totals",
    "spending_by_category",
    "cash_flow_series",
    "net_worth_series",
    "account_balance_series",
    "income_expense_summary",
    "budget_vs_spent",
    # Tracker
    "progress",
    "budget_report",
    "toggle_reminder_paid",
    # CSV
    "export_transactions_csv",
    "parse_transactions_csv",
    "import_transactions_csv",
    # AI
    "GeminiClient",
    "FinancialAdvisor",
    # Errors
    "BudgetwiseError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "UpstreamError",
    # Config
    "get_settings",
    "configure_logging",
]
