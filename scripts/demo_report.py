#!/usr/bin/env python3
"""Print a month-end style report for the sample ledger.

Shows:
1. Balance sheet as of today and as of 7 days ago
2. Spending by category over the last 30 days
3. Budget progress for the current month
4. Upcoming bill reminders
5. The ledger as CSV

Usage:
    python scripts/demo_report.py
"""

import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from budgetwise.aggregation import Period, income_expense_summary, spending_by_category
from budgetwise.config import configure_logging
from budgetwise.csv_io import export_transactions_csv
from budgetwise.demo import build_demo_ledger
from budgetwise.replay import balance_sheet
from budgetwise.tracker import budget_report, reminder_status, sort_reminders


def print_header(title: str) -> None:
    print()
    print("=" * 60)
    print(title)
    print("=" * 60)


def main() -> None:
    configure_logging(level="WARNING")
    ledger = build_demo_ledger()
    snapshot = ledger.store.snapshot()
    today = ledger.today

    for label, day in (("today", today), ("7 days ago", today - timedelta(days=7))):
        sheet = balance_sheet(snapshot, day)
        print_header(f"Balance sheet, {label} ({day.isoformat()})")
        for entry in sheet.balances:
            kind = entry.classification.value if entry.classification else "unclassified"
            print(f"  {entry.account.name:<24} {kind:<10} {entry.balance:>12,.2f}")
        print(f"  {'Net worth':<35} {sheet.net_worth:>12,.2f}")

    window = Period.last_days(today, 30)
    print_header("Spending by category, last 30 days")
    for row in spending_by_category(snapshot.transactions, window.start, window.end):
        print(f"  {row.category:<24} {row.total:>12,.2f}")
    summary = income_expense_summary(snapshot.transactions, window.start, window.end)
    print(f"  income {summary.income:,.2f}  expense {summary.expense:,.2f}  net {summary.net:,.2f}")

    print_header("Budgets, this month")
    for item in budget_report(ledger.budgets, snapshot.transactions, Period.month_of(today)):
        print(
            f"  {item.budget.category:<24} {item.spent:>9,.2f} / {item.budget.amount:>9,.2f}"
            f"  {item.ratio:>6.0%}  {item.status.value}"
        )

    print_header("Reminders")
    for reminder in sort_reminders(ledger.reminders):
        status = reminder_status(reminder, today).value
        print(f"  {reminder.due_date.isoformat()}  {reminder.description:<24} {reminder.amount:>9,.2f}  {status}")

    print_header("CSV export")
    print(export_transactions_csv(snapshot.transactions, snapshot.accounts))


if __name__ == "__main__":
    main()
