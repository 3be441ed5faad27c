"""CSV import and export of transactions."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import IO

from budgetwise.config import ColumnMapping, get_column_mapping, get_logger, get_settings
from budgetwise.errors import ValidationError
from budgetwise.models import Account, Transaction, TransactionType, naive_local, new_id
from budgetwise.store import TransactionStore

logger = get_logger(__name__)

EXPORT_HEADERS = ["Date", "Description", "Category", "Account", "Amount"]


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def format_amount(value: Decimal) -> str:
    """Render a Decimal the way a plain number prints: ``-12.5``, ``200``."""
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def format_export_date(value: datetime, date_format: str | None = None) -> str:
    """Locale-style date, ``M/D/YYYY`` unless a strftime format is given."""
    if date_format:
        return value.strftime(date_format)
    return f"{value.month}/{value.day}/{value.year}"


def export_transactions_csv(
    transactions: Iterable[Transaction],
    accounts: Iterable[Account] | Mapping[str, Account],
    date_format: str | None = None,
) -> str:
    """Serialize transactions to CSV text.

    Description and Account are always quoted; Amount is signed, negative for
    expenses. Unknown accounts render as ``N/A``.
    """
    if isinstance(accounts, Mapping):
        names = {account_id: a.name for account_id, a in accounts.items()}
    else:
        names = {a.id: a.name for a in accounts}
    date_format = date_format or get_settings().export_date_format

    rows = [",".join(EXPORT_HEADERS)]
    for tx in transactions:
        rows.append(
            ",".join(
                [
                    format_export_date(tx.date, date_format),
                    _quote(tx.description),
                    tx.category,
                    _quote(names.get(tx.account_id, "N/A")),
                    format_amount(tx.signed_amount),
                ]
            )
        )
    return "\n".join(rows)


def write_transactions_csv(
    path: Path,
    transactions: Iterable[Transaction],
    accounts: Iterable[Account] | Mapping[str, Account],
    date_format: str | None = None,
) -> None:
    path.write_text(
        export_transactions_csv(transactions, accounts, date_format), encoding="utf-8"
    )


def _parse_date(raw: str, mapping: ColumnMapping) -> datetime:
    value = raw.strip()
    try:
        return naive_local(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in mapping.date_formats:
        try:
            return naive_local(datetime.strptime(value, fmt))
        except ValueError:
            continue
    raise ValueError(value)


def _parse_amount(raw: str) -> Decimal:
    value = Decimal(raw.strip())
    if not value.is_finite():
        raise InvalidOperation(raw)
    return value


def parse_transactions_csv(
    source: str | IO[str],
    accounts: Iterable[Account],
    mapping: ColumnMapping | str = "standard",
    default_account_id: str | None = None,
    transfer_category: str | None = None,
) -> list[Transaction]:
    """Parse CSV rows into transactions without touching any store.

    All rows are checked; if any fail, a single ValidationError lists every
    problem as ``Row N: ...`` in ``details`` and nothing is returned.

    Args:
        source: CSV text or an open text stream.
        accounts: Accounts available for exact-name lookup.
        mapping: A ColumnMapping or the name of a configured one.
        default_account_id: Account for rows without an account column.
        transfer_category: Category that may not be imported.
    """
    if isinstance(mapping, str):
        mapping = get_column_mapping(mapping)
    transfer_category = transfer_category or get_settings().transfer_category
    known = list(accounts)
    by_name = {a.name: a for a in known}
    by_id = {a.id: a for a in known}

    stream = io.StringIO(source) if isinstance(source, str) else source
    reader = csv.DictReader(stream)
    matched, missing = mapping.resolve(reader.fieldnames)
    if missing:
        required = ", ".join(mapping.required_headers())
        raise ValidationError(
            f"Invalid CSV format. Required columns are: {required}",
            field="header",
            value=reader.fieldnames,
            details={"missing": missing, "mapping": mapping.name},
        )

    default_account = None
    if default_account_id is not None:
        default_account = by_id.get(default_account_id)
        if default_account is None:
            raise ValidationError(
                f"Unknown default account {default_account_id}",
                field="default_account_id",
                value=default_account_id,
            )
    if "account" not in matched and default_account is None:
        raise ValidationError(
            f"Mapping {mapping.name!r} has no account column; a default account is required",
            field="default_account_id",
        )

    amount_header = matched["amount"]
    amount_is_cost = mapping.is_cost_header(amount_header)

    parsed: list[Transaction] = []
    errors: list[str] = []

    for index, row in enumerate(reader):
        row_number = index + 2
        cells = {k: (v or "").strip() for k, v in row.items() if k is not None}
        if not any(cells.values()):
            continue

        account_name = cells.get(matched["account"], "") if "account" in matched else ""
        if account_name:
            account = by_name.get(account_name)
        else:
            account = default_account
        if account is None:
            errors.append(f'Row {row_number}: Account "{account_name}" not found.')
            continue

        raw_amount = cells.get(amount_header, "")
        try:
            amount = _parse_amount(raw_amount)
        except (InvalidOperation, ValueError):
            errors.append(f'Row {row_number}: Invalid amount "{raw_amount}".')
            continue
        if amount == 0:
            errors.append(f"Row {row_number}: Amount must not be zero.")
            continue

        category = ""
        if "category" in matched:
            category = cells.get(matched["category"], "")
        category = category or mapping.default_category
        if category == transfer_category:
            errors.append(
                f'Row {row_number}: CSV import for "{transfer_category}" is not supported. '
                "Please add transfers manually."
            )
            continue

        raw_date = cells.get(matched["date"], "")
        try:
            when = _parse_date(raw_date, mapping)
        except ValueError:
            errors.append(f'Row {row_number}: Invalid date "{raw_date}".')
            continue

        if amount_is_cost:
            tx_type = TransactionType.EXPENSE if amount > 0 else TransactionType.INCOME
        else:
            tx_type = TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE

        description = cells.get(matched["description"], "") if "description" in matched else ""
        parsed.append(
            Transaction(
                id=new_id("imported"),
                date=when,
                description=description,
                amount=abs(amount),
                type=tx_type,
                category=category,
                account_id=account.id,
            )
        )

    if errors:
        logger.warning("csv_import_rejected", mapping=mapping.name, error_count=len(errors))
        raise ValidationError(
            f"{len(errors)} row(s) could not be imported",
            field="rows",
            details=errors,
        )

    logger.info("csv_parsed", mapping=mapping.name, rows=len(parsed))
    return parsed


def import_transactions_csv(
    store: TransactionStore,
    source: str | IO[str],
    mapping: ColumnMapping | str = "standard",
    default_account_id: str | None = None,
) -> list[Transaction]:
    """Parse ``source`` and add every row to ``store`` in one all-or-nothing batch."""
    parsed = parse_transactions_csv(
        source,
        store.list_accounts(),
        mapping=mapping,
        default_account_id=default_account_id,
        transfer_category=store.transfer_category,
    )
    return store.import_transactions(parsed)
