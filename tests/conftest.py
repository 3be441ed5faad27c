"""Pytest configuration and fixtures."""

import os
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("GOOGLE_API_KEY", "test-key")
os.environ.setdefault("AI_TIMEOUT", "5")

from budgetwise.models import (  # noqa: E402
    Account,
    AccountClassification,
    AccountType,
    Transaction,
    TransactionType,
)
from budgetwise.store import TransactionStore  # noqa: E402

TODAY = date(2024, 3, 15)


def at(day: date, hour: int = 12) -> datetime:
    """Transaction timestamp on ``day``."""
    return datetime(day.year, day.month, day.day, hour)


def make_tx(
    tx_id: str,
    day: date,
    amount: str,
    type: TransactionType = TransactionType.EXPENSE,
    account_id: str = "acc_a",
    category: str = "Food & Drink",
    description: str = "",
    hour: int = 12,
) -> Transaction:
    return Transaction(
        id=tx_id,
        date=at(day, hour),
        description=description or tx_id,
        amount=Decimal(amount),
        type=type,
        category=category,
        account_id=account_id,
    )


@pytest.fixture
def account_types():
    return [
        AccountType("checking", "Checking", AccountClassification.ASSET, "Landmark"),
        AccountType("savings", "Savings", AccountClassification.ASSET, "Banknote"),
        AccountType("card", "Credit Card", AccountClassification.LIABILITY, "CreditCard"),
    ]


@pytest.fixture
def store(account_types):
    """Store with A=1000 (checking) and B=500 (savings), no history."""
    store = TransactionStore()
    for account_type in account_types:
        store.add_account_type(account_type)
    store.add_account(Account("acc_a", "Account A", "checking", Decimal("1000")))
    store.add_account(Account("acc_b", "Account B", "savings", Decimal("500")))
    return store


@pytest.fixture
def mock_genai_client():
    """Create a mock google-genai Client with an async models surface."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


def gemini_reply(text: str, finish_reason: str = "STOP") -> MagicMock:
    """Build an object shaped like a google-genai GenerateContentResponse."""
    part = MagicMock()
    part.text = text
    candidate = MagicMock()
    candidate.content.parts = [part]
    candidate.finish_reason = finish_reason
    response = MagicMock()
    response.candidates = [candidate]
    response.usage_metadata.prompt_token_count = 120
    response.usage_metadata.candidates_token_count = 40
    return response
