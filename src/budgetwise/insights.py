"""AI-assisted budget estimation, expense prediction and spending analysis.

The model is treated as an opaque scoring service: we send it a serialized
slice of the ledger and accept whatever comes back as long as it has the
declared shape. Nothing here mutates ledger state, and failures are never
retried automatically.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from budgetwise.clients.gemini import GeminiClient
from budgetwise.config import get_logger
from budgetwise.errors import UpstreamError, ValidationError
from budgetwise.models import Transaction, TransactionType

logger = get_logger(__name__)

ADVISOR_SYSTEM_PROMPT = """You are a careful personal finance advisor. You read a
household's transaction history and give practical, conservative advice.
Amounts are in the user's own currency. Answer only with JSON matching the
requested schema."""

ESTIMATE_BUDGET_PROMPT = """Analyze the following transaction history for category ID {category_id} and estimate a reasonable monthly budget.

Transaction History:
{transaction_history}

Provide the estimated budget amount and a brief explanation of your reasoning.

Ensure that the estimatedBudget is a floating point number."""

PREDICT_EXPENSES_PROMPT = """Analyze the user's past transactions and spending patterns to predict potential upcoming expenses.

Identify recurring payments, seasonality and trends in the data. Based on them, predict potential upcoming expenses, including the category, description, amount, and date (YYYY-MM-DD) of each expense. Also include a confidence score (0-1) for each prediction.

Finally, provide a summary of the predicted expenses and key trends.

Here are the user's past transactions:
Transactions: {transactions}"""

ANALYZE_SPENDING_PROMPT = """Review the user's recent transactions below and describe their spending habits in two or three sentences: where most money goes, anything unusual, and one concrete suggestion.

Transactions:
{transactions}"""


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class BudgetEstimate(_CamelModel):
    estimated_budget: float = Field(alias="estimatedBudget")
    reasoning: str


class PredictedExpense(_CamelModel):
    category: str
    description: str
    amount: float
    date: str
    confidence: float = Field(ge=0.0, le=1.0)


class ExpensePrediction(_CamelModel):
    predicted_expenses: list[PredictedExpense] = Field(alias="predictedExpenses")
    summary: str


class SpendingInsights(_CamelModel):
    spending_insights: str = Field(alias="spendingInsights")


BUDGET_ESTIMATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "estimatedBudget": {
            "type": "number",
            "description": "The estimated budget amount for the category.",
        },
        "reasoning": {
            "type": "string",
            "description": "The reasoning behind the estimated budget.",
        },
    },
    "required": ["estimatedBudget", "reasoning"],
}

EXPENSE_PREDICTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "predictedExpenses": {
            "type": "array",
            "description": "A list of predicted future expenses.",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string", "description": "Category of the expense."},
                    "description": {"type": "string", "description": "What the expense is."},
                    "amount": {"type": "number", "description": "Predicted amount."},
                    "date": {"type": "string", "description": "Predicted date (YYYY-MM-DD)."},
                    "confidence": {
                        "type": "number",
                        "description": "Confidence score between 0 and 1.",
                    },
                },
                "required": ["category", "description", "amount", "date", "confidence"],
            },
        },
        "summary": {
            "type": "string",
            "description": "A summary of the predicted expenses and key trends.",
        },
    },
    "required": ["predictedExpenses", "summary"],
}

SPENDING_INSIGHTS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "spendingInsights": {
            "type": "string",
            "description": "Short analysis of the user's spending habits.",
        },
    },
    "required": ["spendingInsights"],
}


def prompt_transaction(tx: Transaction) -> dict[str, Any]:
    """The slice of a transaction the model sees."""
    return {
        "date": tx.day.isoformat(),
        "amount": float(tx.amount),
        "type": TransactionType(tx.type).value,
        "category": tx.category,
        "description": tx.description,
    }


def transactions_to_json(transactions: Iterable[Transaction]) -> str:
    return json.dumps([prompt_transaction(t) for t in transactions])


def _require_json(value: str, field: str) -> Any:
    try:
        return json.loads(value)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValidationError(
            f"Invalid JSON format for {field}: {e}", field=field, value=value
        ) from e


class FinancialAdvisor:
    """Prompt templates over the Gemini client with validated outputs."""

    def __init__(self, client: GeminiClient | None = None):
        self._client = client
        self._logger = logger.bind(component="financial_advisor")

    @property
    def client(self) -> GeminiClient:
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    async def _ask(self, prompt: str, schema: dict[str, Any], model: type[_CamelModel]) -> Any:
        data = await self.client.generate_json(
            prompt, schema, system_prompt=ADVISOR_SYSTEM_PROMPT
        )
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            self._logger.error("response_shape_invalid", model=model.__name__, errors=e.error_count())
            raise UpstreamError(
                f"AI response did not match {model.__name__}",
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def estimate_budget(
        self, category_id: str, transaction_history_json: str
    ) -> BudgetEstimate:
        """Estimate a monthly budget for a category from its history.

        Raises:
            ValidationError: ``transaction_history_json`` is not valid JSON.
            UpstreamError: The model failed or answered in the wrong shape.
        """
        _require_json(transaction_history_json, "transaction_history")
        self._logger.info("estimating_budget", category=category_id)
        prompt = ESTIMATE_BUDGET_PROMPT.format(
            category_id=category_id, transaction_history=transaction_history_json
        )
        return await self._ask(prompt, BUDGET_ESTIMATE_SCHEMA, BudgetEstimate)

    async def estimate_budget_for(
        self, category: str, transactions: Iterable[Transaction]
    ) -> BudgetEstimate:
        """Convenience wrapper serializing the category's expense history."""
        history = [
            t for t in transactions
            if t.category == category and t.type == TransactionType.EXPENSE
        ]
        return await self.estimate_budget(category, transactions_to_json(history))

    async def predict_future_expenses(
        self, transactions: Sequence[Transaction]
    ) -> ExpensePrediction:
        """Predict upcoming expenses from past transactions."""
        self._logger.info("predicting_expenses", transactions=len(transactions))
        prompt = PREDICT_EXPENSES_PROMPT.format(transactions=transactions_to_json(transactions))
        return await self._ask(prompt, EXPENSE_PREDICTION_SCHEMA, ExpensePrediction)

    async def analyze_spending_habits(self, transactions_json: str) -> SpendingInsights:
        """Describe spending habits from a JSON list of transactions.

        Raises:
            ValidationError: ``transactions_json`` is not valid JSON.
            UpstreamError: The model failed or answered in the wrong shape.
        """
        _require_json(transactions_json, "transactions")
        self._logger.info("analyzing_spending")
        prompt = ANALYZE_SPENDING_PROMPT.format(transactions=transactions_json)
        return await self._ask(prompt, SPENDING_INSIGHTS_SCHEMA, SpendingInsights)
