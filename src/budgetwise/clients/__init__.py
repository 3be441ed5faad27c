"""LLM client implementations for budgetwise."""

from budgetwise.clients.gemini import GeminiClient, GeminiResponse

__all__ = [
    "GeminiClient",
    "GeminiResponse",
]
