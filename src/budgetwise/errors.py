"""Error taxonomy for ledger operations."""

from typing import Any


class BudgetwiseError(Exception):
    """Base exception for budgetwise errors."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BudgetwiseError):
    """Input has the wrong shape or is out of range."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: Any = None,
    ):
        super().__init__(message, details=details)
        self.field = field
        self.value = value


class ConflictError(BudgetwiseError):
    """Mutation would break a linked record, such as one leg of a transfer."""

    pass


class NotFoundError(BudgetwiseError):
    """Reference to an unknown account, account type, transaction or category."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} {key!r} not found", details={"kind": kind, "key": key})
        self.kind = kind
        self.key = key


class UpstreamError(BudgetwiseError):
    """The AI collaborator failed, timed out, or returned a malformed response."""

    pass
