"""Exception types raised by the review pipeline."""

from __future__ import annotations

from typing import Any


class PaymentReviewError(Exception):
    """Base class for payment review errors."""


class RuleInputError(PaymentReviewError):
    """Raised inside a rule when a field it depends on cannot be parsed."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ReferenceDataError(PaymentReviewError):
    """Raised when packaged reference data is missing or malformed."""


class StoreError(PaymentReviewError):
    """Raised when a collection file cannot be read or written."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []
