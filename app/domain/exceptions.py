# app/domain/exceptions.py
"""Errors raised by the invoice computation and rendering core."""

from __future__ import annotations


class ComputationError(Exception):
    """Raised when an invoice input is not a usable number.

    ``field`` names the offending input (``quantity``, ``rate``,
    ``exchange_rate``, ``igst_rate``, ``items`` or ``amount``);
    ``item_index`` is the 0-based line index, or None for transaction-level
    problems. Not retryable: the user has to fix the value.
    """

    def __init__(self, message: str, field: str | None = None, item_index: int | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.item_index = item_index

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "field": self.field,
            "item_index": self.item_index,
        }


class RenderError(Exception):
    """Raised when an invoice document cannot be rasterized or written.

    Rendering is idempotent for a given transaction, so callers may retry.
    """

    def __init__(self, message: str = "Could not generate the invoice PDF. Please try again."):
        super().__init__(message)
        self.message = message
