"""
Error taxonomy for the budget ledger.

Services raise these; the CLI catches LedgerError and renders the message.
ValidationError is always raised before any store write is issued.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class ValidationError(LedgerError):
    """Input rejected before touching the store (duplicate key, bad combination)."""


class NotFoundError(LedgerError):
    """An expected record (e.g. the workspace Parameters) does not exist."""


class StoreError(LedgerError):
    """The underlying store rejected a read or write."""


class SchemaMismatchError(StoreError):
    """A field is not (yet) present in the store's schema."""

    def __init__(self, field: str, table: str | None = None):
        self.field = field
        self.table = table
        where = f" in table '{table}'" if table else ""
        super().__init__(
            f"Field '{field}' is not present{where}. "
            f"Run 'tripledger init' to migrate the store, then retry."
        )


class PartialPromotionError(LedgerError):
    """Promotion failed after it started changing the target workspace.

    ``stage`` is ``"clear"`` or ``"write"``. When ``rolled_back`` is False the
    target may be inconsistent and the promotion should be retried.
    """

    def __init__(self, source: str, target: str, stage: str, cause: Exception, rolled_back: bool):
        self.source = source
        self.target = target
        self.stage = stage
        self.cause = cause
        self.rolled_back = rolled_back
        side = "clearing" if stage == "clear" else "writing"
        state = (
            "the target was left unchanged"
            if rolled_back
            else f"workspace '{target}' may be inconsistent"
        )
        super().__init__(
            f"Promotion {source} -> {target} failed while {side} the target ({cause}); "
            f"{state}. Retry the promotion."
        )


__all__ = [
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "SchemaMismatchError",
    "PartialPromotionError",
]
