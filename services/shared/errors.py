"""Error types shared across the invoicing services.

Failed record writes are reported through result models (see
services.records.base.StoreResult). Failed reads raise RecordStoreError,
since a read has no result model to carry the reason.
"""


class InvoicingError(Exception):
    """Base class for errors raised by the invoicing services."""


class DocumentValidationError(InvoicingError):
    """User-correctable input problem. Nothing has been mutated when raised.

    Attributes:
        problems: Human-readable description of every failed check
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class AuthError(InvoicingError):
    """Authentication or authorization failure."""


class RecordStoreError(InvoicingError):
    """The record store backend could not be read."""
