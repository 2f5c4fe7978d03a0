from __future__ import annotations


class LedgerValidationError(ValueError):
    """Raised when a ledger reconciliation rule is violated."""


class InvalidGroupOperationError(LedgerValidationError):
    """Raised when a split/merge/rename references a group or member that does not exist."""


class UnbalancedSettlementError(LedgerValidationError):
    """Raised by strict settlement when net positions do not sum to zero."""

    def __init__(self, imbalance: object) -> None:
        super().__init__(f"net positions do not sum to zero (imbalance {imbalance})")
        self.imbalance = imbalance
