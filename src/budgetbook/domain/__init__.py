"""Domain layer for budgetbook application."""

from budgetbook.domain.ledger import LedgerState
from budgetbook.domain.deletion import DeletionQueue
from budgetbook.domain import metrics

__all__ = [
    "LedgerState",
    "DeletionQueue",
    "metrics",
]
