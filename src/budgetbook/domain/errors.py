"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class InsufficientFundsError(ValidationError):
    """Requested amount exceeds the balance of its funding source."""


def goal_not_found(goal_id: int) -> str:
    """Return message for missing goal."""
    return f"Goal {goal_id} not found"


def expense_not_found(transaction_id: int, month_key: str) -> str:
    """Return message for an expense missing from the active month."""
    return f"Expense {transaction_id} not found in {month_key}"


def template_not_found(template_id: int) -> str:
    """Return message for missing expense template."""
    return f"Template {template_id} not found"


def month_not_found(month_key: str) -> str:
    """Return message for missing month record."""
    return f"Month {month_key} not found"


def amount_not_positive(amount: float) -> str:
    """Return message for amounts that must be greater than zero."""
    return f"Amount must be greater than zero (got {amount:g})"


def insufficient_funds(amount: float, available: float, source: str) -> str:
    """Return message when a source cannot cover an amount."""
    return (
        f"Cannot take {amount:,.2f} from {source}: "
        f"only {available:,.2f} available"
    )
