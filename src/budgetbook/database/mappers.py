"""Mapper functions to convert between domain entities and stored text.

Every top-level ledger slice is stored under its own key as JSON text. The
field names follow the persisted layout (camelCase), so this layer is the
only place that knows about them.

Decoders raise ValueError, KeyError or TypeError on malformed input; the
caller decides which default to fall back to.
"""

import json
import math
from datetime import date, datetime
from typing import Any, Mapping

from budgetbook.domain import entities as domain

THEME_KEY = "theme"
MONTHS_KEY = "months"
CURRENT_MONTH_KEY = "currentMonth"
GLOBAL_SAVINGS_KEY = "globalSavings"
SAVINGS_HISTORY_KEY = "savingsHistory"
EXPENSE_TEMPLATES_KEY = "expenseTemplates"
GOALS_KEY = "goals"
PENDING_DELETIONS_KEY = "pendingDeletions"


def encode(data: Any) -> str:
    """Serialize a JSON-compatible value to text."""
    return json.dumps(data, ensure_ascii=False, allow_nan=False)


def decode(text: str) -> Any:
    """Parse stored text back into a JSON-compatible value."""
    return json.loads(text)


def number_from_json(value: Any) -> float:
    """Accept a stored finite JSON number (bools excluded) as float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return float(value)


def timestamp_from_json(value: Any) -> datetime:
    """Parse a stored ISO timestamp, which must carry a UTC offset."""
    if not isinstance(value, str):
        raise TypeError(f"Expected a timestamp, got {value!r}")
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        raise ValueError(f"Timestamp {value!r} has no UTC offset")
    return moment


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"Stored {what} must be a mapping, got {type(value).__name__}")
    return value


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected text, got {value!r}")
    return value


def transaction_to_json(txn: domain.Transaction) -> dict[str, Any]:
    """Convert a Transaction entity to its stored form."""
    data: dict[str, Any] = {
        "id": txn.id,
        "type": txn.type.value,
        "amount": txn.amount,
        "date": txn.date.isoformat(),
        "createdAt": txn.created_at.isoformat(),
    }
    if txn.type is domain.TransactionType.EXPENSE:
        data["category"] = txn.category.value
        data["note"] = txn.note or ""
    else:
        data["goalId"] = txn.goal_id
    return data


def transaction_from_json(data: Mapping[str, Any]) -> domain.Transaction:
    """Convert a stored transaction to a Transaction entity."""
    data = _mapping(data, "transaction")
    txn_type = domain.TransactionType(data["type"])
    amount = number_from_json(data["amount"])
    if amount <= 0:
        raise ValueError(f"Transaction {data['id']} has non-positive amount {amount}")
    common = dict(
        id=int(data["id"]),
        type=txn_type,
        amount=amount,
        date=date.fromisoformat(data["date"]),
        created_at=timestamp_from_json(data["createdAt"]),
    )
    if txn_type is domain.TransactionType.EXPENSE:
        return domain.Transaction(
            **common,
            category=domain.Category.parse(data["category"]),
            note=_optional_text(data.get("note")),
        )
    return domain.Transaction(**common, goal_id=int(data["goalId"]))


def month_to_json(month: domain.MonthRecord) -> dict[str, Any]:
    """Convert a MonthRecord entity to its stored form."""
    return {
        "income": month.income,
        "transactions": [transaction_to_json(t) for t in month.transactions],
        "closingLeftover": month.closing_leftover,
        "isOpen": month.is_open,
        "startedAt": month.started_at.isoformat(),
    }


def month_from_json(key: str, data: Mapping[str, Any]) -> domain.MonthRecord:
    """Convert a stored month to a MonthRecord entity."""
    data = _mapping(data, f"month {key}")
    closing = data.get("closingLeftover")
    return domain.MonthRecord(
        key=key,
        income=number_from_json(data["income"]),
        transactions=tuple(transaction_from_json(t) for t in data["transactions"]),
        is_open=bool(data["isOpen"]),
        started_at=timestamp_from_json(data["startedAt"]),
        closing_leftover=None if closing is None else number_from_json(closing),
    )


def months_to_json(months: Mapping[str, domain.MonthRecord]) -> dict[str, Any]:
    return {key: month_to_json(month) for key, month in months.items()}


def months_from_json(data: Mapping[str, Any]) -> dict[str, domain.MonthRecord]:
    return {key: month_from_json(key, value) for key, value in _mapping(data, "months").items()}


def goal_to_json(goal: domain.Goal) -> dict[str, Any]:
    """Convert a Goal entity to its stored form."""
    return {
        "id": goal.id,
        "name": goal.name,
        "targetAmount": goal.target_amount,
        "collectedAmount": goal.collected_amount,
        "image": goal.image,
        "note": goal.note,
        "createdAt": goal.created_at.isoformat(),
    }


def goal_from_json(data: Mapping[str, Any]) -> domain.Goal:
    """Convert a stored goal to a Goal entity."""
    data = _mapping(data, "goal")
    name = data["name"]
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"Goal {data['id']} has no name")
    return domain.Goal(
        id=int(data["id"]),
        name=name.strip(),
        target_amount=number_from_json(data["targetAmount"]),
        collected_amount=number_from_json(data.get("collectedAmount", 0)),
        created_at=timestamp_from_json(data["createdAt"]),
        image=_optional_text(data.get("image")),
        note=_optional_text(data.get("note")),
    )


def history_entry_to_json(entry: domain.SavingsHistoryEntry) -> dict[str, Any]:
    """Convert a SavingsHistoryEntry entity to its stored form."""
    return {
        "oldValue": entry.old_value,
        "newValue": entry.new_value,
        "difference": entry.difference,
        "note": entry.note,
        "action": entry.action.value,
        "timestamp": entry.timestamp.isoformat(),
    }


def history_entry_from_json(data: Mapping[str, Any]) -> domain.SavingsHistoryEntry:
    """Convert a stored history entry to a SavingsHistoryEntry entity."""
    return domain.SavingsHistoryEntry(
        old_value=number_from_json(data["oldValue"]),
        new_value=number_from_json(data["newValue"]),
        difference=number_from_json(data["difference"]),
        note=str(data.get("note", "")),
        action=domain.SavingsAction(data["action"]),
        timestamp=timestamp_from_json(data["timestamp"]),
    )


def template_to_json(template: domain.ExpenseTemplate) -> dict[str, Any]:
    """Convert an ExpenseTemplate entity to its stored form."""
    return {
        "id": template.id,
        "category": template.category.value,
        "amount": template.amount,
        "note": template.note or "",
    }


def template_from_json(data: Mapping[str, Any]) -> domain.ExpenseTemplate:
    """Convert a stored template to an ExpenseTemplate entity."""
    return domain.ExpenseTemplate(
        id=int(data["id"]),
        category=domain.Category.parse(data["category"]),
        amount=number_from_json(data["amount"]),
        note=_optional_text(data.get("note")),
    )


def pending_deletion_to_json(pending: domain.PendingDeletion) -> dict[str, Any]:
    return {
        "transactionId": pending.transaction_id,
        "monthKey": pending.month_key,
        "expiresAt": pending.expires_at.isoformat(),
    }


def pending_deletion_from_json(data: Mapping[str, Any]) -> domain.PendingDeletion:
    return domain.PendingDeletion(
        transaction_id=int(data["transactionId"]),
        month_key=str(data["monthKey"]),
        expires_at=timestamp_from_json(data["expiresAt"]),
    )


def list_from_json(data: Any, item_from_json) -> list:
    """Decode a stored list with the given per-item decoder."""
    if not isinstance(data, list):
        raise TypeError("Expected a stored list")
    return [item_from_json(item) for item in data]
