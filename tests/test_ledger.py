"""Tests for LedgerState income, expense and template operations."""

from datetime import date, datetime, UTC
import pytest

from budgetbook.domain.entities import Category, TransactionType
from budgetbook.domain.errors import NotFoundError, ValidationError
from budgetbook.domain.metrics import leftover, total_expenses


def test_load_empty_store_opens_current_month(ledger):
    """A fresh store gets one open month for the clock's calendar month."""
    assert ledger.current_month == "2024-01"
    month = ledger.active_month
    assert month.is_open
    assert month.income == 0
    assert month.transactions == ()
    assert month.closing_leftover is None
    assert list(ledger.months) == ["2024-01"]


def test_load_persists_new_month(ledger, reload):
    """The lazily created month is written to the store."""
    reloaded = reload()
    assert reloaded.current_month == "2024-01"
    assert reloaded.active_month == ledger.active_month


def test_set_income(ledger, reload):
    month = ledger.set_income(5000)
    assert month.income == 5000
    assert reload().active_month.income == 5000


def test_set_income_zero_allowed(ledger):
    ledger.set_income(100)
    assert ledger.set_income(0).income == 0


def test_set_income_negative_rejected(ledger):
    ledger.set_income(1000)
    with pytest.raises(ValidationError, match="negative"):
        ledger.set_income(-1)
    assert ledger.active_month.income == 1000


def test_set_income_rejects_non_numbers(ledger):
    with pytest.raises(ValidationError):
        ledger.set_income(float("nan"))
    with pytest.raises(ValidationError):
        ledger.set_income("100")


def test_adjust_income_clamps_at_zero(ledger):
    ledger.set_income(300)
    assert ledger.adjust_income(200).income == 500
    assert ledger.adjust_income(-800).income == 0


def test_add_expense(ledger, reload):
    """Test adding an expense to the active month."""
    txn = ledger.add_expense(250, "Food", day=date(2024, 1, 14), note="Lunch")

    assert txn.type is TransactionType.EXPENSE
    assert txn.amount == 250
    assert txn.category is Category.FOOD
    assert txn.date == date(2024, 1, 14)
    assert txn.note == "Lunch"
    assert txn.created_at == datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    assert ledger.active_month.transactions == (txn,)
    assert reload().active_month.transactions == (txn,)


def test_add_expense_defaults_to_today(ledger):
    txn = ledger.add_expense(10, Category.TRANSPORT)
    assert txn.date == date(2024, 1, 15)
    assert txn.note is None


def test_add_expense_newest_first(ledger):
    first = ledger.add_expense(10, "Food")
    second = ledger.add_expense(20, "Bills")
    assert [t.id for t in ledger.active_month.transactions] == [second.id, first.id]


def test_expense_ids_are_unique_and_increasing(ledger):
    """IDs come from the clock but never repeat when the clock stands still."""
    ids = [ledger.add_expense(1, "Other").id for _ in range(5)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5
    assert ids[0] == int(datetime(2024, 1, 15, 12, 0, tzinfo=UTC).timestamp() * 1000)


@pytest.mark.parametrize("amount", [0, -5, -0.01])
def test_add_expense_rejects_non_positive_amount(ledger, amount):
    ledger.add_expense(100, "Food")
    before = ledger.active_month.transactions

    with pytest.raises(ValidationError, match="greater than zero"):
        ledger.add_expense(amount, "Food")

    assert ledger.active_month.transactions == before


def test_add_expense_rejects_unknown_category(ledger, reload):
    with pytest.raises(ValidationError, match="Unknown category"):
        ledger.add_expense(100, "Groceries")
    assert ledger.active_month.transactions == ()
    assert reload().active_month.transactions == ()


def test_add_expense_category_case_insensitive(ledger):
    assert ledger.add_expense(5, "entertainment").category is Category.ENTERTAINMENT


def test_total_expenses_is_order_independent(ledger, reload):
    amounts = [120.5, 80, 300, 45.25, 10]
    for amount in amounts:
        ledger.add_expense(amount, "Shopping")
    assert total_expenses(ledger.active_month) == pytest.approx(sum(amounts))
    assert total_expenses(reload().active_month) == pytest.approx(sum(amounts))


def test_leftover_after_expenses(ledger):
    ledger.set_income(5000)
    ledger.add_expense(1200, "Bills")
    ledger.add_expense(300, "Food")
    assert leftover(ledger.active_month) == 3500


def test_save_as_template_requires_note(ledger):
    ledger.add_expense(60, "Transport", save_as_template=True)
    assert ledger.expense_templates == ()

    ledger.add_expense(60, "Transport", note="Bus pass", save_as_template=True)
    (template,) = ledger.expense_templates
    assert template.category is Category.TRANSPORT
    assert template.amount == 60
    assert template.note == "Bus pass"


def test_add_and_delete_template(ledger, reload):
    template = ledger.add_template("Bills", 1500, note="Internet")
    assert reload().expense_templates == (template,)

    ledger.delete_template(template.id)
    assert ledger.expense_templates == ()
    assert reload().expense_templates == ()


def test_add_template_validation(ledger):
    with pytest.raises(ValidationError):
        ledger.add_template("Bills", 0)
    with pytest.raises(ValidationError):
        ledger.add_template("Rent", 100)
    assert ledger.expense_templates == ()


def test_delete_missing_template(ledger):
    with pytest.raises(NotFoundError, match="Template 42 not found"):
        ledger.delete_template(42)


def test_add_expense_from_template(ledger):
    template = ledger.add_template("Food", 120, note="Coffee beans")

    txn = ledger.add_expense_from_template(template.id)
    assert txn.category is Category.FOOD
    assert txn.amount == 120
    assert txn.note == "Coffee beans"

    override = ledger.add_expense_from_template(template.id, day=date(2024, 1, 2), amount=150)
    assert override.amount == 150
    assert override.date == date(2024, 1, 2)
    # Templates are not tied to the ledger totals
    assert ledger.expense_templates == (template,)


def test_get_month_missing(ledger):
    with pytest.raises(NotFoundError, match="Month 2023-12 not found"):
        ledger.get_month("2023-12")


def test_snapshot_is_isolated_from_later_mutations(ledger):
    ledger.set_income(1000)
    snapshot = ledger.snapshot()

    ledger.add_expense(100, "Food")
    ledger.set_income(2000)

    assert snapshot.active_month.income == 1000
    assert snapshot.active_month.transactions == ()
    with pytest.raises(TypeError):
        snapshot.months["2024-02"] = snapshot.active_month


def test_theme_defaults_and_toggles(ledger, reload):
    assert ledger.theme.value == "light"
    assert ledger.toggle_theme().value == "dark"
    assert reload().theme.value == "dark"
    assert ledger.set_theme("light").value == "light"
    with pytest.raises(ValidationError):
        ledger.set_theme("sepia")
