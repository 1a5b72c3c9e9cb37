import itertools
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from models import TransactionType
from rollups import (
    RollupStatus,
    aggregate,
    build_rollups,
    period_totals,
    reconcile,
)
from schemas import BudgetOut, TransactionOut


def _txn(category, amount, txn_type=TransactionType.expense, d=date(2025, 1, 10)):
    return SimpleNamespace(
        category=category, amount=Decimal(amount), type=txn_type, date=d
    )


def _budget(budget_id, category, amount):
    return SimpleNamespace(id=budget_id, category=category, amount=Decimal(amount))


def test_overspent_budget_reports_overage() -> None:
    budgets = [_budget(1, "food", "5000")]
    txns = [
        _txn("Food", "3000"),
        _txn("food", "2500"),
        _txn("food", "1000", TransactionType.income),
    ]

    [entry] = reconcile(budgets, aggregate(txns))

    assert entry.budgeted == Decimal("5000")
    assert entry.spent == Decimal("5500")
    assert entry.remaining == Decimal("0")
    assert entry.over_by == Decimal("500")
    assert entry.status == RollupStatus.over
    assert entry.percent_used == 100.0


def test_budget_without_matching_spend_is_untouched() -> None:
    budgets = [_budget(7, "Travel", "300")]
    txns = [_txn("food", "12.50")]

    [entry] = reconcile(budgets, aggregate(txns))

    assert entry.budget_id == 7
    assert entry.category == "travel"
    assert entry.display_category == "Travel"
    assert entry.spent == Decimal("0")
    assert entry.remaining == Decimal("300")
    assert entry.over_by == Decimal("0")
    assert entry.status == RollupStatus.under
    assert entry.percent_used == 0.0


def test_spending_exactly_the_budget_is_under() -> None:
    [entry] = reconcile([_budget(1, "rent", "950")], aggregate([_txn("Rent", "950")]))
    assert entry.status == RollupStatus.under
    assert entry.remaining == 0
    assert entry.over_by == 0
    assert entry.percent_used == 100.0


def test_category_matching_ignores_case_and_whitespace() -> None:
    txns = [
        _txn("Groceries", "10"),
        _txn(" groceries ", "20"),
        _txn("GROCERIES", "30"),
    ]
    assert aggregate(txns) == {"groceries": Decimal("60.00")}


def test_income_never_counts_as_spend() -> None:
    txns = [
        _txn("salary", "4000", TransactionType.income),
        _txn("food", "100", TransactionType.income),
    ]
    assert aggregate(txns) == {}

    [entry] = reconcile([_budget(1, "food", "50")], aggregate(txns))
    assert entry.spent == 0


def test_aggregate_is_order_independent_and_exact() -> None:
    txns = [
        _txn("coffee", "0.10"),
        _txn("coffee", "0.20"),
        _txn("Coffee", "0.70"),
        _txn("tea", "1.05"),
    ]
    results = [aggregate(list(p)) for p in itertools.permutations(txns)]
    assert all(r == results[0] for r in results)
    assert results[0]["coffee"] == Decimal("1.00")
    assert str(results[0]["tea"]) == "1.05"


def test_reconcile_preserves_budget_order_and_count() -> None:
    budgets = [
        _budget(3, "zoo", "10"),
        _budget(1, "apples", "10"),
        _budget(2, "mango", "10"),
    ]
    entries = reconcile(budgets, {"apples": Decimal("25")})
    assert [e.budget_id for e in entries] == [3, 1, 2]
    assert len(entries) == len(budgets)


def test_remaining_and_over_by_never_both_positive() -> None:
    spends = ["0", "5", "9.99", "10", "10.01", "250"]
    budgets = [_budget(i, "misc", "10") for i in range(len(spends))]
    for budget, spend in zip(budgets, spends):
        [entry] = reconcile([budget], {"misc": Decimal(spend)})
        assert entry.remaining >= 0
        assert entry.over_by >= 0
        assert entry.remaining * entry.over_by == 0
        assert entry.remaining - entry.over_by == entry.budgeted - entry.spent


def test_duplicate_budgets_reconcile_independently() -> None:
    budgets = [_budget(1, "food", "100"), _budget(2, " Food", "40")]
    entries = reconcile(budgets, aggregate([_txn("food", "60")]))

    assert [e.spent for e in entries] == [Decimal("60"), Decimal("60")]
    assert entries[0].status == RollupStatus.under
    assert entries[1].status == RollupStatus.over
    assert entries[1].over_by == Decimal("20")


def test_zero_budget_with_spend_is_fully_used() -> None:
    [entry] = reconcile([_budget(1, "gifts", "0")], {"gifts": Decimal("5")})
    assert entry.status == RollupStatus.over
    assert entry.percent_used == 100.0


def test_build_rollups_only_counts_selected_period() -> None:
    txns = [
        TransactionOut(
            id=1,
            description="Weekly shop",
            amount="42.10",
            type=TransactionType.expense,
            category="Groceries",
            date=date(2025, 3, 3),
        ),
        TransactionOut(
            id=2,
            description="February shop",
            amount="99.00",
            type=TransactionType.expense,
            category="groceries",
            date=date(2025, 2, 27),
        ),
        TransactionOut(
            id=3,
            description="Last year",
            amount="10.00",
            type=TransactionType.expense,
            category="groceries",
            date=date(2024, 3, 3),
        ),
    ]
    budgets = [
        BudgetOut(id=9, category="groceries", amount="100", month="march", year=2025)
    ]

    [entry] = build_rollups(budgets, txns, "March", 2025)

    assert entry.spent == Decimal("42.10")
    assert entry.remaining == Decimal("57.90")
    assert entry.percent_used == 42.1


def test_period_totals_balance_income_against_expenses() -> None:
    totals = period_totals(
        [
            _txn("salary", "3000", TransactionType.income),
            _txn("rent", "1200.50"),
            _txn("food", "300"),
        ]
    )
    assert totals.income == Decimal("3000")
    assert totals.expenses == Decimal("1500.50")
    assert totals.balance == Decimal("1499.50")


def test_period_totals_of_nothing_is_zero() -> None:
    totals = period_totals([])
    assert totals.income == totals.expenses == totals.balance == 0
