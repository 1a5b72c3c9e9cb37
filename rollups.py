"""Budget-versus-spend reconciliation.

Everything here is a pure function of its arguments: the pipeline is rerun
from scratch on every refresh and never raises for validated input.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping

from amounts import from_cents, to_cents
from categories import display_form, normalize
from models import TransactionType
from periods import select


class RollupStatus(str, Enum):
    under = "under"
    over = "over"


@dataclass(frozen=True)
class RollupEntry:
    budget_id: int
    category: str
    display_category: str
    budgeted: Decimal
    spent: Decimal
    remaining: Decimal
    over_by: Decimal
    status: RollupStatus

    @property
    def percent_used(self) -> float:
        if self.budgeted <= 0:
            return 100.0 if self.spent > 0 else 0.0
        return float(min(self.spent / self.budgeted * 100, Decimal(100)))


@dataclass(frozen=True)
class PeriodTotals:
    income: Decimal
    expenses: Decimal
    balance: Decimal


def aggregate(transactions: Iterable) -> dict[str, Decimal]:
    totals: dict[str, int] = {}
    for txn in transactions:
        if txn.type != TransactionType.expense:
            continue
        key = normalize(txn.category)
        totals[key] = totals.get(key, 0) + to_cents(txn.amount)
    return {key: from_cents(cents) for key, cents in totals.items()}


def reconcile(
    budgets: Iterable, spend_by_category: Mapping[str, Decimal]
) -> list[RollupEntry]:
    entries: list[RollupEntry] = []
    for budget in budgets:
        key = normalize(budget.category)
        budgeted = from_cents(to_cents(budget.amount))
        spent = spend_by_category.get(key, from_cents(0))
        entries.append(
            RollupEntry(
                budget_id=budget.id,
                category=key,
                display_category=display_form(budget.category),
                budgeted=budgeted,
                spent=spent,
                remaining=max(budgeted - spent, from_cents(0)),
                over_by=max(spent - budgeted, from_cents(0)),
                status=RollupStatus.over if spent > budgeted else RollupStatus.under,
            )
        )
    return entries


def build_rollups(
    budgets: Iterable, transactions: Iterable, month: str, year: int
) -> list[RollupEntry]:
    return reconcile(budgets, aggregate(select(transactions, month, year)))


def period_totals(transactions: Iterable) -> PeriodTotals:
    income = 0
    expenses = 0
    for txn in transactions:
        if txn.type == TransactionType.income:
            income += to_cents(txn.amount)
        elif txn.type == TransactionType.expense:
            expenses += to_cents(txn.amount)
    return PeriodTotals(
        income=from_cents(income),
        expenses=from_cents(expenses),
        balance=from_cents(income - expenses),
    )
