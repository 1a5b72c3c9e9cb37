from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from amounts import to_cents
from errors import RecordNotFound
from models import Budget, Transaction
from periods import Period
from schemas import BudgetIn, TransactionIn


class TransactionService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Transaction]:
        stmt = select(Transaction).order_by(
            Transaction.date.desc(), Transaction.id.desc()
        )
        return self.session.scalars(stmt).all()

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn:
            raise RecordNotFound("Transaction not found")
        return txn

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            description=data.description,
            amount_cents=to_cents(data.amount),
            type=data.type,
            category=data.category,
            date=data.date,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def update(self, transaction_id: int, data: TransactionIn) -> Transaction:
        txn = self.get(transaction_id)
        txn.description = data.description
        txn.amount_cents = to_cents(data.amount)
        txn.type = data.type
        txn.category = data.category
        txn.date = data.date
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()


class BudgetService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_period(self, period: Period) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.month == period.month, Budget.year == period.year)
            .order_by(Budget.id.asc())
        )
        return self.session.scalars(stmt).all()

    def get(self, budget_id: int) -> Budget:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise RecordNotFound("Budget not found")
        return budget

    def create(self, data: BudgetIn) -> Budget:
        budget = Budget(
            category=data.category,
            amount_cents=to_cents(data.amount),
            month=data.month,
            year=data.year,
        )
        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def update(self, budget_id: int, data: BudgetIn) -> Budget:
        budget = self.get(budget_id)
        budget.category = data.category
        budget.amount_cents = to_cents(data.amount)
        budget.month = data.month
        budget.year = data.year
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self.get(budget_id)
        self.session.delete(budget)
        self.session.commit()
