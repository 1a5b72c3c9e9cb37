"""Async record-access boundary consumed by the board and its sessions."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Protocol, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from database import SessionLocal, session_scope
from errors import InvalidRecord, StoreUnavailable
from periods import Period
from schemas import BudgetIn, BudgetOut, TransactionIn, TransactionOut
from services import BudgetService, TransactionService

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")

RecordData = Union[Mapping[str, Any], BaseModel]


class RecordStore(Protocol):
    async def list_transactions(self) -> list[TransactionOut]: ...

    async def list_budgets(self, month: str, year: int) -> list[BudgetOut]: ...

    async def create_transaction(self, data: RecordData) -> TransactionOut: ...

    async def update_transaction(
        self, transaction_id: int, data: RecordData
    ) -> TransactionOut: ...

    async def delete_transaction(self, transaction_id: int) -> None: ...

    async def create_budget(self, data: RecordData) -> BudgetOut: ...

    async def update_budget(self, budget_id: int, data: RecordData) -> BudgetOut: ...

    async def delete_budget(self, budget_id: int) -> None: ...


def validate_input(model: type[M], data: RecordData) -> M:
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidRecord(str(exc)) from exc


class DatabaseStore:
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self.session_factory = session_factory or SessionLocal

    async def _run(self, fn: Callable[..., R], *args: Any) -> R:
        try:
            return await run_in_threadpool(fn, *args)
        except SQLAlchemyError as exc:
            logger.warning(f"store_error: op={fn.__name__} error={exc}")
            raise StoreUnavailable("Record store unavailable") from exc

    async def list_transactions(self) -> list[TransactionOut]:
        return await self._run(self._list_transactions)

    async def list_budgets(self, month: str, year: int) -> list[BudgetOut]:
        try:
            period = Period(month, year)
        except ValueError as exc:
            raise InvalidRecord(str(exc)) from exc
        return await self._run(self._list_budgets, period)

    async def create_transaction(self, data: RecordData) -> TransactionOut:
        payload = validate_input(TransactionIn, data)
        return await self._run(self._create_transaction, payload)

    async def update_transaction(
        self, transaction_id: int, data: RecordData
    ) -> TransactionOut:
        payload = validate_input(TransactionIn, data)
        return await self._run(self._update_transaction, transaction_id, payload)

    async def delete_transaction(self, transaction_id: int) -> None:
        await self._run(self._delete_transaction, transaction_id)

    async def create_budget(self, data: RecordData) -> BudgetOut:
        payload = validate_input(BudgetIn, data)
        return await self._run(self._create_budget, payload)

    async def update_budget(self, budget_id: int, data: RecordData) -> BudgetOut:
        payload = validate_input(BudgetIn, data)
        return await self._run(self._update_budget, budget_id, payload)

    async def delete_budget(self, budget_id: int) -> None:
        await self._run(self._delete_budget, budget_id)

    # synchronous halves, executed in the threadpool

    def _list_transactions(self) -> list[TransactionOut]:
        with session_scope(self.session_factory) as session:
            return [
                TransactionOut.model_validate(txn)
                for txn in TransactionService(session).list_all()
            ]

    def _list_budgets(self, period: Period) -> list[BudgetOut]:
        with session_scope(self.session_factory) as session:
            return [
                BudgetOut.model_validate(budget)
                for budget in BudgetService(session).list_for_period(period)
            ]

    def _create_transaction(self, payload: TransactionIn) -> TransactionOut:
        with session_scope(self.session_factory) as session:
            txn = TransactionService(session).create(payload)
            return TransactionOut.model_validate(txn)

    def _update_transaction(
        self, transaction_id: int, payload: TransactionIn
    ) -> TransactionOut:
        with session_scope(self.session_factory) as session:
            txn = TransactionService(session).update(transaction_id, payload)
            return TransactionOut.model_validate(txn)

    def _delete_transaction(self, transaction_id: int) -> None:
        with session_scope(self.session_factory) as session:
            TransactionService(session).delete(transaction_id)

    def _create_budget(self, payload: BudgetIn) -> BudgetOut:
        with session_scope(self.session_factory) as session:
            budget = BudgetService(session).create(payload)
            return BudgetOut.model_validate(budget)

    def _update_budget(self, budget_id: int, payload: BudgetIn) -> BudgetOut:
        with session_scope(self.session_factory) as session:
            budget = BudgetService(session).update(budget_id, payload)
            return BudgetOut.model_validate(budget)

    def _delete_budget(self, budget_id: int) -> None:
        with session_scope(self.session_factory) as session:
            BudgetService(session).delete(budget_id)
