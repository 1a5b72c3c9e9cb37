from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel

from errors import RecordNotFound
from mutations import MutationSession, RecordKind, SessionState
from periods import Period, current_period, select
from rollups import PeriodTotals, RollupEntry, build_rollups, period_totals
from schemas import BudgetOut, TransactionOut
from store import RecordStore

logger = logging.getLogger(__name__)

Record = Union[TransactionOut, BudgetOut]


class WorkingSet:
    """Transactions and budgets currently loaded for one period.

    Only refreshes and completed mutation sessions change it; the rollup
    pipeline reads it without mutating anything.
    """

    def __init__(self, period: Period) -> None:
        self.period = period
        self.transactions: list[TransactionOut] = []
        self.budgets: list[BudgetOut] = []

    def records(self, kind: RecordKind) -> list[Record]:
        if kind == RecordKind.transaction:
            return self.transactions
        return self.budgets

    def find(self, kind: RecordKind, record_id: int) -> Optional[Record]:
        for record in self.records(kind):
            if record.id == record_id:
                return record
        return None

    def replace(self, kind: RecordKind, record: Record) -> None:
        records = self.records(kind)
        # a budget moved to another month leaves this period's set
        keep = kind == RecordKind.transaction or (
            record.month == self.period.month and record.year == self.period.year
        )
        for idx, existing in enumerate(records):
            if existing.id == record.id:
                if keep:
                    records[idx] = record
                else:
                    del records[idx]
                return
        if keep:
            records.append(record)

    def remove(self, kind: RecordKind, record_id: int) -> None:
        records = self.records(kind)
        records[:] = [r for r in records if r.id != record_id]

    async def refresh(self, store: RecordStore) -> None:
        transactions = await store.list_transactions()
        budgets = await store.list_budgets(self.period.month, self.period.year)
        self.transactions = list(transactions)
        self.budgets = list(budgets)
        logger.info(
            f"working_set_refresh: period={self.period.month}-{self.period.year} "
            f"transactions={len(self.transactions)} budgets={len(self.budgets)}"
        )


class BudgetBoard:
    def __init__(self, store: RecordStore, period: Optional[Period] = None) -> None:
        self.store = store
        self.working_set = WorkingSet(period or current_period())
        self._sessions: dict[tuple[RecordKind, int], MutationSession] = {}

    @property
    def period(self) -> Period:
        return self.working_set.period

    async def refresh(self) -> None:
        await self.working_set.refresh(self.store)
        self._drop_stale_sessions()

    def rollups(self) -> list[RollupEntry]:
        return build_rollups(
            self.working_set.budgets,
            self.working_set.transactions,
            self.period.month,
            self.period.year,
        )

    def totals(self) -> PeriodTotals:
        return period_totals(
            select(self.working_set.transactions, self.period.month, self.period.year)
        )

    def session(self, kind: RecordKind, record_id: int) -> MutationSession:
        key = (kind, record_id)
        session = self._sessions.get(key)
        if session is None:
            session = MutationSession(
                kind, record_id, self.store, self.working_set, self._forget
            )
            self._sessions[key] = session
        return session

    def request_delete(self, kind: RecordKind, record_id: int) -> MutationSession:
        self._require(kind, record_id)
        session = self.session(kind, record_id)
        session.request_delete()
        return session

    def begin_edit(self, kind: RecordKind, record_id: int) -> MutationSession:
        record = self._require(kind, record_id)
        session = self.session(kind, record_id)
        session.begin_edit(record)
        return session

    async def add_transaction(
        self, data: Union[BaseModel, Mapping[str, Any]]
    ) -> TransactionOut:
        created = await self.store.create_transaction(data)
        await self.refresh()
        return created

    async def add_budget(self, data: Union[BaseModel, Mapping[str, Any]]) -> BudgetOut:
        payload = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        payload["month"] = self.period.month
        payload["year"] = self.period.year
        created = await self.store.create_budget(payload)
        await self.refresh()
        return created

    def _require(self, kind: RecordKind, record_id: int) -> Record:
        record = self.working_set.find(kind, record_id)
        if record is None:
            raise RecordNotFound(f"{kind.value.capitalize()} not found")
        return record

    def _forget(self, session: MutationSession) -> None:
        key = (session.kind, session.record_id)
        if self._sessions.get(key) is session:
            del self._sessions[key]

    def _drop_stale_sessions(self) -> None:
        for key, session in list(self._sessions.items()):
            kind, record_id = key
            if session.state == SessionState.idle and not session.busy:
                if self.working_set.find(kind, record_id) is None:
                    del self._sessions[key]
