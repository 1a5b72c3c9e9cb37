"""Per-record edit and delete lifecycle.

One ``MutationSession`` exists per targeted record. The state, not the
caller, decides which action is valid next:

    idle -> pending_delete -> idle
    idle -> editing -> saving -> idle      (save succeeded)
                       saving -> editing   (save failed, staged data kept)

The session suspends only while ``confirm_delete`` or ``save_edit`` awaits
the store; every other call made during that window is rejected.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Union

from pydantic import BaseModel

from errors import InvalidRecord, RecordError, RecordNotFound, StoreUnavailable

if TYPE_CHECKING:  # pragma: no cover
    from board import WorkingSet
    from store import RecordStore

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    transaction = "transaction"
    budget = "budget"


class SessionState(str, Enum):
    idle = "idle"
    pending_delete = "pending_delete"
    editing = "editing"
    saving = "saving"


class TransitionRejected(RuntimeError):
    pass


class MutationSession:
    def __init__(
        self,
        kind: RecordKind,
        record_id: int,
        store: "RecordStore",
        working_set: "WorkingSet",
        on_removed: Optional[Callable[["MutationSession"], None]] = None,
    ) -> None:
        self.kind = kind
        self.record_id = record_id
        self.store = store
        self.working_set = working_set
        self.on_removed = on_removed
        self.last_error: Optional[RecordError] = None
        self._state = SessionState.idle
        self._staged: Optional[dict[str, Any]] = None
        self._in_flight = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def staged(self) -> Optional[dict[str, Any]]:
        return self._staged

    @property
    def busy(self) -> bool:
        return self._in_flight

    # delete flow

    def request_delete(self) -> None:
        self._expect(SessionState.idle, "request_delete")
        self._transition(SessionState.pending_delete)

    def cancel_delete(self) -> None:
        self._expect(SessionState.pending_delete, "cancel_delete")
        self._transition(SessionState.idle)

    async def confirm_delete(self) -> None:
        self._expect(SessionState.pending_delete, "confirm_delete")
        self._in_flight = True
        try:
            await self._store_call("delete")(self.record_id)
        except RecordNotFound as exc:
            self._in_flight = False
            self.last_error = exc
            self.working_set.remove(self.kind, self.record_id)
            self._transition(SessionState.idle)
            self._removed()
            await self._refresh_after(exc)
            raise
        except RecordError as exc:
            self.last_error = exc
            raise
        finally:
            self._in_flight = False

        self.last_error = None
        self.working_set.remove(self.kind, self.record_id)
        self._transition(SessionState.idle)
        self._removed()

    # edit flow

    def begin_edit(self, record: Union[BaseModel, Mapping[str, Any]]) -> None:
        self._expect(SessionState.idle, "begin_edit")
        if isinstance(record, BaseModel):
            data = record.model_dump()
        else:
            data = dict(record)
        record_id = data.pop("id", self.record_id)
        if record_id != self.record_id:
            raise InvalidRecord(
                f"{self.kind.value} {record_id} does not belong to this session"
            )
        self._staged = data
        self._transition(SessionState.editing)

    def update_field(self, key: str, value: Any) -> None:
        self._expect(SessionState.editing, "update_field")
        if key not in self._staged:
            raise InvalidRecord(f"Unknown {self.kind.value} field: {key}")
        self._staged[key] = value

    def cancel_edit(self) -> None:
        self._expect(SessionState.editing, "cancel_edit")
        self._staged = None
        self._transition(SessionState.idle)

    async def save_edit(self) -> None:
        self._expect(SessionState.editing, "save_edit")
        self._transition(SessionState.saving)
        self._in_flight = True
        try:
            update = self._store_call("update")
            saved = await update(self.record_id, dict(self._staged))
        except RecordNotFound as exc:
            self._in_flight = False
            self.last_error = exc
            self._transition(SessionState.editing)
            await self._refresh_after(exc)
            raise
        except RecordError as exc:
            self.last_error = exc
            self._transition(SessionState.editing)
            raise
        except Exception:
            self._transition(SessionState.editing)
            raise
        finally:
            self._in_flight = False

        self.last_error = None
        self.working_set.replace(self.kind, saved)
        self._staged = None
        self._transition(SessionState.idle)

    # helpers

    def _expect(self, state: SessionState, action: str) -> None:
        if self._in_flight:
            raise TransitionRejected(
                f"{action}: {self.kind.value} {self.record_id} has a call in flight"
            )
        if self._state != state:
            raise TransitionRejected(
                f"{action}: {self.kind.value} {self.record_id} is {self._state.value}"
            )

    def _transition(self, new_state: SessionState) -> None:
        logger.info(
            f"mutation: kind={self.kind.value} id={self.record_id} "
            f"{self._state.value}->{new_state.value}"
        )
        self._state = new_state

    def _removed(self) -> None:
        if self.on_removed is not None:
            self.on_removed(self)

    def _store_call(self, action: str) -> Callable[..., Awaitable[Any]]:
        return getattr(self.store, f"{action}_{self.kind.value}")

    async def _refresh_after(self, exc: RecordNotFound) -> None:
        logger.info(
            f"mutation_refresh: kind={self.kind.value} id={self.record_id} "
            f"reason={exc}"
        )
        try:
            await self.working_set.refresh(self.store)
        except StoreUnavailable as refresh_exc:
            logger.warning(f"mutation_refresh_failed: error={refresh_exc}")
