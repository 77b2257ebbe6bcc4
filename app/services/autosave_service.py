"""
Autosave Service
Per-field debounced persistence for an open document

Every edit updates the in-memory value at once and restarts that
field's quiescence timer. When the timer fires, exactly one persistence
call is made with the value current at that moment. Fields are
independent: a title flush and a content flush may overlap and finish
in any order.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from app.core.config import settings
from app.core.logging import logger

PersistFn = Callable[[str, Dict[str, Any]], Awaitable[Any]]
StatusFn = Callable[[Dict[str, Any]], Awaitable[None]]

AUTOSAVE_FIELDS = ("content", "title", "category", "is_public")


def default_delays() -> Dict[str, float]:
    """Quiescence windows in seconds; visibility toggles flush at once."""
    return {
        "content": settings.AUTOSAVE_CONTENT_DELAY_MS / 1000,
        "title": settings.AUTOSAVE_TITLE_DELAY_MS / 1000,
        "category": settings.AUTOSAVE_CATEGORY_DELAY_MS / 1000,
        "is_public": 0.0,
    }


class AutosaveCoordinator:
    """
    Debounces edits per field and flushes them through `persist`.

    Failure policy: a failed flush is logged and reported through
    `on_status`; the local value is kept and nothing is retried until
    the next edit of that field.
    """

    def __init__(
        self,
        persist: PersistFn,
        document_id: Optional[str] = None,
        delays: Optional[Dict[str, float]] = None,
        scheduler: Any = None,
        on_status: Optional[StatusFn] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Args:
            persist: Awaitable called as persist(document_id, {field: value})
            document_id: Resolved document id, or None while loading
            delays: Per-field windows in seconds
            scheduler: Object with call_later(delay, callback) returning a
                cancellable handle; defaults to the running event loop
            on_status: Optional async callback receiving status events
            clock: Source of "last saved" timestamps
        """
        self.persist = persist
        self.document_id = document_id
        self.delays = {**default_delays(), **(delays or {})}
        self._scheduler = scheduler
        self.on_status = on_status
        self.clock = clock

        self.values: Dict[str, Any] = {}
        self.last_saved_at: Optional[datetime] = None
        self._timers: Dict[str, Any] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight = 0
        self._closed = False

    @property
    def scheduler(self):
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        return self._scheduler

    @property
    def is_saving(self) -> bool:
        return self._in_flight > 0

    def resolve(self, document_id: str, initial: Optional[Dict[str, Any]] = None) -> None:
        """
        Bind the coordinator to a loaded document.

        Args:
            document_id: Document id
            initial: Field values as loaded
        """
        self.document_id = document_id
        if initial:
            self.values.update({k: v for k, v in initial.items() if k in AUTOSAVE_FIELDS})

    def pending_fields(self):
        return sorted(self._timers)

    def edit(self, field: str, value: Any) -> None:
        """
        Record an edit and (re)schedule that field's flush.

        Args:
            field: One of content/title/category/is_public
            value: New value

        Raises:
            ValueError: Unknown field
            RuntimeError: Coordinator closed
        """
        if field not in AUTOSAVE_FIELDS:
            raise ValueError(f"Unknown autosave field: {field}")
        if self._closed:
            raise RuntimeError("Autosave coordinator is closed")

        self.values[field] = value
        self._cancel_timer(field)

        delay = self.delays.get(field, 0.0)
        if delay <= 0:
            self._start_flush(field)
        else:
            self._timers[field] = self.scheduler.call_later(delay, self._on_timer, field)

    def _cancel_timer(self, field: str) -> None:
        handle = self._timers.pop(field, None)
        if handle is not None:
            handle.cancel()

    def _on_timer(self, field: str) -> None:
        self._timers.pop(field, None)
        self._start_flush(field)

    def _start_flush(self, field: str) -> None:
        task = asyncio.ensure_future(self.flush(field))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self, field: str) -> bool:
        """
        Persist the current value of one field.

        Skipped entirely while the document id is unresolved.

        Returns:
            True when the persistence call succeeded
        """
        if not self.document_id:
            logger.debug(f"[AUTOSAVE] Skipping {field} flush, document not resolved")
            return False

        value = self.values.get(field)
        self._in_flight += 1
        await self._emit({"type": "status", "state": "saving", "field": field})

        try:
            await self.persist(self.document_id, {field: value})
        except Exception as e:
            logger.warning(
                f"[AUTOSAVE] Failed to save {field}: {e}",
                extra={"document_id": self.document_id, "field": field},
            )
            self._in_flight -= 1
            await self._emit({"type": "status", "state": "error", "field": field, "detail": str(e)})
            return False

        self._in_flight -= 1
        self.last_saved_at = self.clock()
        await self._emit({
            "type": "status",
            "state": "saved",
            "field": field,
            "saved_at": self.last_saved_at.isoformat(),
        })
        return True

    async def _emit(self, event: Dict[str, Any]) -> None:
        if self.on_status is None:
            return
        event["saving"] = self.is_saving
        try:
            await self.on_status(event)
        except Exception as e:
            logger.debug(f"[AUTOSAVE] Status listener failed: {e}")

    def status(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "saving": self.is_saving,
            "pending": self.pending_fields(),
            "last_saved_at": self.last_saved_at.isoformat() if self.last_saved_at else None,
        }

    async def wait_idle(self) -> None:
        """Wait for flushes already in flight (timers are not awaited)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """
        Cancel pending timers, as when the editing surface unmounts.

        In-flight persistence calls are left to finish.
        """
        self._closed = True
        for field in list(self._timers):
            self._cancel_timer(field)
