from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from jotter_api.domain.exceptions import StorageError
from jotter_api.domain.ports import StorageGateway
from jotter_api.domain.state import SessionState
from jotter_api.util import utc_now

logger = logging.getLogger("jotter.autosave")

DEFAULT_INTERVAL_S = 10.0


class AutosaveScheduler:
    """
    Persists the active page and the notes list, on demand and on a timer.

    Every tick saves; there is no change detection. When ``lock`` is given,
    ``save()`` waits on it, which lets the owner serialize saves with loads.
    """

    def __init__(
        self,
        state: SessionState,
        storage: StorageGateway,
        *,
        interval_s: float = DEFAULT_INTERVAL_S,
        lock: asyncio.Lock | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.state = state
        self.storage = storage
        self.interval_s = interval_s
        self._lock = lock
        self._clock = clock
        self._timer: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def save(self) -> bool:
        if self._lock is None:
            return await self.persist()
        async with self._lock:
            return await self.persist()

    async def persist(self) -> bool:
        """Save without taking the lock. Returns whether anything was written."""
        page = self.state.active_page
        if page is None or page.is_empty:
            return False

        notes_list = self.state.notes_list
        if notes_list is None:
            logger.warning("save_without_notes_list", extra={"page_id": page.id})
            return False

        entry = notes_list.find(page.id)
        if entry is None:
            logger.warning("active_page_not_listed", extra={"page_id": page.id, "step": "save"})
        else:
            entry.page_title = page.title

        try:
            await self.storage.save_current_note_page(page)
            await self.storage.save_notes_list(notes_list)
        except StorageError:
            logger.warning("save_failed", extra={"page_id": page.id}, exc_info=True)
            return False

        self.state.last_sync = self._clock()
        logger.debug("saved", extra={"page_id": page.id, "entries": len(notes_list.items)})
        return True

    def arm(self) -> None:
        if self.is_running:
            return
        self._timer = asyncio.get_running_loop().create_task(self._run(), name="autosave")
        logger.info("autosave_armed", extra={"interval_s": self.interval_s})

    async def stop(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.save()
            except Exception:
                # Keep ticking; the next tick retries.
                logger.exception("autosave_tick_error")
