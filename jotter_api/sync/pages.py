from __future__ import annotations

import asyncio
import logging
from typing import Coroutine

from jotter_api.domain.entities import (
    NEW_PAGE_TITLE,
    KeywordDetected,
    NotePage,
    NotesList,
    NotesListEntry,
    ProviderState,
    TaskNote,
    TextNote,
)
from jotter_api.domain.exceptions import ItemIndexError, NotATaskError, TaskServiceError
from jotter_api.domain.ports import StorageGateway, TaskService
from jotter_api.domain.state import SessionState
from jotter_api.editing.keywords import KeywordDetector
from jotter_api.editing.segmenter import TODO_KEYWORD, remove_task, split_on_keyword
from jotter_api.util import index_of

from .autosave import AutosaveScheduler
from .policy import best_effort

logger = logging.getLogger("jotter.sync")


class PageListSync:
    """
    Keeps the notes list, the selected index and the active page consistent.

    Selecting an index loads that entry's page; replacing the active page
    moves the selection to its entry. Both reactions only fire when the two
    disagree, which is what stops them from re-triggering each other.
    """

    def __init__(
        self,
        state: SessionState,
        storage: StorageGateway,
        autosave: AutosaveScheduler,
        tasks: TaskService,
        *,
        detector: KeywordDetector | None = None,
        load_lock: asyncio.Lock | None = None,
    ) -> None:
        self.state = state
        self.storage = storage
        self.autosave = autosave
        self.tasks = tasks
        self.detector = detector or KeywordDetector()
        self.load_lock = load_lock or asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        state.subscribe(self._on_state_changed)

    # -- reactive synchronization -------------------------------------------

    def _on_state_changed(self, name: str) -> None:
        if name == "selected_index":
            self._reconcile_page_to_index()
        elif name == "active_page":
            self._reconcile_index_to_page()

    def _entry_at(self, index: int) -> NotesListEntry | None:
        notes_list = self.state.notes_list
        if notes_list is None or not 0 <= index < len(notes_list.items):
            return None
        return notes_list.items[index]

    def _reconcile_page_to_index(self) -> None:
        index = self.state.selected_index
        if index == -1:
            return
        entry = self._entry_at(index)
        if entry is None:
            logger.warning("selected_index_out_of_range", extra={"index": index})
            return
        page = self.state.active_page
        if page is not None and entry.page_id == page.id:
            return
        self._spawn(self._load_selected_page(entry))

    async def _load_selected_page(self, entry: NotesListEntry) -> None:
        try:
            page = await best_effort("get_note_page", self.storage.get_note_page(entry))
        except Exception:
            logger.exception("page_fetch_error", extra={"page_id": entry.page_id})
            return
        if page is None:
            return
        if self._entry_at(self.state.selected_index) is not entry:
            logger.debug("stale_page_fetch", extra={"page_id": entry.page_id})
            return
        self.state.active_page = page

    def _reconcile_index_to_page(self) -> None:
        notes_list = self.state.notes_list
        page = self.state.active_page
        if notes_list is None or not notes_list.items or page is None:
            return
        current = self._entry_at(self.state.selected_index)
        if current is not None and current.page_id == page.id:
            return
        found = notes_list.index_of_page(page.id)
        if found != -1:
            self.state.selected_index = found

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def settle(self) -> None:
        """Wait for reactive page fetches and task deletions in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # -- load / create / delete ----------------------------------------------

    async def load(self) -> None:
        async with self.load_lock:
            await self._load()

    async def _load(self) -> None:
        state = self.state
        logger.info("load_start", extra={"signed_in": state.is_signed_in})

        if state.active_page is not None:
            if state.active_page.is_empty:
                state.active_page = None
            else:
                # Carry unsaved work across a local/roaming switch.
                await best_effort("save_current_note_page", self.storage.save_current_note_page(state.active_page))

        notes_list = await best_effort("get_notes_list", self.storage.get_notes_list())
        if notes_list is not None:
            state.notes_list = notes_list

        if state.notes_list is None:
            state.notes_list = NotesList()

        if state.notes_list.items and state.active_page is None:
            page = await best_effort("get_current_note_page", self.storage.get_current_note_page(state.notes_list))
            if page is None:
                page = await best_effort("get_note_page", self.storage.get_note_page(state.notes_list.items[0]))
            if page is not None:
                state.active_page = page

        if state.active_page is not None:
            self._select_active_page()
            await self.autosave.persist()
        else:
            self.create_new_page()

        self.autosave.arm()
        logger.info(
            "load_done",
            extra={"entries": len(state.notes_list.items), "index": state.selected_index},
        )

    def _select_active_page(self) -> None:
        state = self.state
        notes_list = state.notes_list
        page = state.active_page
        found = notes_list.index_of_page(page.id)
        if found == -1:
            logger.warning("active_page_not_listed", extra={"page_id": page.id, "step": "load"})
            notes_list.items.insert(0, NotesListEntry(page_id=page.id, page_title=page.title))
            found = 0
        state.selected_index = found

    def create_new_page(self) -> NotePage:
        page = NotePage(title=NEW_PAGE_TITLE, items=[TextNote()])
        if self.state.notes_list is None:
            self.state.notes_list = NotesList()
        self.state.notes_list.items.insert(0, NotesListEntry(page_id=page.id, page_title=page.title))
        self.state.active_page = page
        self.state.selected_index = 0
        logger.info("page_created", extra={"page_id": page.id})
        return page

    async def delete_current_page(self) -> None:
        state = self.state
        index = state.selected_index
        if self._entry_at(index) is None:
            logger.warning("delete_without_selection", extra={"index": index})
            return

        # Soft delete: the page file stays, only its list entry goes.
        removed = state.notes_list.items.pop(index)
        logger.info("page_unlisted", extra={"page_id": removed.page_id, "index": index})

        if not state.notes_list.items:
            self.create_new_page()
        else:
            new_index = max(0, index - 1)
            if new_index == state.selected_index:
                self._reconcile_page_to_index()
            else:
                state.selected_index = new_index

        await self.settle()
        await self.autosave.save()

    # -- page editing --------------------------------------------------------

    def _require_page(self) -> NotePage:
        page = self.state.active_page
        if page is None:
            raise ItemIndexError("no_active_page")
        return page

    def rename_page(self, title: str) -> None:
        self._require_page().title = title

    def edit_item(self, index: int, text: str) -> KeywordDetected | None:
        page = self._require_page()
        if not 0 <= index < len(page.items):
            raise ItemIndexError("item_index_out_of_range")
        item = page.items[index]
        item.text = text
        if isinstance(item, TaskNote):
            return None
        event = self.detector.detect(item)
        if event is not None:
            self.on_keyword_detected(event)
        return event

    def on_keyword_detected(self, event: KeywordDetected) -> TaskNote | None:
        if event.keyword != TODO_KEYWORD:
            logger.debug("keyword_ignored", extra={"keyword": event.keyword})
            return None
        page = self.state.active_page
        if page is None:
            logger.warning("keyword_without_page")
            return None
        index = index_of(page.items, event.source)
        if index == -1:
            logger.warning("keyword_source_missing", extra={"page_id": page.id})
            return None
        return split_on_keyword(page.items, index, event.pre_text, event.post_text)

    def delete_task(self, index: int) -> TaskNote:
        page = self._require_page()
        if not 0 <= index < len(page.items):
            raise ItemIndexError("item_index_out_of_range")
        if not isinstance(page.items[index], TaskNote):
            raise NotATaskError("item_not_a_task")
        task = remove_task(page.items, index)
        self._spawn(self._delete_external_task(task))
        return task

    async def _delete_external_task(self, task: TaskNote) -> None:
        try:
            await self.tasks.delete_task(task)
        except TaskServiceError:
            logger.warning("task_delete_failed", extra={"task_id": task.external_task_id}, exc_info=True)
        except Exception:
            logger.exception("task_delete_error", extra={"task_id": task.external_task_id})

    # -- sign-in -------------------------------------------------------------

    async def on_provider_state_changed(self, provider_state: ProviderState) -> None:
        self.state.is_signed_in = provider_state == ProviderState.SIGNED_IN
        if provider_state != ProviderState.LOADING:
            await self.load()
