from __future__ import annotations

from typing import Protocol, runtime_checkable

from jotter_api.domain.entities import NotePage, NotesList, NotesListEntry, TaskNote


@runtime_checkable
class StorageGateway(Protocol):
    async def get_notes_list(self) -> NotesList:
        ...

    async def get_note_page(self, entry: NotesListEntry) -> NotePage:
        ...

    async def get_current_note_page(self, notes_list: NotesList) -> NotePage | None:
        ...

    async def save_current_note_page(self, page: NotePage) -> None:
        ...

    async def save_notes_list(self, notes_list: NotesList) -> None:
        ...


@runtime_checkable
class TaskService(Protocol):
    def enabled(self) -> bool:
        ...

    async def delete_task(self, task: TaskNote) -> None:
        ...
