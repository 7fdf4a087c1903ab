from __future__ import annotations

from jotter_api.auth import AuthProvider
from jotter_api.domain.entities import NotePage, NotesList, NotesListEntry
from jotter_api.domain.ports import StorageGateway


class ProviderAwareStorage:
    """Local data while signed out, roaming data while signed in."""

    def __init__(self, local: StorageGateway, roaming: StorageGateway, provider: AuthProvider) -> None:
        self.local = local
        self.roaming = roaming
        self.provider = provider

    @property
    def active(self) -> StorageGateway:
        return self.roaming if self.provider.is_signed_in else self.local

    async def get_notes_list(self) -> NotesList:
        return await self.active.get_notes_list()

    async def get_note_page(self, entry: NotesListEntry) -> NotePage:
        return await self.active.get_note_page(entry)

    async def get_current_note_page(self, notes_list: NotesList) -> NotePage | None:
        return await self.active.get_current_note_page(notes_list)

    async def save_current_note_page(self, page: NotePage) -> None:
        await self.active.save_current_note_page(page)

    async def save_notes_list(self, notes_list: NotesList) -> None:
        await self.active.save_notes_list(notes_list)
