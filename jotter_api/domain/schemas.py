from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from jotter_api.domain.entities import (
    NoteItem,
    NotePage,
    NotesList,
    NotesListEntry,
    ProviderState,
    TaskNote,
    TextNote,
)


class NoteItemDoc(BaseModel):
    kind: Literal["text", "task"] = "text"
    text: str = ""
    external_task_id: Optional[str] = None

    @classmethod
    def from_item(cls, item: NoteItem) -> "NoteItemDoc":
        if isinstance(item, TaskNote):
            return cls(kind="task", text=item.text, external_task_id=item.external_task_id)
        return cls(kind="text", text=item.text)

    def to_item(self) -> NoteItem:
        if self.kind == "task":
            return TaskNote(text=self.text, external_task_id=self.external_task_id)
        return TextNote(text=self.text)


class NotePageDoc(BaseModel):
    id: str
    title: str = ""
    items: list[NoteItemDoc] = Field(default_factory=list)

    @classmethod
    def from_page(cls, page: NotePage) -> "NotePageDoc":
        return cls(id=page.id, title=page.title, items=[NoteItemDoc.from_item(i) for i in page.items])

    def to_page(self) -> NotePage:
        return NotePage(id=self.id, title=self.title, items=[i.to_item() for i in self.items])


class NotesListEntryDoc(BaseModel):
    page_id: str
    page_title: str = ""


class NotesListDoc(BaseModel):
    items: list[NotesListEntryDoc] = Field(default_factory=list)

    @classmethod
    def from_list(cls, notes_list: NotesList) -> "NotesListDoc":
        return cls(
            items=[NotesListEntryDoc(page_id=e.page_id, page_title=e.page_title) for e in notes_list.items]
        )

    def to_list(self) -> NotesList:
        return NotesList(items=[NotesListEntry(page_id=e.page_id, page_title=e.page_title) for e in self.items])


class SessionOut(BaseModel):
    notes_list: NotesListDoc = Field(default_factory=NotesListDoc)
    selected_index: int = -1
    active_page: Optional[NotePageDoc] = None
    last_sync: Optional[str] = None
    signed_in: bool = False


class SelectionIn(BaseModel):
    index: int = Field(ge=-1)


class TitleIn(BaseModel):
    title: str


class ItemTextIn(BaseModel):
    text: str


class AuthStateIn(BaseModel):
    state: ProviderState


class SaveOut(BaseModel):
    saved: bool
    last_sync: Optional[str] = None
