from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import Union

NEW_PAGE_TITLE = "New note"


@dataclass
class TextNote:
    text: str = ""


@dataclass
class TaskNote:
    text: str = ""
    external_task_id: str | None = None


NoteItem = Union[TextNote, TaskNote]


def _new_page_id() -> str:
    return str(uuid.uuid4())


@dataclass
class NotePage:
    id: str = field(default_factory=_new_page_id)
    title: str = ""
    items: list[NoteItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        # A page holding nothing but the blank starter item is disposable.
        if self.title.strip():
            return False
        if not self.items:
            return True
        if len(self.items) == 1:
            only = self.items[0]
            return isinstance(only, TextNote) and not only.text.strip()
        return False


@dataclass
class NotesListEntry:
    page_id: str
    page_title: str = ""


@dataclass
class NotesList:
    items: list[NotesListEntry] = field(default_factory=list)

    def find(self, page_id: str) -> NotesListEntry | None:
        for entry in self.items:
            if entry.page_id == page_id:
                return entry
        return None

    def index_of_page(self, page_id: str) -> int:
        for i, entry in enumerate(self.items):
            if entry.page_id == page_id:
                return i
        return -1


class ProviderState(str, enum.Enum):
    SIGNED_OUT = "signed_out"
    LOADING = "loading"
    SIGNED_IN = "signed_in"


@dataclass(frozen=True)
class KeywordDetected:
    source: NoteItem
    keyword: str
    pre_text: str
    post_text: str
