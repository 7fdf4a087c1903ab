from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from jotter_api.domain.entities import NotePage, NotesList, NotesListEntry
from jotter_api.domain.exceptions import NotFoundError, StorageError
from jotter_api.domain.schemas import NotePageDoc, NotesListDoc
from jotter_api.util import atomic_write_json, atomic_write_text

from .markdown import parse_frontmatter, render_page_markdown

logger = logging.getLogger("jotter.storage")

_PAGE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def page_filename(page_id: str) -> str:
    if not _PAGE_ID_RE.match(page_id):
        raise StorageError(f"invalid_page_id:{page_id!r}")
    return f"{page_id}.md"


class FileNoteStore:
    """
    Directory-backed storage for the notes list and pages.

    Layout::

        notes_list.json
        pages/<page_id>.md       frontmatter holds the page, body is a preview
        .jotter/current.json     id of the page last saved as current
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.pages_dir = root / "pages"
        self.meta_dir = root / ".jotter"
        self.list_path = root / "notes_list.json"
        self.current_path = self.meta_dir / "current.json"

    def _page_path(self, page_id: str) -> Path:
        return self.pages_dir / page_filename(page_id)

    def _read_json(self, path: Path) -> object:
        if not path.exists():
            raise NotFoundError(path.name)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"unreadable:{path.name}") from e

    def read_notes_list(self) -> NotesList:
        data = self._read_json(self.list_path)
        try:
            return NotesListDoc.model_validate(data).to_list()
        except ValidationError as e:
            raise StorageError("notes_list_invalid") from e

    def write_notes_list(self, notes_list: NotesList) -> None:
        try:
            atomic_write_json(self.list_path, NotesListDoc.from_list(notes_list).model_dump())
        except OSError as e:
            raise StorageError("notes_list_write_failed") from e

    def read_page(self, page_id: str) -> NotePage:
        path = self._page_path(page_id)
        if not path.exists():
            raise NotFoundError(page_id)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            raise StorageError(f"unreadable:{path.name}") from e
        parsed = parse_frontmatter(content)
        if parsed.error:
            raise StorageError(f"{parsed.error}:{path.name}")
        try:
            doc = NotePageDoc.model_validate(parsed.frontmatter)
        except ValidationError as e:
            raise StorageError(f"page_invalid:{path.name}") from e
        if doc.id != page_id:
            raise StorageError(f"page_id_mismatch:{path.name}")
        return doc.to_page()

    def write_page(self, page: NotePage) -> None:
        path = self._page_path(page.id)
        try:
            atomic_write_text(path, render_page_markdown(NotePageDoc.from_page(page)))
        except OSError as e:
            raise StorageError(f"page_write_failed:{path.name}") from e

    def read_current_page_id(self) -> str | None:
        try:
            data = self._read_json(self.current_path)
        except StorageError:
            return None
        if isinstance(data, dict) and isinstance(data.get("page_id"), str):
            return data["page_id"]
        return None

    def write_current_page_id(self, page_id: str) -> None:
        try:
            atomic_write_json(self.current_path, {"page_id": page_id})
        except OSError as e:
            raise StorageError("current_marker_write_failed") from e

    async def get_notes_list(self) -> NotesList:
        return await asyncio.to_thread(self.read_notes_list)

    async def get_note_page(self, entry: NotesListEntry) -> NotePage:
        return await asyncio.to_thread(self.read_page, entry.page_id)

    async def get_current_note_page(self, notes_list: NotesList) -> NotePage | None:
        page_id = await asyncio.to_thread(self.read_current_page_id)
        if page_id is None or notes_list.find(page_id) is None:
            return None
        try:
            return await asyncio.to_thread(self.read_page, page_id)
        except NotFoundError:
            logger.info("current_page_missing", extra={"page_id": page_id})
            return None

    async def save_current_note_page(self, page: NotePage) -> None:
        await asyncio.to_thread(self.write_page, page)
        await asyncio.to_thread(self.write_current_page_id, page.id)

    async def save_notes_list(self, notes_list: NotesList) -> None:
        await asyncio.to_thread(self.write_notes_list, notes_list)
