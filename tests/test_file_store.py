import asyncio
import json

import pytest

from jotter_api.auth import AuthProvider
from jotter_api.domain.entities import (
    NotePage,
    NotesList,
    NotesListEntry,
    ProviderState,
    TaskNote,
    TextNote,
)
from jotter_api.domain.exceptions import NotFoundError, StorageError
from jotter_api.storage.file_store import FileNoteStore
from jotter_api.storage.markdown import parse_frontmatter
from jotter_api.storage.provider_storage import ProviderAwareStorage


def _page() -> NotePage:
    return NotePage(
        title="Weekend",
        items=[
            TextNote("call mom "),
            TaskNote("buy milk", external_task_id="AAMk-1"),
            TextNote(" "),
        ],
    )


def test_page_and_list_round_trip(tmp_path) -> None:
    store = FileNoteStore(tmp_path)
    page = _page()
    notes_list = NotesList(items=[NotesListEntry(page.id, page.title)])

    async def scenario():
        await store.save_current_note_page(page)
        await store.save_notes_list(notes_list)
        loaded_list = await store.get_notes_list()
        loaded_page = await store.get_note_page(loaded_list.items[0])
        current = await store.get_current_note_page(loaded_list)
        return loaded_list, loaded_page, current

    loaded_list, loaded_page, current = asyncio.run(scenario())
    assert loaded_list == notes_list
    assert loaded_page == page
    assert current == page

    text = (tmp_path / "pages" / f"{page.id}.md").read_text(encoding="utf-8")
    assert "# Weekend" in text
    assert "- [ ] buy milk" in text
    assert parse_frontmatter(text).frontmatter["id"] == page.id


def test_missing_notes_list_is_not_found(tmp_path) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(FileNoteStore(tmp_path).get_notes_list())


def test_corrupt_notes_list_is_a_storage_error(tmp_path) -> None:
    (tmp_path / "notes_list.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError) as info:
        asyncio.run(FileNoteStore(tmp_path).get_notes_list())
    assert not isinstance(info.value, NotFoundError)


def test_missing_page_is_not_found(tmp_path) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(FileNoteStore(tmp_path).get_note_page(NotesListEntry("nope")))


def test_page_with_broken_frontmatter_is_a_storage_error(tmp_path) -> None:
    store = FileNoteStore(tmp_path)
    store.pages_dir.mkdir(parents=True)
    (store.pages_dir / "p1.md").write_text("---\nitems: [oops\n---\nbody\n", encoding="utf-8")
    with pytest.raises(StorageError):
        asyncio.run(store.get_note_page(NotesListEntry("p1")))


def test_page_that_is_not_utf8_is_a_storage_error(tmp_path) -> None:
    store = FileNoteStore(tmp_path)
    store.pages_dir.mkdir(parents=True)
    (store.pages_dir / "p1.md").write_bytes(b"---\nid: p1\ntitle: \xff\xfe\n---\n")
    with pytest.raises(StorageError) as info:
        asyncio.run(store.get_note_page(NotesListEntry("p1")))
    assert not isinstance(info.value, NotFoundError)
    assert str(info.value) == "unreadable:p1.md"


def test_load_skips_a_page_that_is_not_utf8(tmp_path) -> None:
    from jotter_api.domain.state import SessionState
    from jotter_api.sync.autosave import AutosaveScheduler
    from jotter_api.sync.pages import PageListSync

    store = FileNoteStore(tmp_path)
    good = NotePage(title="Good", items=[TextNote("fine")])
    store.write_page(good)
    store.pages_dir.joinpath("bad.md").write_bytes(b"---\nid: bad\ntitle: \xff\xfe\n---\n")
    store.write_notes_list(NotesList(items=[NotesListEntry("bad", "Bad"), NotesListEntry(good.id, "Good")]))

    async def scenario():
        state = SessionState()
        autosave = AutosaveScheduler(state, store, interval_s=3600)
        sync = PageListSync(state, store, autosave, tasks=None)
        await sync.load()
        await sync.autosave.stop()
        return state

    state = asyncio.run(scenario())
    assert state.active_page is not None
    assert state.active_page.id != "bad"
    entry = state.notes_list.items[state.selected_index]
    assert entry.page_id == state.active_page.id


def test_page_ids_cannot_escape_the_store(tmp_path) -> None:
    with pytest.raises(StorageError):
        asyncio.run(FileNoteStore(tmp_path).get_note_page(NotesListEntry("../secrets")))


def test_current_page_requires_a_listed_marker(tmp_path) -> None:
    store = FileNoteStore(tmp_path)
    page = _page()

    async def scenario():
        none_yet = await store.get_current_note_page(NotesList(items=[NotesListEntry(page.id)]))
        await store.save_current_note_page(page)
        unlisted = await store.get_current_note_page(NotesList(items=[NotesListEntry("other")]))
        listed = await store.get_current_note_page(NotesList(items=[NotesListEntry(page.id)]))
        return none_yet, unlisted, listed

    none_yet, unlisted, listed = asyncio.run(scenario())
    assert none_yet is None
    assert unlisted is None
    assert listed.id == page.id

    marker = json.loads((tmp_path / ".jotter" / "current.json").read_text(encoding="utf-8"))
    assert marker == {"page_id": page.id}


def test_current_page_missing_file_returns_none(tmp_path) -> None:
    store = FileNoteStore(tmp_path)
    store.write_current_page_id("ghost")
    assert asyncio.run(store.get_current_note_page(NotesList(items=[NotesListEntry("ghost")]))) is None


def test_provider_storage_switches_on_sign_in(tmp_path) -> None:
    provider = AuthProvider()
    storage = ProviderAwareStorage(
        local=FileNoteStore(tmp_path / "local"),
        roaming=FileNoteStore(tmp_path / "roaming"),
        provider=provider,
    )
    seen: list[ProviderState] = []

    async def record(state: ProviderState) -> None:
        seen.append(state)

    provider.on_state_changed(record)

    async def scenario():
        await storage.save_notes_list(NotesList(items=[NotesListEntry("a", "A")]))
        await provider.set_state(ProviderState.SIGNED_IN)
        await provider.set_state(ProviderState.SIGNED_IN)
        await storage.save_notes_list(NotesList(items=[NotesListEntry("b", "B")]))
        return await storage.get_notes_list()

    roaming_list = asyncio.run(scenario())
    assert [e.page_id for e in roaming_list.items] == ["b"]
    local = json.loads((tmp_path / "local" / "notes_list.json").read_text(encoding="utf-8"))
    assert [e["page_id"] for e in local["items"]] == ["a"]
    assert seen == [ProviderState.SIGNED_IN]
