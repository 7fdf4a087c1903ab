from __future__ import annotations

import asyncio
from dataclasses import dataclass

from jotter_api.auth import AuthProvider
from jotter_api.config import Settings
from jotter_api.domain.entities import ProviderState
from jotter_api.domain.ports import StorageGateway, TaskService
from jotter_api.domain.state import SessionState
from jotter_api.storage.file_store import FileNoteStore
from jotter_api.storage.provider_storage import ProviderAwareStorage
from jotter_api.sync.autosave import AutosaveScheduler
from jotter_api.sync.pages import PageListSync
from jotter_api.tasks.todo_client import TodoTaskService


@dataclass
class NotesSession:
    state: SessionState
    provider: AuthProvider
    autosave: AutosaveScheduler
    sync: PageListSync

    async def start(self) -> None:
        await self.sync.load()

    async def close(self) -> None:
        await self.autosave.stop()
        await self.sync.settle()


def build_session(
    settings: Settings,
    *,
    storage: StorageGateway | None = None,
    tasks: TaskService | None = None,
) -> NotesSession:
    provider = AuthProvider(ProviderState.SIGNED_IN if settings.signed_in else ProviderState.SIGNED_OUT)
    if storage is None:
        storage = ProviderAwareStorage(
            local=FileNoteStore(settings.data_dir),
            roaming=FileNoteStore(settings.roaming_dir),
            provider=provider,
        )
    if tasks is None:
        tasks = TodoTaskService(settings.todo_api_base_url, settings.todo_api_token, settings.todo_list_name)

    state = SessionState()
    state.is_signed_in = provider.is_signed_in
    load_lock = asyncio.Lock()
    autosave = AutosaveScheduler(
        state,
        storage,
        interval_s=settings.autosave_interval_s,
        lock=load_lock if settings.save_under_load_lock else None,
    )
    sync = PageListSync(state, storage, autosave, tasks, load_lock=load_lock)
    provider.on_state_changed(sync.on_provider_state_changed)
    return NotesSession(state=state, provider=provider, autosave=autosave, sync=sync)
