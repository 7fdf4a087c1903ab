import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from jotter_api.dependencies import get_session
from jotter_api.domain.exceptions import ItemIndexError, NotATaskError
from jotter_api.domain.schemas import (
    AuthStateIn,
    ItemTextIn,
    NotePageDoc,
    NotesListDoc,
    SaveOut,
    SelectionIn,
    SessionOut,
    TitleIn,
)
from jotter_api.domain.state import SessionState
from jotter_api.session import NotesSession
from jotter_api.util import rfc3339

router = APIRouter()
logger = logging.getLogger("jotter.api")


def session_snapshot(state: SessionState) -> SessionOut:
    return SessionOut(
        notes_list=NotesListDoc.from_list(state.notes_list) if state.notes_list else NotesListDoc(),
        selected_index=state.selected_index,
        active_page=NotePageDoc.from_page(state.active_page) if state.active_page else None,
        last_sync=rfc3339(state.last_sync) if state.last_sync else None,
        signed_in=state.is_signed_in,
    )


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/session", response_model=SessionOut)
async def get_session_state(session: NotesSession = Depends(get_session)):
    return session_snapshot(session.state)


@router.post("/pages", response_model=SessionOut)
async def create_page(request: Request, session: NotesSession = Depends(get_session)):
    page = session.sync.create_new_page()
    logger.info("page_create", extra={"rid": request.state.request_id, "id": page.id})
    await session.sync.settle()
    return session_snapshot(session.state)


@router.delete("/pages/current", response_model=SessionOut)
async def delete_current_page(request: Request, session: NotesSession = Depends(get_session)):
    logger.info("page_delete", extra={"rid": request.state.request_id, "index": session.state.selected_index})
    await session.sync.delete_current_page()
    return session_snapshot(session.state)


@router.put("/selection", response_model=SessionOut)
async def select_page(payload: SelectionIn, session: NotesSession = Depends(get_session)):
    notes_list = session.state.notes_list
    count = len(notes_list.items) if notes_list else 0
    if payload.index >= count:
        raise HTTPException(status_code=400, detail="selection_out_of_range")
    session.state.selected_index = payload.index
    await session.sync.settle()
    return session_snapshot(session.state)


@router.put("/pages/current/title", response_model=SessionOut)
async def rename_current_page(payload: TitleIn, session: NotesSession = Depends(get_session)):
    try:
        session.sync.rename_page(payload.title)
    except ItemIndexError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return session_snapshot(session.state)


@router.put("/pages/current/items/{index}", response_model=SessionOut)
async def edit_item(index: int, payload: ItemTextIn, request: Request, session: NotesSession = Depends(get_session)):
    try:
        event = session.sync.edit_item(index, payload.text)
    except ItemIndexError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if event is not None:
        logger.info("keyword", extra={"rid": request.state.request_id, "keyword": event.keyword})
    return session_snapshot(session.state)


@router.delete("/pages/current/items/{index}", response_model=SessionOut)
async def delete_task(index: int, request: Request, session: NotesSession = Depends(get_session)):
    try:
        task = session.sync.delete_task(index)
    except (ItemIndexError, NotATaskError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("task_delete", extra={"rid": request.state.request_id, "task_id": task.external_task_id})
    return session_snapshot(session.state)


@router.post("/save", response_model=SaveOut)
async def save_now(session: NotesSession = Depends(get_session)):
    saved = await session.autosave.save()
    last_sync = session.state.last_sync
    return SaveOut(saved=saved, last_sync=rfc3339(last_sync) if last_sync else None)


@router.put("/auth", response_model=SessionOut)
async def set_auth_state(payload: AuthStateIn, request: Request, session: NotesSession = Depends(get_session)):
    logger.info("auth_state", extra={"rid": request.state.request_id, "state": payload.state.value})
    await session.provider.set_state(payload.state)
    await session.sync.settle()
    return session_snapshot(session.state)
