from functools import lru_cache

from fastapi import Request

from jotter_api.config import load_settings
from jotter_api.session import NotesSession


@lru_cache()
def get_settings():
    return load_settings()


def get_session(request: Request) -> NotesSession:
    return request.app.state.session
