from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from jotter_api.domain.entities import NotePage, NotesList

Listener = Callable[[str], None]


class SessionState:
    """In-memory notes list, selection and active page for one session.

    Each property setter notifies subscribers with the property name, but
    only when the value actually changes. Listeners run synchronously
    inside the setter, so a listener that assigns another property sees
    its own notification nested inside the first one.
    """

    def __init__(self) -> None:
        self._notes_list: NotesList | None = None
        self._selected_index = -1
        self._active_page: NotePage | None = None
        self._last_sync: datetime | None = None
        self._is_signed_in = False
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, name: str, value: Any) -> bool:
        attr = f"_{name}"
        current = getattr(self, attr)
        if current is value or current == value:
            return False
        setattr(self, attr, value)
        for listener in list(self._listeners):
            listener(name)
        return True

    @property
    def notes_list(self) -> NotesList | None:
        return self._notes_list

    @notes_list.setter
    def notes_list(self, value: NotesList | None) -> None:
        self._set("notes_list", value)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @selected_index.setter
    def selected_index(self, value: int) -> None:
        self._set("selected_index", value)

    @property
    def active_page(self) -> NotePage | None:
        return self._active_page

    @active_page.setter
    def active_page(self, value: NotePage | None) -> None:
        self._set("active_page", value)

    @property
    def last_sync(self) -> datetime | None:
        return self._last_sync

    @last_sync.setter
    def last_sync(self, value: datetime | None) -> None:
        self._set("last_sync", value)

    @property
    def is_signed_in(self) -> bool:
        return self._is_signed_in

    @is_signed_in.setter
    def is_signed_in(self, value: bool) -> None:
        self._set("is_signed_in", value)
