from __future__ import annotations

import logging
from typing import Awaitable, Callable

from jotter_api.domain.entities import ProviderState

logger = logging.getLogger("jotter.auth")

StateListener = Callable[[ProviderState], Awaitable[None]]


class AuthProvider:
    """Sign-in state handed to the session and storage instead of a global."""

    def __init__(self, state: ProviderState = ProviderState.SIGNED_OUT) -> None:
        self._state = state
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def is_signed_in(self) -> bool:
        return self._state == ProviderState.SIGNED_IN

    def on_state_changed(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def set_state(self, state: ProviderState) -> None:
        if state == self._state:
            return
        logger.info("provider_state", extra={"from": self._state.value, "to": state.value})
        self._state = state
        for listener in list(self._listeners):
            await listener(state)
