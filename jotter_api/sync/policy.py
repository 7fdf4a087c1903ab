from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

from jotter_api.domain.exceptions import NotFoundError, StorageError

logger = logging.getLogger("jotter.sync")

T = TypeVar("T")


async def best_effort(step: str, op: Awaitable[T]) -> T | None:
    """
    Await a storage call, turning storage failures into ``None``.

    Persistence is fail-silent: callers keep their in-memory state and fall
    back to the next step instead of surfacing the error.
    """
    try:
        return await op
    except NotFoundError as e:
        logger.info("storage_not_found", extra={"step": step, "detail": str(e)})
    except StorageError:
        logger.warning("storage_error", extra={"step": step}, exc_info=True)
    return None
