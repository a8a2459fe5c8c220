from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


def best_effort_persist(writer: Callable[[Any], Any], payload: Any, what: str = "state") -> bool:
    """Hand ``payload`` to a host-supplied writer after the local commit.

    Failures are logged and reported through the return value only; local
    state is never rolled back.
    """
    try:
        writer(payload)
    except Exception:
        logger.warning("failed to persist %s; keeping local state", what, exc_info=True)
        return False
    return True


async def best_effort_persist_async(writer: Callable[[Any], Awaitable[Any]], payload: Any,
                                    what: str = "state") -> bool:
    try:
        await writer(payload)
    except Exception:
        logger.warning("failed to persist %s; keeping local state", what, exc_info=True)
        return False
    return True
