"""Completion-callback adapter for callers using ``callback(error, result)``."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Callback = Callable[[BaseException | None, Any], None]

logger = logging.getLogger("firestore_connector.callbacks")


def run_with_callback(
    awaitable: Awaitable[Any], callback: Callback
) -> asyncio.Future[Any]:
    """Schedule ``awaitable`` and report its outcome to ``callback`` once.

    The callback receives ``(error, None)`` on failure and ``(None, result)``
    on success, never both. Must be called with a running event loop.
    """
    future = asyncio.ensure_future(awaitable)

    def _complete(done: asyncio.Future[Any]) -> None:
        if done.cancelled():
            callback(asyncio.CancelledError(), None)
            return
        error = done.exception()
        if error is not None:
            logger.debug("Reporting %s to callback", type(error).__name__)
            callback(error, None)
            return
        callback(None, done.result())

    future.add_done_callback(_complete)
    return future
