"""Race pending lookups against a caller supplied cancellation signal."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Final, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

T = TypeVar("T")
D = TypeVar("D")


async def race_cancellation(
    awaitable: Awaitable[T],
    cancel: asyncio.Event | None,
    default: D = None,
) -> T | D:
    """
    Await *awaitable* unless *cancel* gets set first.

    When the signal wins, the pending work is cancelled and *default* is returned. Failures of the awaitable are
    re-raised as-is.
    """
    if cancel is None:
        return await awaitable
    if cancel.is_set():
        _discard(awaitable)
        return default

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        waiter.cancel()
        raise
    if work.done():
        waiter.cancel()
        return work.result()

    _LOGGER.debug("cancellation requested, abandon %r", work)
    work.cancel()
    await asyncio.wait({work})
    if not work.cancelled() and (exc := work.exception()) is not None:
        _LOGGER.debug("abandoned work failed with %r", exc)
    return default


def _discard(awaitable: Awaitable[object]) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    elif isinstance(awaitable, asyncio.Future):
        awaitable.cancel()


__all__ = [
    "race_cancellation",
]
