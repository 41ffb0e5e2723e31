"""Utilities for supervising background asyncio tasks.

Fire-and-forget jobs (verification and reset emails) go through here so
they surface exceptions in the logs instead of failing silently, are not
garbage collected before completion, and never run more than
``BACKGROUND_MAX_TASKS`` at a time.
"""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from functools import partial
from typing import Awaitable, Callable, Optional, Any, Set

from .settings.config import settings

logger = logging.getLogger(__name__)

# Track tasks so they are not garbage collected before finishing.
_background_tasks: Set[asyncio.Task[Any]] = set()

# One semaphore per event loop; asyncio primitives bind to the loop that first awaits them.
_slots: dict[asyncio.AbstractEventLoop, asyncio.Semaphore] = {}


def _slots_for(loop: asyncio.AbstractEventLoop) -> asyncio.Semaphore:
    sem = _slots.get(loop)
    if sem is None:
        for stale in [l for l in _slots if l.is_closed()]:
            _slots.pop(stale, None)
        sem = _slots[loop] = asyncio.Semaphore(settings.BACKGROUND_MAX_TASKS)
    return sem


async def _bounded(coro: Awaitable[Any], sem: asyncio.Semaphore) -> Any:
    async with sem:
        return await coro


def spawn(coro: Awaitable[Any], *, name: Optional[str] = None,
          on_error: Optional[Callable[[BaseException], None]] = None) -> asyncio.Task[Any]:
    """Create and supervise a background task.

    Args:
        coro: Awaitable coroutine to run in the background.
        name: Optional name for the task, used in log lines.
        on_error: Optional callback invoked if the task raises.
    """
    loop = asyncio.get_running_loop()
    task = loop.create_task(_bounded(coro, _slots_for(loop)), name=name)
    _background_tasks.add(task)

    def _finished(t: asyncio.Task[Any]) -> None:
        _background_tasks.discard(t)
        try:
            t.result()
        except asyncio.CancelledError:
            logger.debug("Background task %s cancelled", name or t)
        except Exception as exc:  # noqa: BLE001
            if on_error:
                try:
                    on_error(exc)
                except Exception:  # noqa: BLE001
                    logger.exception("Error in on_error callback for task %s", name or t)
            logger.exception("Background task %s failed", name or t, exc_info=exc)

    task.add_done_callback(_finished)
    return task


async def drain(timeout: Optional[float] = None) -> None:
    """Wait for every supervised task started on the running loop."""
    loop = asyncio.get_running_loop()
    pending = [t for t in _background_tasks if t.get_loop() is loop and not t.done()]
    if not pending:
        return
    done, still_pending = await asyncio.wait(pending, timeout=timeout)
    if still_pending:
        logger.warning("%d background task(s) still running after drain", len(still_pending))


def pending_count() -> int:
    return sum(1 for t in _background_tasks if not t.done())


__all__ = ["spawn", "drain", "pending_count"]


async def run_sync(func: Callable[..., Any], *args: Any, loop: Optional[asyncio.AbstractEventLoop] = None,
                   executor: Optional[Executor] = None, **kwargs: Any) -> Any:
    """Execute blocking code in the default executor and await the result."""
    event_loop = loop or asyncio.get_running_loop()
    bound = partial(func, *args, **kwargs)
    return await event_loop.run_in_executor(executor, bound)


__all__.append("run_sync")
