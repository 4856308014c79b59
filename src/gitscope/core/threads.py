"""Offload blocking calls (pygit2, filesystem walks) from the event loop."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Callable, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Generic, TypeVar

import structlog

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

log = structlog.get_logger(__name__)


async def run_blocking(
    fn: Callable[..., T],
    /,
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Run ``fn`` in the default executor, optionally bounded by ``timeout``.

    On timeout the awaiting task gets ``TimeoutError``; the worker thread
    itself cannot be interrupted and runs to completion in the background.
    Use ``run_cancellable`` for work that mutates shared state.
    """
    loop = asyncio.get_running_loop()
    call = partial(fn, *args, **kwargs)
    if timeout is None:
        return await loop.run_in_executor(None, call)
    async with asyncio.timeout(timeout):
        return await loop.run_in_executor(None, call)


async def run_cancellable(
    fn: Callable[..., T],
    /,
    *args: Any,
    cancel: threading.Event,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Like ``run_blocking``, but the worker never outlives the call.

    On timeout ``cancel`` is set so a cooperative worker can stop early,
    and the worker is awaited before ``TimeoutError`` is raised. Whatever
    the worker was mutating is quiescent once this returns or raises.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, partial(fn, *args, **kwargs))
    if timeout is None:
        return await future

    done, _ = await asyncio.wait({future}, timeout=timeout)
    if future in done:
        return future.result()

    cancel.set()
    try:
        await future
    except Exception as e:
        log.debug("cancelled_call_stopped", fn=getattr(fn, "__name__", repr(fn)), error=str(e))
    else:
        log.debug("cancelled_call_finished", fn=getattr(fn, "__name__", repr(fn)))
    raise TimeoutError(f"timed out after {timeout:g}s")


@dataclass
class _Slot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLocks(Generic[K]):
    """One asyncio lock per key, kept only while someone holds or awaits it."""

    def __init__(self) -> None:
        self._slots: dict[K, _Slot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def locked(self, key: K) -> bool:
        slot = self._slots.get(key)
        return slot is not None and slot.lock.locked()

    @asynccontextmanager
    async def hold(self, key: K) -> AsyncIterator[None]:
        slot = self._slots.setdefault(key, _Slot())
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._slots[key]
