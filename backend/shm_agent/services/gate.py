"""Process-wide FIFO gate serializing panel lifecycle operations."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GateTimeoutError(Exception):
    """Raised when a caller waited longer than the configured acquire timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Operation queue busy: gate not acquired within {timeout_seconds:.3f}s")
        self.timeout_seconds = timeout_seconds
        self.status_code = 503


@dataclass
class GateStatus:
    is_locked: bool
    queue_length: int


class OperationGate:
    """Binary gate with a FIFO wait list.

    ``release`` hands the gate straight to the oldest live waiter, so the
    held flag never drops between two queued operations and a newcomer
    cannot jump the queue.
    """

    def __init__(self, acquire_timeout: Optional[float] = None):
        self._locked = False
        self._waiters: deque[asyncio.Future[None]] = deque()
        self.acquire_timeout = acquire_timeout

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def queue_length(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    def status(self) -> GateStatus:
        return GateStatus(is_locked=self._locked, queue_length=self.queue_length)

    async def acquire(self, timeout: Optional[float] = None) -> None:
        if not self._locked:
            self._locked = True
            return

        timeout = self.acquire_timeout if timeout is None else timeout
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            if timeout is None:
                await fut
            else:
                await asyncio.wait_for(fut, timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError) as e:
            if fut.done() and not fut.cancelled():
                # Gate was already handed to us; pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            if isinstance(e, asyncio.TimeoutError):
                logger.warning("gate acquire timed out after %.3fs queue_length=%s", timeout, self.queue_length)
                raise GateTimeoutError(timeout) from e
            raise

    def release(self) -> None:
        if not self._locked:
            raise RuntimeError("release() called on a gate that is not held")
        while self._waiters:
            nxt = self._waiters.popleft()
            if not nxt.done():
                nxt.set_result(None)
                return
        self._locked = False

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        await self.acquire()
        try:
            return await fn()
        finally:
            self.release()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()
