"""
Reader/writer guard around the in-memory IPAM state.

Readers share access, a writer is exclusive. A waiting writer blocks new
readers so a steady stream of reads cannot starve mutations.

Usage:
    guard = StateGuard(state)

    async with guard.read() as state:
        ...  # concurrent with other readers

    async with guard.write() as state:
        ...  # exclusive
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from kohakuipam.models.state import IpamState


class StateGuard:
    """Owns an ``IpamState`` and serializes access to it."""

    def __init__(self, state: IpamState | None = None):
        self._state = state if state is not None else IpamState()
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[IpamState]:
        """Shared access. Callers must not mutate the yielded state."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield self._state
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[IpamState]:
        """Exclusive access for mutation."""
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            except BaseException:
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield self._state
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()

    async def replace(self, state: IpamState) -> None:
        """Swap in a whole new state under exclusive access."""
        async with self.write():
            self._state = state

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer
