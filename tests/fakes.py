# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Callable


class MemoryKeyValueStore:
    """In-memory KeyValueBackend; records every write for assertions."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.writes: list[tuple[str, str]] = []

    async def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes.append((key, value))


class FailingKeyValueStore(MemoryKeyValueStore):
    """Raises OSError on reads/writes while the matching flag is set."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return await super().get_item(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().set_item(key, value)


class GatedKeyValueStore(MemoryKeyValueStore):
    """
    Writes block until `gate` is set.

    Tracks how many writes were in flight at once, so tests can check
    that saves never overlap.
    """

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def set_item(self, key: str, value: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gate.wait()
            await super().set_item(key, value)
        finally:
            self.in_flight -= 1


class RecordingRemovalHandle:
    """RemovalHandle that waits for the test to call finish()."""

    def __init__(self) -> None:
        self.started = 0
        self.disposed = 0
        self._on_done: Callable[[], None] | None = None

    def start_exit(self, on_done: Callable[[], None]) -> None:
        self.started += 1
        self._on_done = on_done

    def dispose(self) -> None:
        self.disposed += 1

    def finish(self) -> None:
        assert self._on_done is not None, "start_exit was never called"
        self._on_done()


class BrokenRemovalHandle(RecordingRemovalHandle):
    def start_exit(self, on_done: Callable[[], None]) -> None:
        raise RuntimeError("animation backend gone")


class SequentialIds:
    """Deterministic id factory: t1, t2, ..."""

    def __init__(self, prefix: str = "t") -> None:
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}{self.n}"
