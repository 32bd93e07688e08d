"""
@file: request_cache.py
@description:
Time-boxed de-duplication of identical in-flight requests.

Callers that ask for the same key while a request is running, or within
`window` seconds after it settled, share that request's outcome instead of
issuing a new one. A timer drops each entry `window` seconds after it
settles, so keys that are never asked for again do not accumulate.

@notes:
- Failed requests are shared for the window too, exactly like successes.
- The shared task is shielded, so a caller that gets cancelled does not
  cancel the request for the others.
- The clock is injectable for tests.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

DEFAULT_WINDOW_SECONDS = 1.0


@dataclass
class _Entry:
    task: "asyncio.Future[Any]"
    expires_at: Optional[float] = None  # None while the request is in flight


class RequestCache:
    """
    Map from a request key to the task serving it.

    Usage:
        cache = RequestCache()
        files = await cache.run("files-root-abc", lambda: fetch_files(None))
    """

    def __init__(self, window: float = DEFAULT_WINDOW_SECONDS, clock: Callable[[], float] = time.monotonic):
        if window < 0:
            raise ValueError("window must not be negative")
        self.window = window
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def __len__(self) -> int:
        for key in list(self._entries):
            self._lookup(key)
        return len(self._entries)

    def _lookup(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _settle(self, key: str, entry: _Entry) -> None:
        # A clear() or a newer request may have replaced the entry meanwhile
        if self._entries.get(key) is entry:
            entry.expires_at = self._clock() + self.window
            asyncio.get_running_loop().call_later(self.window, self._expire, key, entry)

    def _expire(self, key: str, entry: _Entry) -> None:
        if self._entries.get(key) is entry:
            del self._entries[key]

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Await the shared request for `key`, starting it with `factory` if needed.

        Args:
            key: Identity of the request
            factory: Zero-argument callable returning the awaitable to run

        Returns:
            The request's result; its exception is raised to every sharer
        """
        entry = self._lookup(key)
        if entry is None:
            entry = _Entry(task=asyncio.ensure_future(factory()))
            self._entries[key] = entry
            entry.task.add_done_callback(lambda _task, key=key, entry=entry: self._settle(key, entry))

        return await asyncio.shield(entry.task)

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Forget every entry; requests already running keep running."""
        self._entries.clear()
