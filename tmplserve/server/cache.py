"""In-memory cache of rendered templates keyed by normalized request path."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

__all__ = ["RenderCache", "RenderedArtifact"]


@dataclass(frozen=True)
class RenderedArtifact:
    """Rendered output of one template and the source mtime it came from."""

    path: str
    content: bytes = field(repr=False)
    source_mtime_ns: int

    def is_current(self, current_mtime_ns: int) -> bool:
        """Report whether the artifact still reflects the template source.

        Equal timestamps count as current.
        """

        return current_mtime_ns <= self.source_mtime_ns


class _RenderLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class RenderCache:
    """Thread-safe mapping of normalized path to :class:`RenderedArtifact`.

    Entries are never evicted; a re-render replaces the previous artifact for
    the same path. :meth:`render_lock` serializes renders of one path so
    concurrent misses collapse into a single render. A path's lock lives only
    while some request holds or waits on it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RenderedArtifact] = {}
        self._guard = threading.Lock()
        self._render_locks: dict[str, _RenderLock] = {}
        self._render_locks_guard = threading.Lock()

    def lookup(self, path: str) -> RenderedArtifact | None:
        with self._guard:
            return self._entries.get(path)

    def store(self, artifact: RenderedArtifact) -> None:
        with self._guard:
            self._entries[artifact.path] = artifact

    @contextmanager
    def render_lock(self, path: str) -> Iterator[None]:
        with self._render_locks_guard:
            entry = self._render_locks.get(path)
            if entry is None:
                entry = self._render_locks[path] = _RenderLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._render_locks_guard:
                entry.holders -= 1
                if not entry.holders:
                    del self._render_locks[path]

    @property
    def active_render_locks(self) -> int:
        with self._render_locks_guard:
            return len(self._render_locks)

    def __contains__(self, path: object) -> bool:
        with self._guard:
            return path in self._entries

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self._guard:
            return iter(tuple(self._entries))
