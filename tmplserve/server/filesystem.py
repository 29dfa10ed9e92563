"""Read-only directory views backing the static and template roots."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

__all__ = ["DirectoryRoot", "ReadOnlyRoot"]


@runtime_checkable
class ReadOnlyRoot(Protocol):
    """Minimal view over a tree of files addressed by normalized paths."""

    def open(self, path: str) -> BinaryIO:
        """Open ``path`` for binary reading or raise :class:`FileNotFoundError`."""

    def modified_ns(self, path: str) -> int:
        """Return the modification time of ``path`` in nanoseconds."""


class DirectoryRoot:
    """:class:`ReadOnlyRoot` over a local directory.

    Lookups never escape ``directory``: paths that resolve outside of it
    (through symlinks, for instance) and directories are reported as missing.
    """

    __slots__ = ("_directory",)

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).resolve()

    @property
    def directory(self) -> Path:
        return self._directory

    def __repr__(self) -> str:
        return f"DirectoryRoot({str(self._directory)!r})"

    def open(self, path: str) -> BinaryIO:
        return self._resolve(path).open("rb")

    def modified_ns(self, path: str) -> int:
        return self._resolve(path).stat().st_mtime_ns

    def _resolve(self, path: str) -> Path:
        parts = [segment for segment in path.split("/") if segment not in {"", ".", ".."}]
        if not parts:
            raise FileNotFoundError(path)
        target = self._directory.joinpath(*parts).resolve()
        try:
            target.relative_to(self._directory)
        except ValueError:
            raise FileNotFoundError(path) from None
        if not target.is_file():
            raise FileNotFoundError(path)
        return target
