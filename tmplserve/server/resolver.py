"""Resolve request paths to static files, cached renders, or fresh renders."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterable, Iterator, Mapping

from .._templating import freeze_template_data, render_template
from .cache import RenderCache, RenderedArtifact
from .content_types import content_type_for
from .filesystem import DirectoryRoot, ReadOnlyRoot

__all__ = [
    "ContentResolver",
    "RenderFailure",
    "RenderFunction",
    "Resolution",
    "ResolverConfig",
    "TemplateNotFound",
    "normalize_path",
]

logger = logging.getLogger(__name__)

NOT_FOUND_BODY = b"Not Found"
RENDER_ERROR_BODY = b"Error generating page"
_CHUNK_SIZE = 8192

RenderFunction = Callable[[str, str, Mapping[str, Any]], str]


class TemplateNotFound(LookupError):
    """Raised when no template exists for a request path."""


class RenderFailure(RuntimeError):
    """Raised when a template exists but cannot be rendered."""


def _as_root(value: ReadOnlyRoot | str | Path) -> ReadOnlyRoot:
    if isinstance(value, (str, Path)):
        return DirectoryRoot(value)
    return value


@dataclass(frozen=True)
class ResolverConfig:
    """Immutable inputs shared by every request the resolver handles."""

    static_root: ReadOnlyRoot
    template_root: ReadOnlyRoot
    template_data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "static_root", _as_root(self.static_root))
        object.__setattr__(self, "template_root", _as_root(self.template_root))
        object.__setattr__(self, "template_data", freeze_template_data(self.template_data))


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one request path.

    ``chunks`` is consumed once; static responses stream from an open file.
    """

    status: int
    source: str
    chunks: Iterable[bytes] = field(repr=False)
    content_type: str | None = None

    def read(self) -> bytes:
        return b"".join(self.chunks)


def normalize_path(raw_path: str) -> str:
    """Return the canonical, ``/``-prefixed form of ``raw_path``."""

    return posixpath.normpath("/" + raw_path.lstrip("/"))


class ContentResolver:
    """Serve static files first, then cached renders, then fresh renders."""

    def __init__(
        self,
        config: ResolverConfig,
        *,
        render: RenderFunction | None = None,
        cache: RenderCache | None = None,
    ) -> None:
        self._config = config
        self._render = render or render_template
        self._cache = cache if cache is not None else RenderCache()

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def cache(self) -> RenderCache:
        return self._cache

    def resolve(self, raw_path: str) -> Resolution:
        path = normalize_path(raw_path)

        static = self._open_static(path)
        if static is not None:
            logger.debug("serving %s from static files", path)
            return Resolution(status=200, source="static", chunks=_iter_file(static))

        artifact = self._fresh_artifact(path)
        if artifact is not None:
            logger.debug("serving %s from rendered template cache", path)
            return self._artifact_resolution(artifact, source="cache")

        try:
            artifact, source = self._render_and_store(path)
        except TemplateNotFound:
            logger.debug("no static file or template for %s", path)
            return Resolution(status=404, source="error", chunks=(NOT_FOUND_BODY,))
        except RenderFailure as exc:
            logger.error("failed rendering template %s: %s", path, exc.__cause__ or exc)
            return Resolution(status=500, source="error", chunks=(RENDER_ERROR_BODY,))
        return self._artifact_resolution(artifact, source=source)

    def render_artifact(self, path: str) -> RenderedArtifact:
        """Render the template at ``path`` without consulting the cache."""

        root = self._config.template_root
        try:
            modified_ns = root.modified_ns(path)
            with root.open(path) as handle:
                raw = handle.read()
        except FileNotFoundError as exc:
            raise TemplateNotFound(path) from exc
        except OSError as exc:
            raise RenderFailure(f"cannot read template {path}") from exc
        try:
            output = self._render(path, raw.decode("utf-8"), self._config.template_data)
        except Exception as exc:  # template, decode, or custom renderer errors
            raise RenderFailure(f"cannot render template {path}") from exc
        logger.debug("rendered template %s", path)
        return RenderedArtifact(
            path=path, content=output.encode("utf-8"), source_mtime_ns=modified_ns
        )

    def _render_and_store(self, path: str) -> tuple[RenderedArtifact, str]:
        with self._cache.render_lock(path):
            # A concurrent request may have rendered while this one waited.
            artifact = self._fresh_artifact(path)
            if artifact is not None:
                return artifact, "cache"
            artifact = self.render_artifact(path)
            self._cache.store(artifact)
        return artifact, "render"

    def _open_static(self, path: str) -> BinaryIO | None:
        try:
            return self._config.static_root.open(path)
        except OSError:
            return None

    def _fresh_artifact(self, path: str) -> RenderedArtifact | None:
        artifact = self._cache.lookup(path)
        if artifact is None:
            return None
        try:
            current = self._config.template_root.modified_ns(path)
        except OSError as exc:
            logger.warning("cannot stat template %s: %s", path, exc)
            return None
        if artifact.is_current(current):
            return artifact
        logger.debug("cached render of %s is outdated", path)
        return None

    def _artifact_resolution(self, artifact: RenderedArtifact, *, source: str) -> Resolution:
        return Resolution(
            status=200,
            source=source,
            chunks=(artifact.content,),
            content_type=content_type_for(artifact.path),
        )


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            yield chunk
