"""Content resolution: static passthrough, render cache, template rendering."""

from .cache import RenderCache, RenderedArtifact
from .content_types import DEFAULT_CONTENT_TYPE, content_type_for
from .filesystem import DirectoryRoot, ReadOnlyRoot
from .resolver import (
    ContentResolver,
    RenderFailure,
    Resolution,
    ResolverConfig,
    TemplateNotFound,
    normalize_path,
)

__all__ = [
    "ContentResolver",
    "DEFAULT_CONTENT_TYPE",
    "DirectoryRoot",
    "ReadOnlyRoot",
    "RenderCache",
    "RenderFailure",
    "RenderedArtifact",
    "Resolution",
    "ResolverConfig",
    "TemplateNotFound",
    "content_type_for",
    "normalize_path",
]
