"""Map request paths to ``Content-Type`` values."""

from __future__ import annotations

import logging
import mimetypes
import posixpath

__all__ = ["DEFAULT_CONTENT_TYPE", "content_type_for"]

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Built-in table only; host mime.types files are not consulted.
_TABLE = mimetypes.MimeTypes()


def content_type_for(path: str) -> str:
    extension = posixpath.splitext(path)[1].lower()
    content_type = None
    if extension:
        content_type = _TABLE.types_map[True].get(extension) or _TABLE.types_map[
            False
        ].get(extension)
    resolved = content_type or DEFAULT_CONTENT_TYPE
    logger.debug("determined content type %s for %s", resolved, path)
    return resolved
