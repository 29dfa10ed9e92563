"""Static file, render cache, and template rendering HTTP server."""

from ._templating import TemplateError, render_template
from .server import ContentResolver, ResolverConfig
from .server.http import create_app

__all__ = [
    "ContentResolver",
    "ResolverConfig",
    "TemplateError",
    "create_app",
    "render_template",
]
