"""HTTP helpers exposing the content resolver."""

from .app import create_app, create_content_router

__all__ = ["create_app", "create_content_router"]
