"""HTTP application wiring for the content resolver."""

from __future__ import annotations

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from ..resolver import ContentResolver, RenderFunction, Resolution, ResolverConfig

__all__ = ["create_app", "create_content_router"]


def create_app(
    config: ResolverConfig,
    *,
    render: RenderFunction | None = None,
) -> FastAPI:
    """Create a FastAPI app serving static files and rendered templates."""

    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    app.state.resolver = ContentResolver(config, render=render)
    app.include_router(create_content_router())
    return app


def _get_resolver(request: Request) -> ContentResolver:
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise RuntimeError("Content resolver is not configured")
    return resolver


def create_content_router() -> APIRouter:
    """Build a router that resolves every GET path through the resolver."""

    router = APIRouter()

    @router.get("/{request_path:path}", name="content")
    async def serve_content(
        request_path: str,
        resolver: ContentResolver = Depends(_get_resolver),
    ) -> Response:
        resolution = await run_in_threadpool(resolver.resolve, request_path)
        return _to_response(resolution)

    return router


def _to_response(resolution: Resolution) -> Response:
    if resolution.status != 200:
        return PlainTextResponse(resolution.read(), status_code=resolution.status)
    if resolution.source == "static":
        return StreamingResponse(resolution.chunks)
    return Response(resolution.read(), media_type=resolution.content_type)
