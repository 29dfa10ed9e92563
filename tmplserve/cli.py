"""Command line entry point: parse flags, configure logging, run the server."""

from __future__ import annotations

import argparse
import logging
import os
from logging import StreamHandler
from pathlib import Path
from typing import Mapping, Sequence

import uvicorn

from .config import ServerSettings, value_from_flag_or_env
from .server.http import create_app

__all__ = ["build_parser", "build_settings", "init_logging", "main"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DEFAULT_CALLBACK_URL = "http://localhost:3000"


def _data_item(raw: str) -> tuple[str, str]:
    key, separator, value = raw.partition("=")
    if not separator or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got '{raw}'")
    return key.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmplserve",
        description="Serve static files and templates rendered with fixed data.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on")
    parser.add_argument(
        "--static-dir",
        type=Path,
        default=Path.cwd() / "static",
        help="Directory from which static content is served",
    )
    parser.add_argument(
        "--template-dir",
        type=Path,
        default=Path.cwd() / "templates",
        help="Directory from which templated content is served",
    )
    parser.add_argument("--app-client-id", help="Client ID for the client app")
    parser.add_argument(
        "--callback-url", help=f"OAuth2 callback URL (default {DEFAULT_CALLBACK_URL})"
    )
    parser.add_argument("--auth0-domain", help="Auth0 domain (e.g. example.auth0.com)")
    parser.add_argument(
        "--data",
        action="append",
        type=_data_item,
        default=[],
        metavar="KEY=VALUE",
        help="Extra template data; may be repeated",
    )
    parser.add_argument("--verbose", action="store_true", help="Log more effusively")
    return parser


def build_settings(
    args: argparse.Namespace, *, environ: Mapping[str, str] | None = None
) -> ServerSettings:
    env = os.environ if environ is None else environ
    template_data = {
        "ClientID": value_from_flag_or_env(
            args.app_client_id, "APP_CLIENT_ID", "App client ID", environ=env
        ),
        "CallbackURL": args.callback_url or env.get("CALLBACK_URL") or DEFAULT_CALLBACK_URL,
        "Domain": value_from_flag_or_env(
            args.auth0_domain, "AUTH0_DOMAIN", "Auth0 domain", environ=env
        ),
    }
    template_data.update(dict(args.data))
    return ServerSettings(
        static_dir=args.static_dir,
        template_dir=args.template_dir,
        host=args.host,
        port=args.port,
        verbose=args.verbose,
        template_data=template_data,
    )


def init_logging(verbose: bool, *, environ: Mapping[str, str] | None = None) -> int:
    env = os.environ if environ is None else environ
    if verbose:
        level = logging.DEBUG
    else:
        level_name = (env.get("LOG_LEVEL") or "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        lg = logging.getLogger(logger_name)
        lg.setLevel(level)
        if not any(isinstance(handler, StreamHandler) for handler in lg.handlers):
            handler = StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            lg.addHandler(handler)
            lg.propagate = False
    return level


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = build_settings(args)
    except ValueError as exc:  # ConfigurationError or pydantic ValidationError
        parser.error(str(exc))

    init_logging(settings.verbose)
    if settings.verbose:
        logger.info("verbose logging enabled")
    for label, directory in (
        ("static", settings.static_dir),
        ("template", settings.template_dir),
    ):
        if not directory.is_dir():
            logger.warning("%s directory %s does not exist", label, directory)

    app = create_app(settings.resolver_config())
    logger.info(
        "server listening on %s:%d (static_dir=%s, template_dir=%s)",
        settings.host,
        settings.port,
        settings.static_dir,
        settings.template_dir,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
