"""Process configuration for the template server."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .server.resolver import ResolverConfig

__all__ = ["ConfigurationError", "ServerSettings", "value_from_flag_or_env"]


class ConfigurationError(ValueError):
    """Raised when a required setting is missing or malformed."""


class ServerSettings(BaseModel):
    """Validated settings used to build the resolver and run the server."""

    model_config = ConfigDict(frozen=True)

    static_dir: Path = Field(default_factory=lambda: Path.cwd() / "static")
    template_dir: Path = Field(default_factory=lambda: Path.cwd() / "templates")
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    verbose: bool = False
    template_data: dict[str, str] = Field(default_factory=dict)

    @field_validator("static_dir", "template_dir")
    @classmethod
    def _clean_directory(cls, value: Path) -> Path:
        return Path(os.path.normpath(value))

    def resolver_config(self) -> ResolverConfig:
        return ResolverConfig(
            static_root=self.static_dir,
            template_root=self.template_dir,
            template_data=self.template_data,
        )


def value_from_flag_or_env(
    value: str | None,
    env_var: str,
    label: str,
    *,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Prefer an explicit flag value, then ``env_var``; otherwise fail."""

    if value:
        return value
    env = os.environ if environ is None else environ
    if env_value := env.get(env_var):
        return env_value
    raise ConfigurationError(f"{label} is required")
