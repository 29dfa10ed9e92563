"""Helpers for preparing the shared template data mapping."""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Mapping

from .errors import TemplateError

__all__ = ["ensure_mapping", "freeze_template_data"]


def ensure_mapping(obj: Any) -> Mapping[str, Any]:
    if isinstance(obj, Mapping):
        return obj
    raise TemplateError("Template data must be a mapping")


def freeze_template_data(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return a read-only snapshot of ``data`` shared by every render.

    Keys must be strings; values are deep-copied so later mutation by the
    caller cannot leak into rendered output.
    """

    mapping = ensure_mapping(data if data is not None else {})
    invalid = [key for key in mapping if not isinstance(key, str)]
    if invalid:
        raise TemplateError(f"Template data keys must be strings, got {invalid[0]!r}")
    return MappingProxyType(copy.deepcopy(dict(mapping)))
