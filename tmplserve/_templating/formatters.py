"""Formatting utilities for the templating engine."""

from __future__ import annotations

import html
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping
from urllib.parse import quote

from .errors import TemplateExecutionError

__all__ = [
    "MODIFIERS",
    "escape",
    "stringify",
]


def _ensure_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def stringify(value: Any) -> str:
    """Serialise primitives and temporal values to template-friendly strings."""

    match value:
        case None:
            return ""
        case bool() as boolean:
            return "true" if boolean else "false"
        case int() | float() | Decimal():
            return format(value, "g")
        case datetime() as dt:
            return _ensure_datetime(dt).isoformat()
        case date() as current_date:
            return current_date.isoformat()

    return str(value)


def escape(text: str) -> str:
    """HTML-escape ``text``; applied to every substituted value."""

    return html.escape(text, quote=True)


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TemplateExecutionError(f"{name} requires a text value")
    return value


def _upper(value: Any) -> str:
    return _require_text("upper", value).upper()


def _lower(value: Any) -> str:
    return _require_text("lower", value).lower()


def _strip(value: Any) -> str:
    return _require_text("strip", value).strip()


def _truncate(value: Any, length: int = 80) -> str:
    if not isinstance(length, int) or isinstance(length, bool) or length < 0:
        raise TemplateExecutionError("truncate length must be a non-negative integer")
    return stringify(value)[:length]


def _coalesce(value: Any, default: Any = None) -> Any:
    return value if value is not None else default


def _json(value: Any) -> str:
    return json.dumps(value, default=str, sort_keys=True)


def _urlencode(value: Any) -> str:
    return quote(stringify(value), safe="")


MODIFIERS: Mapping[str, Callable[..., Any]] = {
    "coalesce": _coalesce,
    "json": _json,
    "lower": _lower,
    "strip": _strip,
    "truncate": _truncate,
    "upper": _upper,
    "urlencode": _urlencode,
}
