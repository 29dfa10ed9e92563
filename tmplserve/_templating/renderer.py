"""Compilation and rendering of ``{{ ctx.* }}`` placeholder templates."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .errors import TemplateExecutionError, TemplateSyntaxError
from .formatters import MODIFIERS, escape, stringify

__all__ = ["CompiledTemplate", "compile_template", "render_template"]

_OPEN = "{{"
_CLOSE = "}}"
_ROOT = "ctx"


@dataclass(frozen=True)
class _Modifier:
    name: str
    args: tuple[Any, ...] = ()
    kwargs: tuple[tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class _Placeholder:
    expression: str
    node: ast.AST
    modifiers: tuple[_Modifier, ...]
    line: int


_Segment = Union[str, _Placeholder]


@dataclass(frozen=True)
class CompiledTemplate:
    """Parsed template ready to be executed against template data."""

    name: str
    segments: tuple[_Segment, ...]

    @property
    def expressions(self) -> tuple[str, ...]:
        return tuple(
            segment.expression
            for segment in self.segments
            if isinstance(segment, _Placeholder)
        )

    def execute(self, data: Mapping[str, Any]) -> str:
        """Render the template, HTML-escaping every substituted value."""

        evaluator = _Evaluator(self.name, data)
        pieces: list[str] = []
        for segment in self.segments:
            if isinstance(segment, str):
                pieces.append(segment)
                continue
            value = evaluator.evaluate(segment)
            pieces.append(escape(stringify(value)))
        return "".join(pieces)


def compile_template(source: str, name: str = "<template>") -> CompiledTemplate:
    """Parse ``source`` into a :class:`CompiledTemplate`.

    Every placeholder is validated up-front so malformed templates fail before
    any output is produced.
    """

    segments: list[_Segment] = []
    position = 0
    while True:
        start = source.find(_OPEN, position)
        if start < 0:
            if position < len(source):
                segments.append(source[position:])
            break
        if start > position:
            segments.append(source[position:start])
        line = source.count("\n", 0, start) + 1
        end = source.find(_CLOSE, start + len(_OPEN))
        if end < 0:
            raise TemplateSyntaxError(f"{name}:{line}: unclosed placeholder")
        expression = source[start + len(_OPEN) : end].strip()
        segments.append(_compile_placeholder(expression, name=name, line=line))
        position = end + len(_CLOSE)
    return CompiledTemplate(name=name, segments=tuple(segments))


def render_template(name: str, source: str, data: Mapping[str, Any]) -> str:
    """Compile ``source`` and execute it against ``data``."""

    return compile_template(source, name).execute(data)


def _compile_placeholder(expression: str, *, name: str, line: int) -> _Placeholder:
    if not expression:
        raise TemplateSyntaxError(f"{name}:{line}: empty template expression")
    base, *modifier_segments = [segment.strip() for segment in expression.split("|")]
    try:
        node = _parse(base, name=name, line=line, what="path expression")
        _check_path(node, name=name, line=line)
        modifiers = tuple(
            _compile_modifier(segment, name=name, line=line)
            for segment in modifier_segments
            if segment
        )
    except RecursionError as exc:
        raise TemplateSyntaxError(
            f"{name}:{line}: template expression is nested too deeply"
        ) from exc
    return _Placeholder(expression=expression, node=node, modifiers=modifiers, line=line)


def _parse(text: str, *, name: str, line: int, what: str) -> ast.AST:
    try:
        return ast.parse(text, mode="eval").body
    except SyntaxError as exc:
        raise TemplateSyntaxError(f"{name}:{line}: invalid {what} '{text}'") from exc


def _check_path(node: ast.AST, *, name: str, line: int) -> None:
    if isinstance(node, ast.Constant):
        return
    if isinstance(node, ast.Name):
        if node.id != _ROOT:
            raise TemplateSyntaxError(
                f"{name}:{line}: only the '{_ROOT}' root is accessible in templates"
            )
        return
    if isinstance(node, ast.Attribute):
        if node.attr.startswith("_"):
            raise TemplateSyntaxError(
                f"{name}:{line}: private attribute '{node.attr}' is not accessible"
            )
        _check_path(node.value, name=name, line=line)
        return
    if isinstance(node, ast.Subscript):
        if not isinstance(node.slice, ast.Constant):
            raise TemplateSyntaxError(f"{name}:{line}: subscripts must be literals")
        _check_path(node.value, name=name, line=line)
        return
    raise TemplateSyntaxError(f"{name}:{line}: unsupported expression in template")


def _compile_modifier(segment: str, *, name: str, line: int) -> _Modifier:
    call = _parse(segment, name=name, line=line, what="modifier")
    if isinstance(call, ast.Name):
        call = ast.Call(func=call, args=[], keywords=[])
    if not isinstance(call, ast.Call) or not isinstance(call.func, ast.Name):
        raise TemplateSyntaxError(f"{name}:{line}: modifiers must be function calls")
    func_name = call.func.id
    if func_name not in MODIFIERS:
        raise TemplateSyntaxError(f"{name}:{line}: unknown modifier '{func_name}'")
    try:
        args = tuple(ast.literal_eval(arg) for arg in call.args)
        kwargs = tuple(
            (keyword.arg, ast.literal_eval(keyword.value))
            for keyword in call.keywords
            if keyword.arg is not None
        )
    except ValueError as exc:
        raise TemplateSyntaxError(
            f"{name}:{line}: modifier '{func_name}' accepts literal arguments only"
        ) from exc
    return _Modifier(name=func_name, args=args, kwargs=kwargs)


class _Evaluator:
    """Resolve one placeholder against the template data."""

    __slots__ = ("_name", "_data")

    def __init__(self, name: str, data: Mapping[str, Any]) -> None:
        self._name = name
        self._data = data

    def evaluate(self, placeholder: _Placeholder) -> Any:
        value = self._eval_ast(placeholder.node, placeholder.line)
        for modifier in placeholder.modifiers:
            value = self._apply_modifier(value, modifier, placeholder.line)
        return value

    def _eval_ast(self, node: ast.AST, line: int) -> Any:
        if isinstance(node, ast.Name):
            return self._data
        if isinstance(node, ast.Attribute):
            value = self._eval_ast(node.value, line)
            return self._resolve_getattr(value, node.attr, line)
        if isinstance(node, ast.Subscript):
            value = self._eval_ast(node.value, line)
            return self._resolve_getitem(value, node.slice.value, line)
        return node.value

    def _resolve_getattr(self, value: Any, attr: str, line: int) -> Any:
        # Only mapping keys are reachable; object attributes and methods are not.
        if not isinstance(value, Mapping):
            raise TemplateExecutionError(
                f"{self._name}:{line}: attribute '{attr}' is not defined"
            )
        return self._resolve_getitem(value, attr, line)

    def _resolve_getitem(self, value: Any, key: Any, line: int) -> Any:
        if not isinstance(value, Mapping):
            raise TemplateExecutionError(
                f"{self._name}:{line}: indexed access is only supported for mappings"
            )
        if key not in value:
            raise TemplateExecutionError(
                f"{self._name}:{line}: key '{key}' is not defined in template data"
            )
        return value[key]

    def _apply_modifier(self, value: Any, modifier: _Modifier, line: int) -> Any:
        handler = MODIFIERS[modifier.name]
        try:
            return handler(value, *modifier.args, **dict(modifier.kwargs))
        except TypeError as exc:
            raise TemplateExecutionError(
                f"{self._name}:{line}: invalid arguments for modifier '{modifier.name}'"
            ) from exc
