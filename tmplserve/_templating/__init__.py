"""Internal templating helpers used by :mod:`tmplserve.server`."""

from .errors import TemplateError, TemplateExecutionError, TemplateSyntaxError
from .renderer import CompiledTemplate, compile_template, render_template
from .state import freeze_template_data

__all__ = [
    "CompiledTemplate",
    "TemplateError",
    "TemplateExecutionError",
    "TemplateSyntaxError",
    "compile_template",
    "freeze_template_data",
    "render_template",
]
