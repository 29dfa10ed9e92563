"""Error types used by the templating helpers."""


class TemplateError(RuntimeError):
    """Base class for failures raised while compiling or executing templates."""

    __slots__ = ()


class TemplateSyntaxError(TemplateError):
    """Raised when template source cannot be compiled."""

    __slots__ = ()


class TemplateExecutionError(TemplateError):
    """Raised when a compiled template cannot be rendered against its data."""

    __slots__ = ()
