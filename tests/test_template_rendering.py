"""Tests for compiling and executing placeholder templates."""

from __future__ import annotations

import pytest

from tmplserve._templating import (
    TemplateError,
    TemplateExecutionError,
    TemplateSyntaxError,
    compile_template,
    freeze_template_data,
    render_template,
)


@pytest.fixture
def template_data():
    return {
        "Name": "World",
        "ClientID": "abc123",
        "CallbackURL": "http://localhost:3000/callback?next=1",
        "Client ID": "spaced",
        "Count": 3,
        "Enabled": True,
        "Missing": None,
        "user": {"name": "Ada", "roles": ["admin"]},
    }


def test_placeholder_is_substituted(template_data):
    assert render_template("page.html", "Hello, {{ ctx.Name }}!", template_data) == "Hello, World!"


def test_placeholders_without_spaces_and_adjacent(template_data):
    rendered = render_template("page.html", "{{ctx.Name}}{{ ctx.ClientID }}", template_data)
    assert rendered == "Worldabc123"


def test_text_without_placeholders_is_untouched(template_data):
    source = "<p>plain }} text</p>\n"
    assert render_template("plain.html", source, template_data) == source


def test_subscript_and_nested_access(template_data):
    source = "{{ ctx['Client ID'] }} {{ ctx.user.name }} {{ ctx.user['name'] }}"
    assert render_template("page.html", source, template_data) == "spaced Ada Ada"


def test_non_string_values_are_stringified(template_data):
    source = "{{ ctx.Count }} {{ ctx.Enabled }} [{{ ctx.Missing }}] {{ 'literal' }}"
    assert render_template("page.html", source, template_data) == "3 true [] literal"


def test_substituted_values_are_html_escaped():
    data = {"Name": "<script>alert('x') & \"y\"</script>"}
    rendered = render_template("page.html", "<b>{{ ctx.Name }}</b>", data)
    assert rendered == (
        "<b>&lt;script&gt;alert(&#x27;x&#x27;) &amp; &quot;y&quot;&lt;/script&gt;</b>"
    )


def test_escaping_is_applied_regardless_of_file_type():
    data = {"Value": "a<b"}
    assert render_template("app.js", "var v = '{{ ctx.Value }}';", data) == "var v = 'a&lt;b';"


@pytest.mark.parametrize(
    "source, expected",
    [
        ("{{ ctx.Name | upper }}", "WORLD"),
        ("{{ ctx.Name | lower() }}", "world"),
        ("{{ ctx.Name | upper | lower }}", "world"),
        ("{{ ctx.Name | truncate(3) }}", "Wor"),
        ("{{ ctx.Missing | coalesce('n/a') }}", "n/a"),
        ("{{ ctx.Name | coalesce(default='n/a') }}", "World"),
        ("{{ ctx.Name | json }}", "&quot;World&quot;"),
        ("{{ ctx.CallbackURL | urlencode }}", "http%3A%2F%2Flocalhost%3A3000%2Fcallback%3Fnext%3D1"),
        ("{{ '  padded  ' | strip }}", "padded"),
    ],
)
def test_modifiers(source, expected, template_data):
    assert render_template("page.html", source, template_data) == expected


@pytest.mark.parametrize(
    "source, message",
    [
        ("Hello {{ ctx.Name", "unclosed placeholder"),
        ("{{ }}", "empty template expression"),
        ("{{ ctx.Name | unknown_modifier() }}", "unknown modifier 'unknown_modifier'"),
        ("{{ other.Name }}", "only the 'ctx' root"),
        ("{{ ctx.Name + 1 }}", "unsupported expression"),
        ("{{ ctx._private }}", "private attribute"),
        ("{{ ctx[ctx.Name] }}", "subscripts must be literals"),
        ("{{ ctx.( }}", "invalid path expression"),
        ("{{ ctx.Name | coalesce(ctx.Other) }}", "literal arguments only"),
        ("{{ ctx.Name | 'upper' }}", "modifiers must be function calls"),
        ("{{ ctx" + ".a" * 5000 + " }}", "nested too deeply"),
    ],
)
def test_syntax_errors_are_reported_at_compile_time(source, message):
    with pytest.raises(TemplateSyntaxError, match=message):
        compile_template(source, "broken.html")


def test_syntax_errors_carry_template_name_and_line():
    with pytest.raises(TemplateSyntaxError, match=r"broken\.html:3:"):
        compile_template("one\ntwo\n{{ ctx.Name | nope }}", "broken.html")


def test_compilation_does_not_need_data():
    compiled = compile_template("{{ ctx.Later }} and {{ ctx.Name | upper }}", "page.html")
    assert compiled.name == "page.html"
    assert compiled.expressions == ("ctx.Later", "ctx.Name | upper")


@pytest.mark.parametrize(
    "source, message",
    [
        ("{{ ctx.Undefined }}", "key 'Undefined' is not defined"),
        ("{{ ctx.user.missing }}", "key 'missing' is not defined"),
        ("{{ ctx.Count | upper }}", "upper requires a text value"),
        ("{{ ctx.Name | upper(1) }}", "invalid arguments for modifier 'upper'"),
        ("{{ ctx.Name | truncate('x') }}", "non-negative integer"),
        ("{{ ctx.Name['x'] }}", "indexed access is only supported for mappings"),
        ("{{ ctx.Name.nonexistent }}", "attribute 'nonexistent' is not defined"),
        ("{{ ctx.Name.upper }}", "attribute 'upper' is not defined"),
        ("{{ ctx.user.roles.copy }}", "attribute 'copy' is not defined"),
    ],
)
def test_execution_errors(source, message, template_data):
    compiled = compile_template(source, "page.html")
    with pytest.raises(TemplateExecutionError, match=message):
        compiled.execute(template_data)


def test_template_errors_share_a_base_class():
    assert issubclass(TemplateSyntaxError, TemplateError)
    assert issubclass(TemplateExecutionError, TemplateError)
    assert issubclass(TemplateError, RuntimeError)


def test_rendering_is_deterministic(template_data):
    source = "<h1>{{ ctx.Name }}</h1><p>{{ ctx.user | json }}</p>"
    compiled = compile_template(source, "page.html")
    first = compiled.execute(template_data)
    second = compiled.execute(template_data)
    assert first == second == render_template("page.html", source, template_data)


def test_frozen_template_data_is_read_only_snapshot():
    original = {"Name": "World", "nested": {"value": 1}}
    frozen = freeze_template_data(original)
    original["Name"] = "Changed"
    original["nested"]["value"] = 2

    assert frozen["Name"] == "World"
    assert frozen["nested"]["value"] == 1
    with pytest.raises(TypeError):
        frozen["Name"] = "Other"  # type: ignore[index]


def test_frozen_template_data_defaults_to_empty_mapping():
    assert dict(freeze_template_data(None)) == {}


@pytest.mark.parametrize("data", [{1: "one"}, ["Name"]])
def test_frozen_template_data_rejects_invalid_input(data):
    with pytest.raises(TemplateError):
        freeze_template_data(data)
