"""Tests for consul_render.render.renderer — Jinja2 engine, strict mode."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from consul_render.errors import (
    EnvVarUnset,
    MissingDataKeyError,
    NotFound,
    TemplateExecutionError,
    TemplateIOError,
    TemplateSyntaxError,
    UndefinedHelperError,
)
from consul_render.kv.resolver import KVResolver
from consul_render.render.helpers import build_helpers
from consul_render.render.renderer import (
    build_environment,
    compile_template,
    execute_template,
    read_template,
    render_template,
)


# ── fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def helpers(fake_consul):
    return build_helpers(KVResolver(fake_consul, "app/"), {"FOO": "bar", "EMPTY": ""})


# ── TestIdentity ─────────────────────────────────────────────────────


class TestIdentity:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain text",
            "line one\nline two\n\n",
            "  indented\n\ttabbed\n",
            "key = value # comment\n[section]\n",
        ],
    )
    def test_literal_text_verbatim(self, helpers, text):
        assert render_template(text, helpers) == text


# ── TestHelpers ──────────────────────────────────────────────────────


class TestHelpersInTemplates:
    def test_join(self, helpers):
        assert render_template('{{ join(",", ["a", "b", "c"]) }}', helpers) == "a,b,c"

    def test_join_empty(self, helpers):
        assert render_template('[{{ join(",", []) }}]', helpers) == "[]"

    def test_quote(self, helpers):
        assert render_template('{{ quote("x") }}', helpers) == '"x"'

    def test_quote_filter(self, helpers):
        assert render_template('{{ cv("a") | quote }}', helpers) == '"1"'

    def test_cv(self, helpers):
        assert render_template('port={{ cv("a") }}', helpers) == "port=1"

    def test_qcv(self, helpers):
        assert render_template('{{ qcv("a") }}', helpers) == '"1"'

    def test_cvl_loop(self, helpers):
        tpl = '{% for v in cvl("list/") %}<{{ v }}>{% endfor %}'
        assert render_template(tpl, helpers) == "<1><2>"

    def test_qcvl_join(self, helpers):
        tpl = '[{{ join(", ", qcvl("list/")) }}]'
        assert render_template(tpl, helpers) == '["1", "2"]'

    def test_env(self, helpers):
        assert render_template('{{ env("FOO") }}', helpers) == "bar"

    def test_mixed(self, helpers):
        tpl = 'name: {{ cv("name") }}\nuser: {{ env("FOO") }}\n'
        assert render_template(tpl, helpers) == "name: web\nuser: bar\n"

    def test_conditional_on_helper(self, helpers):
        tpl = '{% if cv("name") == "web" %}yes{% else %}no{% endif %}'
        assert render_template(tpl, helpers) == "yes"

    def test_macro_is_not_an_undefined_helper(self, helpers):
        tpl = (
            "{% macro kv(k) %}{{ k }}={{ cv(k) }}{% endmacro %}"
            '{{ kv("a") }};{{ kv("name") }}'
        )
        assert render_template(tpl, helpers) == "a=1;name=web"

    def test_set_variable(self, helpers):
        tpl = '{% set n = cv("name") %}{{ n }}-{{ n }}'
        assert render_template(tpl, helpers) == "web-web"

    def test_builtin_globals_allowed(self, helpers):
        assert render_template("{% for i in range(3) %}{{ i }}{% endfor %}", helpers) == "012"


# ── TestCompileErrors ────────────────────────────────────────────────


class TestCompileErrors:
    def test_syntax_error(self, helpers):
        with pytest.raises(TemplateSyntaxError) as info:
            compile_template('{{ cv("a" }}', helpers)
        assert info.value.lineno == 1
        assert not isinstance(info.value, UndefinedHelperError)

    def test_unclosed_block(self, helpers):
        with pytest.raises(TemplateSyntaxError):
            compile_template('{% for v in cvl("x") %}', helpers)

    def test_unknown_filter(self, helpers):
        with pytest.raises(TemplateSyntaxError, match="nosuchfilter"):
            compile_template('{{ cv("a") | nosuchfilter }}', helpers)

    def test_unknown_filter_inside_condition(self, fake_consul):
        h = build_helpers(KVResolver(fake_consul, "app/"))
        with pytest.raises(TemplateSyntaxError, match="nosuchfilter"):
            compile_template('{% if cv("a") %}{{ cv("a") | nosuchfilter }}{% endif %}', h)
        assert fake_consul.calls == []

    def test_unknown_test_inside_condition(self, fake_consul):
        h = build_helpers(KVResolver(fake_consul, "app/"))
        with pytest.raises(TemplateSyntaxError, match="nosuchtest") as info:
            compile_template('x\n{% if cv("a") is nosuchtest %}y{% endif %}', h)
        assert info.value.lineno == 2
        assert fake_consul.calls == []

    def test_known_filters_and_tests_compile(self, helpers):
        source = '{% if cv("a") is string %}{{ cv("name") | upper | quote }}{% endif %}'
        assert render_template(source, helpers) == '"WEB"'

    def test_undefined_helper(self, helpers):
        with pytest.raises(UndefinedHelperError, match='function "lookup" not defined') as info:
            compile_template('ok\n{{ lookup("a") }}', helpers)
        assert info.value.name == "lookup"
        assert info.value.lineno == 2

    def test_undefined_helper_is_syntax_error(self, helpers):
        with pytest.raises(TemplateSyntaxError):
            compile_template('{{ nope() }}', helpers)

    def test_undefined_helper_never_executes(self, fake_consul):
        h = build_helpers(KVResolver(fake_consul, "app/"))
        with pytest.raises(UndefinedHelperError):
            compile_template('{{ cv("a") }}{{ nope() }}', h)
        assert fake_consul.calls == []

    def test_undefined_helper_inside_loop(self, helpers):
        with pytest.raises(UndefinedHelperError):
            compile_template('{% for v in cvl("list/") %}{{ upper(v) }}{% endfor %}', helpers)


# ── TestExecution ────────────────────────────────────────────────────


class TestExecution:
    def test_missing_data_key(self, helpers):
        with pytest.raises(MissingDataKeyError, match="foo"):
            render_template("{{ foo }}", helpers)

    def test_missing_data_key_in_condition(self, helpers):
        with pytest.raises(MissingDataKeyError):
            render_template("{% if enabled %}x{% endif %}", helpers)

    def test_missing_data_key_attribute(self, helpers):
        with pytest.raises(MissingDataKeyError):
            render_template("{{ config.port }}", helpers)

    def test_lenient_mode_renders_empty(self, helpers):
        assert render_template("[{{ foo }}]", helpers, strict=False) == "[]"

    def test_not_found_propagates(self, helpers):
        with pytest.raises(NotFound, match="app/missing"):
            render_template('{{ cv("missing") }}', helpers)

    def test_env_unset_propagates(self, helpers):
        with pytest.raises(EnvVarUnset, match="EMPTY"):
            render_template('{{ env("EMPTY") }}', helpers)

    def test_wrong_arity(self, helpers):
        with pytest.raises(TemplateExecutionError):
            render_template('{{ cv("a", "b") }}', helpers)

    def test_arithmetic_error_wrapped(self, helpers):
        with pytest.raises(TemplateExecutionError, match="ZeroDivisionError"):
            render_template("{{ 1 / 0 }}", helpers)

    def test_python_method_error_wrapped(self, helpers):
        with pytest.raises(TemplateExecutionError, match="ValueError"):
            render_template('{{ "{:d}".format("x") }}', helpers)

    def test_execution_error_keeps_cause(self, helpers):
        with pytest.raises(TemplateExecutionError) as info:
            render_template("{{ 1 / 0 }}", helpers)
        assert isinstance(info.value.__cause__, ZeroDivisionError)
        assert info.value.exit_code == 1

    def test_helpers_run_in_textual_order(self, fake_consul):
        h = build_helpers(KVResolver(fake_consul, "app/"))
        render_template('{{ cv("name") }}{{ cvl("list/") | length }}{{ cv("a") }}', h)
        assert fake_consul.calls == [
            ("get", "app/name"),
            ("list", "app/list/"),
            ("get", "app/a"),
        ]


# ── TestStreaming ────────────────────────────────────────────────────


class TestStreaming:
    def test_writes_to_stream(self, helpers):
        out = io.StringIO()
        execute_template(compile_template('a={{ cv("a") }}\n', helpers), out)
        assert out.getvalue() == "a=1\n"

    def test_partial_output_kept_on_failure(self, helpers):
        out = io.StringIO()
        template = compile_template('BEGIN {{ cv("missing") }} END', helpers)
        with pytest.raises(NotFound):
            execute_template(template, out)
        assert out.getvalue().startswith("BEGIN")
        assert "END" not in out.getvalue()

    def test_nothing_after_failure_point(self, fake_consul):
        h = build_helpers(KVResolver(fake_consul, "app/"))
        template = compile_template('{{ cv("missing") }}{{ cv("a") }}', h)
        with pytest.raises(NotFound):
            execute_template(template, io.StringIO())
        assert ("get", "app/a") not in fake_consul.calls


# ── TestBuildEnvironment ─────────────────────────────────────────────


class TestBuildEnvironment:
    def test_helpers_are_globals(self, helpers):
        env = build_environment(helpers)
        for name in helpers:
            assert env.globals[name] is helpers[name]

    def test_no_quote_filter_without_quote_helper(self):
        env = build_environment({})
        assert "quote" not in env.filters

    def test_keeps_trailing_newline(self, helpers):
        assert build_environment(helpers).keep_trailing_newline is True


# ── TestReadTemplate ─────────────────────────────────────────────────


class TestReadTemplate:
    def test_reads_text(self, tmp_path: Path):
        p = tmp_path / "t.tmpl"
        p.write_text("hello {{ cv('a') }}\n", encoding="utf-8")
        assert read_template(str(p)) == "hello {{ cv('a') }}\n"

    def test_missing_file(self, tmp_path: Path):
        missing = tmp_path / "nope.tmpl"
        with pytest.raises(TemplateIOError, match=r"^Open .*nope\.tmpl"):
            read_template(str(missing))

    def test_directory(self, tmp_path: Path):
        with pytest.raises(TemplateIOError):
            read_template(str(tmp_path))

    def test_invalid_utf8(self, tmp_path: Path):
        p = tmp_path / "bin.tmpl"
        p.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(TemplateIOError, match=r"^Read "):
            read_template(str(p))
