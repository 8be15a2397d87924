"""Jinja2 template engine with Consul helpers and strict undefined keys.

Templates use Jinja2's native syntax, with the helpers from
:mod:`consul_render.render.helpers` registered as globals::

    listen = {{ cv("http/port") }}
    servers = [{{ join(", ", qcvl("servers/")) }}]
    token = {{ env("APP_TOKEN") | quote }}

Failure points:

* compile time: bad syntax, unknown filters, and calls to names that are
  neither helpers nor defined by the template itself;
* run time: any reference to a data field (the data context is always
  empty), or any helper error.  Output already written stays written.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Iterator, Mapping, TextIO, Tuple

import jinja2
from jinja2 import nodes

from consul_render.errors import (
    ConsulRenderError,
    MissingDataKeyError,
    TemplateExecutionError,
    TemplateIOError,
    TemplateSyntaxError,
    UndefinedHelperError,
)

logger = logging.getLogger(__name__)

# Callables Jinja2 provides inside macros, call blocks and block overrides.
_IMPLICIT_CALLABLES = frozenset({"caller", "super"})


# ── template file ────────────────────────────────────────────────────


def read_template(path: str) -> str:
    """Return the UTF-8 text of the template at *path*.

    Raises
    ------
    TemplateIOError
        If the file cannot be opened or read.
    """
    try:
        handle = Path(path).open(encoding="utf-8")
    except OSError as exc:
        raise TemplateIOError(f"Open {path}: {exc.strerror or exc}") from exc
    with handle:
        try:
            return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateIOError(f"Read {path}: {exc}") from exc


# ── engine ───────────────────────────────────────────────────────────


def build_environment(
    helpers: Mapping[str, Callable],
    *,
    strict: bool = True,
) -> jinja2.Environment:
    """Return a Jinja2 environment with *helpers* registered as globals.

    With *strict* set, undefined names raise instead of rendering empty.
    ``quote`` is also registered as a filter for pipeline style use.
    """
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined if strict else jinja2.Undefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.globals.update(helpers)
    if "quote" in helpers:
        env.filters["quote"] = helpers["quote"]
    return env


def find_undefined_calls(
    tree: nodes.Template, known: Mapping[str, object]
) -> Iterator[Tuple[str, int]]:
    """Yield ``(name, lineno)`` for each call to a name nobody defines.

    A name counts as defined when it is in *known* (environment globals),
    is a macro, or is bound by the template (``set``, loop targets, macro
    parameters).
    """
    defined = set(known) | _IMPLICIT_CALLABLES
    for macro in tree.find_all(nodes.Macro):
        defined.add(macro.name)
    for name in tree.find_all(nodes.Name):
        if name.ctx in ("store", "param"):
            defined.add(name.name)
    for call in tree.find_all(nodes.Call):
        target = call.node
        if isinstance(target, nodes.Name) and target.name not in defined:
            yield target.name, call.lineno


def find_unknown_filters(
    tree: nodes.Template, env: jinja2.Environment
) -> Iterator[Tuple[str, str, int]]:
    """Yield ``(kind, name, lineno)`` for filters and tests *env* lacks.

    Jinja2 defers these checks to render time inside conditional blocks.
    """
    for node in tree.find_all(nodes.Filter):
        if node.name not in env.filters:
            yield "filter", node.name, node.lineno
    for node in tree.find_all(nodes.Test):
        if node.name not in env.tests:
            yield "test", node.name, node.lineno


def compile_template(
    source: str,
    helpers: Mapping[str, Callable],
    *,
    strict: bool = True,
) -> jinja2.Template:
    """Parse and compile *source* against *helpers*.

    Raises
    ------
    TemplateSyntaxError
        On invalid syntax or an unknown filter/test.
    UndefinedHelperError
        When the template calls a function that is not defined.
    """
    env = build_environment(helpers, strict=strict)
    try:
        template = env.from_string(source)
        tree = env.parse(source)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateSyntaxError(
            f"line {exc.lineno}: {exc.message}", exc.lineno
        ) from exc

    for kind, name, lineno in find_unknown_filters(tree, env):
        raise TemplateSyntaxError(f"line {lineno}: No {kind} named {name!r}.", lineno)
    for name, lineno in find_undefined_calls(tree, env.globals):
        raise UndefinedHelperError(name, lineno)

    logger.debug("Compiled template (%d chars)", len(source))
    return template


def execute_template(template: jinja2.Template, stream: TextIO) -> None:
    """Execute *template* with an empty data context, streaming to *stream*.

    Helper errors propagate unchanged.

    Raises
    ------
    MissingDataKeyError
        When the template references an undefined data field.
    TemplateExecutionError
        On any other failure raised while evaluating the template (bad
        helper arguments, division by zero, failing string methods).
    """
    try:
        for chunk in template.generate():
            stream.write(chunk)
    except ConsulRenderError:
        raise
    except jinja2.UndefinedError as exc:
        raise MissingDataKeyError(f"map has no entry for key: {exc.message}") from exc
    except Exception as exc:
        raise TemplateExecutionError(f"{type(exc).__name__}: {exc}") from exc


def render_template(
    source: str,
    helpers: Mapping[str, Callable],
    *,
    strict: bool = True,
) -> str:
    """Compile and execute *source*, returning the rendered text."""
    template = compile_template(source, helpers, strict=strict)
    buf = io.StringIO()
    execute_template(template, buf)
    return buf.getvalue()
