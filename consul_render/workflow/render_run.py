"""Single render pass: template file + Consul + env → stdout.

Order of operations:

1. Read the template file.
2. Build the Consul context from ``CONSUL_*`` env vars.
3. Build the helper set bound to a resolver and the key prefix.
4. Compile the template (syntax errors, undefined helpers).
5. Execute against an empty data context.

:func:`render_file` raises; :func:`run_render` reports the failure and
returns an exit code for the CLI.
"""

from __future__ import annotations

import io
import logging
import sys
from typing import Any, Mapping, Optional, TextIO

from consul_render import ui
from consul_render.errors import (
    EXIT_SUCCESS,
    ClientInitError,
    ConsulRenderError,
    TemplateIOError,
    TemplateSyntaxError,
    UsageError,
)
from consul_render.kv.context import ConsulContext
from consul_render.kv.resolver import KVResolver
from consul_render.render.helpers import build_helpers
from consul_render.render.renderer import (
    compile_template,
    execute_template,
    read_template,
)

logger = logging.getLogger(__name__)


def render_file(
    template_path: str,
    stream: TextIO,
    *,
    prefix: str = "",
    buffered: bool = True,
    environ: Optional[Mapping[str, str]] = None,
    client: Any = None,
) -> None:
    """Render the template at *template_path* into *stream*.

    With *buffered* set, nothing reaches *stream* unless the whole render
    succeeds.  Otherwise chunks are written as generated and a failure
    leaves partial output behind.

    *client* overrides the Consul client built from *environ*; a client
    built here is closed before returning.
    """
    source = read_template(template_path)
    if client is not None:
        _render_source(source, stream, client, prefix, buffered, environ)
    else:
        with ConsulContext.build(environ) as ctx:
            _render_source(source, stream, ctx, prefix, buffered, environ)
    logger.debug("Rendered %s (prefix=%r)", template_path, prefix)


def _render_source(
    source: str,
    stream: TextIO,
    client: Any,
    prefix: str,
    buffered: bool,
    environ: Optional[Mapping[str, str]],
) -> None:
    resolver = KVResolver(client, prefix)
    template = compile_template(source, build_helpers(resolver, environ))

    if buffered:
        buf = io.StringIO()
        execute_template(template, buf)
        stream.write(buf.getvalue())
    else:
        execute_template(template, stream)
    stream.flush()


def describe_error(exc: ConsulRenderError, template_path: str) -> str:
    """One-line diagnostic naming the failing operation and its cause."""
    if isinstance(exc, (UsageError, TemplateIOError, ClientInitError)):
        return str(exc)
    if isinstance(exc, TemplateSyntaxError):
        return (
            f"Error processing template {template_path}: "
            f"Error parsing template: {exc}"
        )
    return f"Error processing template {template_path}: {exc}"


def run_render(
    template_path: str,
    *,
    prefix: str = "",
    stream: Optional[TextIO] = None,
    buffered: bool = True,
    environ: Optional[Mapping[str, str]] = None,
    client: Any = None,
) -> int:
    """Render to *stream* (default stdout) and return an exit code."""
    out = stream if stream is not None else sys.stdout
    try:
        render_file(
            template_path,
            out,
            prefix=prefix,
            buffered=buffered,
            environ=environ,
            client=client,
        )
    except ConsulRenderError as exc:
        message = describe_error(exc, template_path)
        logger.debug("Render failed: %s", message, exc_info=True)
        ui.error_msg(message)
        if not buffered:
            ui.warn("Output may be incomplete.")
        return exc.exit_code
    return EXIT_SUCCESS
