"""Template rendering: Jinja2 engine plus the Consul/env helper set."""

from consul_render.render.helpers import (
    build_helpers,
    env,
    join,
    quote,
)
from consul_render.render.renderer import (
    build_environment,
    compile_template,
    execute_template,
    find_undefined_calls,
    find_unknown_filters,
    read_template,
    render_template,
)

__all__ = [
    "build_environment",
    "build_helpers",
    "compile_template",
    "env",
    "execute_template",
    "find_undefined_calls",
    "find_unknown_filters",
    "join",
    "quote",
    "read_template",
    "render_template",
]
