"""Render workflow orchestration."""

from consul_render.workflow.render_run import (
    describe_error,
    render_file,
    run_render,
)

__all__ = [
    "describe_error",
    "render_file",
    "run_render",
]
