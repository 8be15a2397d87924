"""CLI entry point for consul-render, built on typer.

Renders one template file to standard output.

Usage::

    consul-render config.tmpl
    consul-render -prefix service/web/ config.tmpl
    consul-render --stream --debug config.tmpl

Consul connection settings come from the usual ``CONSUL_HTTP_ADDR``,
``CONSUL_HTTP_TOKEN`` (etc.) environment variables.
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

import typer

from consul_render import ui
from consul_render.errors import EXIT_SUCCESS, UsageError
from consul_render.workflow.render_run import run_render

app = typer.Typer(
    name="consul-render",
    help="Render a template from Consul KV values and environment variables.",
    add_completion=False,
)


@app.command()
def render(
    template: Optional[List[str]] = typer.Argument(
        None,
        metavar="TEMPLATE",
        help="Path to the template file.",
        show_default=False,
    ),
    prefix: str = typer.Option(
        "",
        "-prefix",
        "--prefix",
        "-p",
        help="Prefix for Consul keys.",
    ),
    stream: bool = typer.Option(
        False,
        "--stream",
        help=(
            "Write output as it is generated. A failure mid-render "
            "leaves partial output on stdout."
        ),
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging on stderr.",
    ),
) -> None:
    """Render TEMPLATE to stdout.

    Template helpers:
      cv / qcv      value of <prefix><key> (qcv: double-quoted)
      cvl / qcvl    values under <prefix><key> (qcvl: each quoted)
      env           environment variable (unset or empty is an error)
      join, quote   string helpers
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    paths = template or []
    if len(paths) != 1:
        err = UsageError(f"Got {len(paths)} arguments, expected 1")
        ui.error_msg(str(err))
        raise typer.Exit(err.exit_code)

    rc = run_render(paths[0], prefix=prefix, buffered=not stream)
    if debug and rc == EXIT_SUCCESS:
        ui.info(f"Rendered {paths[0]}")
    raise typer.Exit(rc)


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
