"""Console diagnostics for consul-render.

Thin wrapper around :mod:`rich`.  Standard output carries only the
rendered template, so every message here goes to stderr.  Messages are
markup-escaped: rendered values and Consul keys may contain ``[``.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

# Shared console; resolves sys.stderr at print time.
console = Console(stderr=True, force_terminal=None, soft_wrap=True)

_WARN = "[bold yellow]⚠[/]"
_DOT = "[dim]·[/]"


def info(msg: str) -> None:
    """Dim dot + informational message."""
    console.print(f"{_DOT} [dim]{escape(msg)}[/]", highlight=False)


def warn(msg: str) -> None:
    """Yellow warning + message."""
    console.print(f"{_WARN} [yellow]{escape(msg)}[/]", highlight=False)


def error_msg(msg: str) -> None:
    """Bold red error message."""
    console.print(f"[bold red]ERROR:[/] {escape(msg)}", highlight=False)
