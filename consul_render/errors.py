"""Error types and exit codes for consul-render.

Every failure in a render run is one of these.  Library code raises them;
:func:`consul_render.workflow.render_run.run_render` turns them into a
single diagnostic line and the matching exit code.
"""

from __future__ import annotations

from typing import Optional

# ── exit codes ───────────────────────────────────────────────────────

EXIT_SUCCESS = 0
EXIT_RENDER_FAILURE = 1
EXIT_USAGE = 2
EXIT_STORE_FAILURE = 3


class ConsulRenderError(Exception):
    """Base error for all consul-render failures."""

    exit_code: int = EXIT_RENDER_FAILURE


class UsageError(ConsulRenderError):
    """Wrong number of command-line arguments."""

    exit_code = EXIT_USAGE


class TemplateIOError(ConsulRenderError):
    """Template file could not be opened or read."""


class ClientInitError(ConsulRenderError):
    """Consul client could not be constructed from the environment."""

    exit_code = EXIT_STORE_FAILURE


class TemplateSyntaxError(ConsulRenderError):
    """Template failed to parse or compile."""

    def __init__(self, message: str, lineno: Optional[int] = None):
        super().__init__(message)
        self.lineno = lineno


class UndefinedHelperError(TemplateSyntaxError):
    """Template calls a function that is not a registered helper."""

    def __init__(self, name: str, lineno: Optional[int] = None):
        super().__init__(f'function "{name}" not defined', lineno)
        self.name = name


class MissingDataKeyError(ConsulRenderError):
    """Template referenced a data field absent from the data context."""


class TemplateExecutionError(ConsulRenderError):
    """Any other failure while executing a compiled template."""


class NotFound(ConsulRenderError):
    """Key or prefix has no entries in the store."""

    def __init__(self, message: str, key: str):
        super().__init__(message)
        self.key = key


class StoreUnavailable(ConsulRenderError):
    """Transport, auth or unexpected-status failure talking to Consul."""

    exit_code = EXIT_STORE_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EnvVarUnset(ConsulRenderError):
    """Environment variable is unset or empty."""

    def __init__(self, name: str):
        super().__init__(f"Environment variable {name} not set")
        self.name = name
