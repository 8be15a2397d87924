"""Resolve :class:`ConsulConfig` from ``CONSUL_*`` environment variables.

Follows the Consul API client's default-config rules:

* ``CONSUL_HTTP_ADDR`` may carry an ``http://`` or ``https://`` scheme;
  ``https://`` switches the scheme.  ``unix://`` sockets are rejected.
* ``CONSUL_HTTP_SSL`` / ``CONSUL_HTTP_SSL_VERIFY`` are booleans; values
  that do not parse are logged and ignored.
* ``CONSUL_HTTP_TOKEN_FILE`` overrides ``CONSUL_HTTP_TOKEN`` when the
  file holds a non-empty token.
* ``CONSUL_HTTP_AUTH`` is ``user[:password]``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

from pydantic import ValidationError

from consul_render.config.models import DEFAULT_ADDRESS, ConsulConfig
from consul_render.errors import ClientInitError

logger = logging.getLogger(__name__)

ENV_HTTP_ADDR = "CONSUL_HTTP_ADDR"
ENV_HTTP_TOKEN = "CONSUL_HTTP_TOKEN"
ENV_HTTP_TOKEN_FILE = "CONSUL_HTTP_TOKEN_FILE"
ENV_HTTP_AUTH = "CONSUL_HTTP_AUTH"
ENV_HTTP_SSL = "CONSUL_HTTP_SSL"
ENV_HTTP_SSL_VERIFY = "CONSUL_HTTP_SSL_VERIFY"
ENV_CACERT = "CONSUL_CACERT"
ENV_CLIENT_CERT = "CONSUL_CLIENT_CERT"
ENV_CLIENT_KEY = "CONSUL_CLIENT_KEY"
ENV_NAMESPACE = "CONSUL_NAMESPACE"
ENV_PARTITION = "CONSUL_PARTITION"

_TRUE_VALUES = frozenset({"1", "t", "T", "true", "TRUE", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "false", "FALSE", "False"})


def parse_bool(value: str) -> Optional[bool]:
    """Parse a boolean the way Go's ``strconv.ParseBool`` does.

    Returns ``None`` when *value* is not a recognised boolean.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def split_address(raw: str) -> Tuple[str, Optional[str]]:
    """Split ``https://host:port`` into ``("host:port", "https")``.

    The scheme is ``None`` when *raw* carries none.
    """
    if raw.startswith("unix://"):
        raise ClientInitError(
            f"Constructing Consul client with default config: "
            f"unix socket address '{raw}' is not supported"
        )
    for scheme in ("https", "http"):
        marker = f"{scheme}://"
        if raw.startswith(marker):
            return raw[len(marker):].rstrip("/"), scheme
    return raw, None


def parse_http_auth(raw: str) -> Optional[Tuple[str, str]]:
    """``user:pass`` → ``("user", "pass")``; ``user`` → ``("user", "")``."""
    if not raw:
        return None
    username, _, password = raw.partition(":")
    return username, password


def read_token_file(path: str) -> str:
    """Return the stripped token held in *path*.

    Raises :class:`ClientInitError` if the file cannot be read.
    """
    try:
        return Path(path).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ClientInitError(
            f"Constructing Consul client with default config: "
            f"Error loading token file {path}: {exc}"
        ) from exc


def _env_bool(environ: Mapping[str, str], name: str) -> Optional[bool]:
    raw = environ.get(name, "")
    if not raw:
        return None
    parsed = parse_bool(raw)
    if parsed is None:
        logger.warning("Could not parse %s=%r as a boolean; ignoring.", name, raw)
    return parsed


def load_consul_config(environ: Optional[Mapping[str, str]] = None) -> ConsulConfig:
    """Build a :class:`ConsulConfig` from *environ* (default ``os.environ``).

    Raises :class:`ClientInitError` on any invalid setting.
    """
    if environ is None:
        environ = os.environ

    address, scheme = split_address(environ.get(ENV_HTTP_ADDR, "") or DEFAULT_ADDRESS)
    use_ssl = _env_bool(environ, ENV_HTTP_SSL)
    if use_ssl is not None:
        scheme = "https" if use_ssl else scheme
    verify = _env_bool(environ, ENV_HTTP_SSL_VERIFY)

    token = environ.get(ENV_HTTP_TOKEN, "")
    token_file = environ.get(ENV_HTTP_TOKEN_FILE, "")
    if token_file:
        token = read_token_file(token_file) or token

    try:
        config = ConsulConfig(
            address=address,
            scheme=scheme or "http",
            token=token,
            http_auth=parse_http_auth(environ.get(ENV_HTTP_AUTH, "")),
            verify_ssl=True if verify is None else verify,
            ca_cert=environ.get(ENV_CACERT) or None,
            client_cert=environ.get(ENV_CLIENT_CERT) or None,
            client_key=environ.get(ENV_CLIENT_KEY) or None,
            namespace=environ.get(ENV_NAMESPACE) or None,
            partition=environ.get(ENV_PARTITION) or None,
        )
    except ValidationError as exc:
        raise ClientInitError(
            f"Constructing Consul client with default config: {_first_error(exc)}"
        ) from exc

    logger.debug(
        "Consul config: %s (token=%s, ns=%s)",
        config.base_url,
        "set" if config.token else "unset",
        config.namespace or "-",
    )
    return config


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    msg = str(errors[0].get("msg", exc))
    return msg.removeprefix("Value error, ")
