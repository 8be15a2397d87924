"""Consul context: connection config and HTTP session.

Wraps :class:`requests.Session` construction and the two KV reads this
tool needs (``GET /v1/kv/<key>`` and ``GET /v1/kv/<prefix>?recurse``)
into a single :class:`ConsulContext` the resolver depends on.

Status handling matches the Consul API client:

* ``200`` → JSON list of entries, ``Value`` base64-encoded (or ``null``)
* ``404`` → no such key / no key under the prefix
* anything else → :class:`StoreUnavailable`
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests

from consul_render.config.environment import load_consul_config
from consul_render.config.models import ConsulConfig
from consul_render.errors import ClientInitError, StoreUnavailable

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Consul-Token"
KV_ENDPOINT = "/v1/kv/"


# ---------------------------------------------------------------------------
# KVEntry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KVEntry:
    """A single key/value pair as stored in Consul."""

    key: str
    value: bytes = b""

    @property
    def text(self) -> str:
        """Value decoded as UTF-8; undecodable bytes become U+FFFD."""
        return self.value.decode("utf-8", errors="replace")

    @classmethod
    def from_json(cls, item: Mapping[str, Any]) -> "KVEntry":
        """Build from one element of a ``/v1/kv`` response body."""
        raw = item.get("Value")
        if raw is None:
            return cls(key=str(item.get("Key", "")))
        try:
            value = base64.b64decode(raw, validate=True)
        except (binascii.Error, TypeError) as exc:
            raise StoreUnavailable(
                f"Malformed value for key {item.get('Key')!r}: {exc}"
            ) from exc
        return cls(key=str(item.get("Key", "")), value=value)


# ---------------------------------------------------------------------------
# ConsulContext
# ---------------------------------------------------------------------------


@dataclass
class ConsulContext:
    """Resolved connection config plus a cached HTTP session.

    Attributes:
        config: Settings resolved from ``CONSUL_*`` env vars.
    """

    config: ConsulConfig
    _session: Any = field(default=None, repr=False, compare=False)

    # -- factory ----------------------------------------------------------

    @classmethod
    def build(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> "ConsulContext":
        """Construct a :class:`ConsulContext` from the environment.

        No request is made; connectivity problems surface on the first
        read as :class:`StoreUnavailable`.

        Raises :class:`ClientInitError` on invalid settings.
        """
        config = load_consul_config(environ)
        _check_tls_files(config)
        ctx = cls(config=config)
        ctx._session = _configure_session(session or requests.Session(), config)
        return ctx

    # -- session accessor -------------------------------------------------

    @property
    def session(self) -> requests.Session:
        """Return the cached :class:`requests.Session`."""
        if self._session is None:
            self._session = _configure_session(requests.Session(), self.config)
        return self._session

    def close(self) -> None:
        """Close the HTTP session, if one was opened."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ConsulContext":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- KV reads ---------------------------------------------------------

    def get(self, key: str) -> Optional[KVEntry]:
        """Return the entry stored at *key*, or ``None`` if absent."""
        body = self._read(key, {})
        if not body:
            return None
        return KVEntry.from_json(body[0])

    def list(self, prefix: str) -> List[KVEntry]:
        """Return every entry whose key starts with *prefix*, in key order."""
        body = self._read(prefix, {"recurse": ""})
        return [KVEntry.from_json(item) for item in body or []]

    def kv_url(self, key: str) -> str:
        """Full URL of *key* under the KV endpoint."""
        if key.startswith("/"):
            key = key[1:]
        return self.config.base_url + KV_ENDPOINT + quote(key, safe="/")

    def _read(self, key: str, extra: Dict[str, str]) -> Optional[List[Any]]:
        url = self.kv_url(key)
        params = {**self.config.request_params(), **extra}
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(url, params=params)
        except requests.RequestException as exc:
            raise StoreUnavailable(
                f"Consul request for {key!r} failed: {exc}"
            ) from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreUnavailable(
                f"Unexpected response code: {resp.status_code} ({resp.text.strip()})",
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreUnavailable(
                f"Consul returned a non-JSON body for {key!r}: {exc}"
            ) from exc
        if not isinstance(body, list):
            raise StoreUnavailable(
                f"Consul returned an unexpected body for {key!r}: {type(body).__name__}"
            )
        return body


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _check_tls_files(config: ConsulConfig) -> None:
    """Fail early if a configured certificate file is missing."""
    for label, path in (
        ("CA certificate", config.ca_cert),
        ("client certificate", config.client_cert),
        ("client key", config.client_key),
    ):
        if path and not Path(path).is_file():
            raise ClientInitError(
                f"Constructing Consul client with default config: "
                f"{label} not found: {path}"
            )


def _configure_session(
    session: requests.Session, config: ConsulConfig
) -> requests.Session:
    for name, value in config.session_kwargs().items():
        setattr(session, name, value)
    if config.token:
        session.headers[TOKEN_HEADER] = config.token
    return session
