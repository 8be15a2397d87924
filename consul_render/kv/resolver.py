"""Prefix-scoped key lookups against the Consul KV store.

:class:`KVResolver` prepends a fixed prefix to every key and turns the
store's "absent" answers into :class:`NotFound`.  Transport and auth
failures are raised by the client as :class:`StoreUnavailable` and pass
through untouched.  Every call is one fresh read: no retries, no cache.
"""

from __future__ import annotations

import logging
from typing import Any, List

from consul_render.errors import NotFound

logger = logging.getLogger(__name__)


class KVResolver:
    """Resolve prefixed keys through a Consul client.

    *client* is anything with ``get(key) -> KVEntry | None`` and
    ``list(prefix) -> list[KVEntry]`` (normally a
    :class:`~consul_render.kv.context.ConsulContext`).
    """

    def __init__(self, client: Any, prefix: str = "") -> None:
        self._client = client
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def full_key(self, key: str) -> str:
        return self._prefix + key

    def get_value(self, key: str) -> str:
        """Return the value stored at ``prefix + key``.

        Raises :class:`NotFound` when the key does not exist.
        """
        full = self.full_key(key)
        entry = self._client.get(full)
        if entry is None:
            raise NotFound(f"Key {full} not found in Consul", full)
        logger.debug("Resolved key %s", full)
        return entry.text

    def list_values(self, key: str) -> List[str]:
        """Return the values of every key starting with ``prefix + key``.

        Keys are discarded; order is the store's listing order.
        Raises :class:`NotFound` when nothing matches.
        """
        full = self.full_key(key)
        entries = self._client.list(full)
        if not entries:
            raise NotFound(f"Prefix {full} not found in Consul", full)
        logger.debug("Resolved %d key(s) under %s", len(entries), full)
        return [entry.text for entry in entries]
