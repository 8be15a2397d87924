"""Shared fixtures: an in-memory stand-in for the Consul client."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from consul_render.kv.context import KVEntry


class FakeConsul:
    """Dict-backed client with the ``get`` / ``list`` surface of ConsulContext."""

    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self.data = dict(data or {})
        self.calls: List[tuple] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeConsul":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, key: str) -> Optional[KVEntry]:
        self.calls.append(("get", key))
        if key not in self.data:
            return None
        return KVEntry(key=key, value=self.data[key].encode("utf-8"))

    def list(self, prefix: str) -> List[KVEntry]:
        self.calls.append(("list", prefix))
        return [
            KVEntry(key=k, value=v.encode("utf-8"))
            for k, v in sorted(self.data.items())
            if k.startswith(prefix)
        ]


@pytest.fixture
def fake_consul() -> FakeConsul:
    return FakeConsul(
        {
            "app/a": "1",
            "app/list/y": "2",
            "app/list/x": "1",
            "app/name": "web",
            "b": "top-level",
        }
    )
