"""Consul KV access: client context and prefix-scoped resolver."""

from consul_render.kv.context import ConsulContext, KVEntry
from consul_render.kv.resolver import KVResolver

__all__ = [
    "ConsulContext",
    "KVEntry",
    "KVResolver",
]
