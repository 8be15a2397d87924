"""Functions exposed to templates.

``join``, ``quote`` and ``env`` are plain functions; ``cv``, ``qcv``,
``cvl`` and ``qcvl`` close over a :class:`KVResolver` and are built once
per run by :func:`build_helpers`.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from consul_render.errors import EnvVarUnset
from consul_render.kv.resolver import KVResolver


def join(sep: str, xs: Sequence[str]) -> str:
    return sep.join(xs)


def quote(s: str) -> str:
    return f'"{s}"'


def env(varname: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the value of *varname*.

    An empty value counts as unset and raises :class:`EnvVarUnset`.
    """
    if environ is None:
        environ = os.environ
    value = environ.get(varname, "")
    if not value:
        raise EnvVarUnset(varname)
    return value


def build_helpers(
    resolver: KVResolver,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Callable]:
    """Return the helper name → callable mapping for one render run."""

    def env_helper(varname: str) -> str:
        return env(varname, environ)

    def cv(key: str) -> str:
        return resolver.get_value(key)

    def qcv(key: str) -> str:
        return quote(resolver.get_value(key))

    def cvl(key: str) -> List[str]:
        return resolver.list_values(key)

    def qcvl(key: str) -> List[str]:
        return [quote(v) for v in resolver.list_values(key)]

    return {
        "join": join,
        "quote": quote,
        "env": env_helper,
        "cv": cv,
        "qcv": qcv,
        "cvl": cvl,
        "qcvl": qcvl,
    }
