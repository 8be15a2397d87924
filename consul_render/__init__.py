"""consul-render - render text templates from Consul KV and environment.

Substitutes values looked up in a Consul key-value store (under an
optional key prefix) and environment variables into a Jinja2 template
and writes the result to standard output.
"""

try:
    from importlib.metadata import version

    __version__ = version("consul-render")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
