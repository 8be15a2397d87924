"""Consul connection configuration resolved from the environment."""

from consul_render.config.environment import (
    load_consul_config,
    parse_bool,
    parse_http_auth,
    read_token_file,
    split_address,
)
from consul_render.config.models import DEFAULT_ADDRESS, ConsulConfig

__all__ = [
    "ConsulConfig",
    "DEFAULT_ADDRESS",
    "load_consul_config",
    "parse_bool",
    "parse_http_auth",
    "read_token_file",
    "split_address",
]
