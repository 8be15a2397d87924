"""Pydantic model for the Consul connection settings.

Mirrors the Consul API client's default config: every field is filled
from ``CONSUL_*`` environment variables by
:func:`consul_render.config.environment.load_consul_config`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_ADDRESS = "127.0.0.1:8500"


class ConsulConfig(BaseModel):
    """Connection settings for the Consul HTTP API.

    Attributes:
        address: ``host:port`` of the agent, without scheme.
        scheme: ``http`` or ``https``.
        token: ACL token sent as ``X-Consul-Token``.
        http_auth: ``(username, password)`` for HTTP basic auth.
        verify_ssl: Verify the server certificate when using https.
        ca_cert: Path to a CA bundle.
        client_cert: Path to a TLS client certificate.
        client_key: Path to the TLS client key.
        namespace: Enterprise namespace (``ns`` query parameter).
        partition: Enterprise admin partition.
    """

    address: str = Field(default=DEFAULT_ADDRESS)
    scheme: str = Field(default="http")
    token: str = Field(default="")
    http_auth: Optional[Tuple[str, str]] = None
    verify_ssl: bool = True
    ca_cert: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None
    namespace: Optional[str] = None
    partition: Optional[str] = None

    @field_validator("scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.lower()
        if value not in ("http", "https"):
            raise ValueError(f"unsupported scheme '{value}'")
        return value

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not value:
            raise ValueError("address must not be empty")
        if "/" in value:
            raise ValueError(f"address '{value}' must be host:port")
        return value

    @model_validator(mode="after")
    def _check_tls_pair(self) -> "ConsulConfig":
        if self.client_key and not self.client_cert:
            raise ValueError("client key given without a client certificate")
        return self

    # -- derived request settings ----------------------------------------

    @property
    def base_url(self) -> str:
        """Root URL of the agent, e.g. ``http://127.0.0.1:8500``."""
        return f"{self.scheme}://{self.address}"

    def request_params(self) -> Dict[str, str]:
        """Query parameters sent with every KV request."""
        params: Dict[str, str] = {}
        if self.namespace:
            params["ns"] = self.namespace
        if self.partition:
            params["partition"] = self.partition
        return params

    def session_kwargs(self) -> Dict[str, Any]:
        """Attributes to set on a :class:`requests.Session`."""
        verify: Union[bool, str] = self.verify_ssl
        if self.verify_ssl and self.ca_cert:
            verify = self.ca_cert
        kwargs: Dict[str, Any] = {"verify": verify}
        if self.client_cert:
            kwargs["cert"] = (
                (self.client_cert, self.client_key)
                if self.client_key
                else self.client_cert
            )
        if self.http_auth:
            kwargs["auth"] = self.http_auth
        return kwargs
