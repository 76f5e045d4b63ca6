"""Per-invocation context handed to every tool handler."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from shared.config import Settings
from shared.errors import MissingCredentialError
from shared.zerops_client import ZeropsClient


class TransportKind(str, enum.Enum):
    STDIO = "stdio"
    HTTP = "http"


@dataclass(frozen=True)
class ClientInfo:
    """Caller identity from the ``initialize`` handshake. Advisory only."""

    name: str = ""
    version: str = ""

    @classmethod
    def from_params(cls, params: Any) -> ClientInfo | None:
        if not isinstance(params, dict):
            return None
        info = params.get("clientInfo")
        if not isinstance(info, dict):
            return None
        return cls(name=str(info.get("name", "")), version=str(info.get("version", "")))


@dataclass(frozen=True)
class InvocationContext:
    """Everything a handler may use for one call.

    Built fresh for every invocation and never stored after the call returns.
    """

    transport: TransportKind
    client: ZeropsClient | None = None
    client_info: ClientInfo | None = None
    protocol_version: str | None = None

    def require_client(self) -> ZeropsClient:
        """Return the API client or raise a reportable error when no credential is set."""
        if self.client is None:
            raise MissingCredentialError()
        return self.client


def build_client(api_key: str | None, settings: Settings) -> ZeropsClient | None:
    """Create an API client bound to ``api_key``, or None when there is no key."""
    if not api_key:
        return None
    return ZeropsClient(api_key, base_url=settings.zerops_api_url, timeout=settings.upstream_timeout)


def build_context(
    transport: TransportKind,
    api_key: str | None,
    settings: Settings,
    client_info: ClientInfo | None = None,
    protocol_version: str | None = None,
) -> InvocationContext:
    return InvocationContext(
        transport=transport,
        client=build_client(api_key, settings),
        client_info=client_info,
        protocol_version=protocol_version,
    )
