# weaviate_connector/client.py
# SPDX-License-Identifier: Apache-2.0
"""
Connection builder.

Turns :class:`ConnectionSettings` plus the captured :class:`HeaderEnvironment`
into request headers and connect parameters, and opens one scoped Weaviate
client per item.

Header precedence (last writer wins):

    1. provider keys from the environment   (when read_env_vars_for_headers)
    2. Authorization: Bearer <api key>      (when an API key is stored)
    3. custom headers JSON                  (always merged last)

The Weaviate Python client is synchronous; connecting, closing and every
call made through :func:`call_client` run on a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional, TypeVar

import weaviate

from weaviate_connector.config import (
    CloudConnection,
    ConnectionSettings,
    HeaderEnvironment,
)
from weaviate_connector.errors import ConfigurationError, ConnectorError, translate_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOUD_PORT = 443


@dataclass(frozen=True)
class ConnectParams:
    """Resolved endpoints and headers for one connection."""

    http_host: str
    http_port: int
    http_secure: bool
    grpc_host: str
    grpc_port: int
    grpc_secure: bool
    headers: Dict[str, str] = field(default_factory=dict)
    base_url: str = ""


ClientFactory = Callable[[ConnectParams], Any]


def ensure_scheme(endpoint: str) -> str:
    """Prefix ``https://`` when the endpoint carries no protocol."""
    if endpoint.startswith("http://") or endpoint.startswith("https://"):
        return endpoint
    return f"https://{endpoint}"


def strip_scheme(host: str) -> str:
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
            break
    return host.rstrip("/")


def parse_custom_headers(raw: Any) -> Dict[str, str]:
    """
    Decode the custom headers setting.

    Accepts a JSON object string or a mapping. Empty values mean no overrides.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        parsed: Any = raw
    elif isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in custom headers: {exc}") from exc
    else:
        raise ConfigurationError(
            f"Invalid JSON in custom headers: expected an object, got {type(raw).__name__}"
        )
    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Invalid JSON in custom headers: expected an object")
    return {str(k): str(v) for k, v in parsed.items()}


def build_headers(
    settings: ConnectionSettings,
    environment: Optional[HeaderEnvironment] = None,
) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if settings.read_env_vars_for_headers and environment is not None:
        headers.update(environment.headers())
    if settings.api_key:
        headers["Authorization"] = f"Bearer {settings.api_key}"
    headers.update(parse_custom_headers(settings.custom_headers))
    return headers


def rest_base_url(settings: ConnectionSettings) -> str:
    conn = settings.connection
    if isinstance(conn, CloudConnection):
        return ensure_scheme(conn.endpoint).rstrip("/")
    scheme = "https" if conn.http_secure else "http"
    return f"{scheme}://{conn.http_host}:{conn.http_port}"


def resolve_connect_params(
    settings: ConnectionSettings,
    environment: Optional[HeaderEnvironment] = None,
) -> ConnectParams:
    headers = build_headers(settings, environment)
    conn = settings.connection
    if isinstance(conn, CloudConnection):
        host = ensure_scheme(conn.endpoint)
        return ConnectParams(
            http_host=host,
            http_port=CLOUD_PORT,
            http_secure=True,
            grpc_host=host,
            grpc_port=CLOUD_PORT,
            grpc_secure=True,
            headers=headers,
            base_url=rest_base_url(settings),
        )
    return ConnectParams(
        http_host=conn.http_host,
        http_port=conn.http_port,
        http_secure=conn.http_secure,
        grpc_host=conn.grpc_host,
        grpc_port=conn.grpc_port,
        grpc_secure=conn.grpc_secure,
        headers=headers,
        base_url=rest_base_url(settings),
    )


def default_client_factory(params: ConnectParams) -> weaviate.WeaviateClient:
    # connect_to_custom expects bare host names.
    return weaviate.connect_to_custom(
        http_host=strip_scheme(params.http_host),
        http_port=params.http_port,
        http_secure=params.http_secure,
        grpc_host=strip_scheme(params.grpc_host),
        grpc_port=params.grpc_port,
        grpc_secure=params.grpc_secure,
        headers=dict(params.headers),
    )


@asynccontextmanager
async def open_client(
    settings: ConnectionSettings,
    environment: Optional[HeaderEnvironment] = None,
    factory: Optional[ClientFactory] = None,
) -> AsyncIterator[Any]:
    """
    Connect, yield the client, and close it whatever the outcome.

    Connection failures surface immediately as TransportError.
    """
    params = resolve_connect_params(settings, environment)
    factory = factory or default_client_factory
    logger.debug(
        "Connecting to Weaviate at %s (headers: %s)",
        params.base_url,
        sorted(params.headers),
    )
    try:
        client = await asyncio.to_thread(factory, params)
    except ConnectorError:
        raise
    except Exception as exc:
        raise translate_error(exc, op="connect") from exc

    try:
        yield client
    finally:
        try:
            await asyncio.to_thread(client.close)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to close Weaviate client: %s", exc)


async def call_client(op: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking client call on a worker thread and normalize its errors."""
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except ConnectorError:
        raise
    except Exception as exc:
        raise translate_error(exc, op=op) from exc


__all__ = [
    "CLOUD_PORT",
    "ConnectParams",
    "ClientFactory",
    "ensure_scheme",
    "strip_scheme",
    "parse_custom_headers",
    "build_headers",
    "rest_base_url",
    "resolve_connect_params",
    "default_client_factory",
    "open_client",
    "call_client",
]
