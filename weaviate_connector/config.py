# weaviate_connector/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Connection configuration for the Weaviate connector.

Two inputs feed a connection:

- :class:`ConnectionSettings`, built fresh for every item from the host's
  stored credential (or from ``WEAVIATE_*`` environment variables for the CLI).
- :class:`HeaderEnvironment`, an immutable snapshot of the provider API-key
  environment variables. It is sourced once, when the node is constructed,
  and passed explicitly into the connection builder.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from weaviate_connector.errors import ConfigurationError

# Environment variable -> request header forwarded to Weaviate modules.
ENV_HEADER_MAP: Tuple[Tuple[str, str], ...] = (
    ("OPENAI_APIKEY", "X-OpenAI-Api-Key"),
    ("COHERE_APIKEY", "X-Cohere-Api-Key"),
    ("HUGGINGFACE_APIKEY", "X-HuggingFace-Api-Key"),
    ("ANTHROPIC_APIKEY", "X-Anthropic-Api-Key"),
    ("ANTHROPIC_BASEURL", "X-Anthropic-Baseurl"),
    ("AWS_ACCESS_KEY", "X-AWS-Access-Key"),
    ("AWS_SECRET_KEY", "X-AWS-Secret-Key"),
    ("VERTEX_APIKEY", "X-Goog-Vertex-Api-Key"),
    ("GOOGLE_STUDIO_APIKEY", "X-Goog-Studio-Api-Key"),
)

CLOUD_CONNECTION = "weaviate_cloud"
CUSTOM_CONNECTION = "custom_connection"

DEFAULT_HOST = "localhost"
DEFAULT_HTTP_PORT = 8080
DEFAULT_GRPC_PORT = 50051


@dataclass(frozen=True)
class HeaderEnvironment:
    """Known provider keys captured from the process environment."""

    values: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "HeaderEnvironment":
        source = os.environ if environ is None else environ
        captured = {
            name: source[name]
            for name, _ in ENV_HEADER_MAP
            if source.get(name)
        }
        return cls(values=captured)

    def headers(self) -> Dict[str, str]:
        """Translate captured variables into their request headers."""
        out: Dict[str, str] = {}
        for name, header in ENV_HEADER_MAP:
            value = self.values.get(name)
            if value:
                out[header] = value
        return out


@dataclass(frozen=True)
class CloudConnection:
    """A managed Weaviate Cloud cluster reached over HTTPS/443."""

    endpoint: str
    api_key: Optional[str] = None


@dataclass(frozen=True)
class CustomConnection:
    """A self-hosted deployment with independently configured HTTP and gRPC endpoints."""

    http_host: str = DEFAULT_HOST
    http_port: int = DEFAULT_HTTP_PORT
    http_secure: bool = False
    grpc_host: str = DEFAULT_HOST
    grpc_port: int = DEFAULT_GRPC_PORT
    grpc_secure: bool = False
    api_key: Optional[str] = None


Connection = Union[CloudConnection, CustomConnection]


def _as_bool(value: Any, *, name: str, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def _as_port(value: Any, *, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid port for {name}: {value!r}")
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid port for {name}: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Invalid port for {name}: {value!r}")
    return port


def _as_text(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


@dataclass(frozen=True)
class ConnectionSettings:
    """
    Everything needed to open a client for one item.

    ``custom_headers`` is either a JSON object string or a mapping; it is
    parsed when headers are built, so a malformed value fails the item that
    uses it and nothing else.
    """

    connection: Connection
    read_env_vars_for_headers: bool = True
    custom_headers: Union[str, Mapping[str, Any], None] = None

    @property
    def api_key(self) -> Optional[str]:
        return self.connection.api_key

    @property
    def is_cloud(self) -> bool:
        return isinstance(self.connection, CloudConnection)

    @classmethod
    def from_credentials(cls, credentials: Mapping[str, Any]) -> "ConnectionSettings":
        """Build settings from the host's stored credential mapping."""
        connection_type = _as_text(credentials.get("connection_type"), CUSTOM_CONNECTION)
        api_key = _as_text(credentials.get("weaviate_api_key"))

        connection: Connection
        if connection_type == CLOUD_CONNECTION:
            endpoint = _as_text(credentials.get("weaviate_cloud_endpoint"))
            if not endpoint:
                raise ConfigurationError("Weaviate Cloud endpoint is required")
            connection = CloudConnection(endpoint=endpoint, api_key=api_key)
        elif connection_type == CUSTOM_CONNECTION:
            connection = CustomConnection(
                http_host=_as_text(credentials.get("custom_connection_http_host"), DEFAULT_HOST),
                http_port=_as_port(
                    credentials.get("custom_connection_http_port"),
                    name="custom_connection_http_port",
                    default=DEFAULT_HTTP_PORT,
                ),
                http_secure=_as_bool(
                    credentials.get("custom_connection_http_secure"),
                    name="custom_connection_http_secure",
                    default=False,
                ),
                grpc_host=_as_text(credentials.get("custom_connection_grpc_host"), DEFAULT_HOST),
                grpc_port=_as_port(
                    credentials.get("custom_connection_grpc_port"),
                    name="custom_connection_grpc_port",
                    default=DEFAULT_GRPC_PORT,
                ),
                grpc_secure=_as_bool(
                    credentials.get("custom_connection_grpc_secure"),
                    name="custom_connection_grpc_secure",
                    default=False,
                ),
                api_key=api_key,
            )
        else:
            raise ConfigurationError(
                f"Unknown connection type: {connection_type!r}",
                details={"connection_type": connection_type},
            )

        return cls(
            connection=connection,
            read_env_vars_for_headers=_as_bool(
                credentials.get("read_env_vars_for_headers"),
                name="read_env_vars_for_headers",
                default=True,
            ),
            custom_headers=credentials.get("custom_headers_json") or None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConnectionSettings":
        return cls.from_credentials(credentials_from_env(environ))


def credentials_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Credential mapping from ``WEAVIATE_*`` variables.

    ``WEAVIATE_CLOUD_ENDPOINT`` selects a cloud connection; otherwise the
    ``WEAVIATE_HTTP_*`` / ``WEAVIATE_GRPC_*`` variables describe a custom one.
    Unset variables are left out so the credential defaults apply.
    """
    env = os.environ if environ is None else environ
    names = {
        "weaviate_api_key": "WEAVIATE_API_KEY",
        "read_env_vars_for_headers": "WEAVIATE_READ_ENV_HEADERS",
        "custom_headers_json": "WEAVIATE_CUSTOM_HEADERS",
    }
    if env.get("WEAVIATE_CLOUD_ENDPOINT"):
        credentials: Dict[str, Any] = {"connection_type": CLOUD_CONNECTION}
        names["weaviate_cloud_endpoint"] = "WEAVIATE_CLOUD_ENDPOINT"
    else:
        credentials = {"connection_type": CUSTOM_CONNECTION}
        for channel in ("http", "grpc"):
            for part in ("host", "port", "secure"):
                names[f"custom_connection_{channel}_{part}"] = f"WEAVIATE_{channel.upper()}_{part.upper()}"
    for key, var in names.items():
        if env.get(var):
            credentials[key] = env[var]
    return credentials


__all__ = [
    "ENV_HEADER_MAP",
    "CLOUD_CONNECTION",
    "CUSTOM_CONNECTION",
    "HeaderEnvironment",
    "CloudConnection",
    "CustomConnection",
    "ConnectionSettings",
    "credentials_from_env",
]
