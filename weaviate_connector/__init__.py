# weaviate_connector/__init__.py
# SPDX-License-Identifier: Apache-2.0

"""
Weaviate connector - Public API

Exposes a Weaviate vector database as parameterized workflow operations.
All public types and handlers are re-exported here for clean imports.
"""

from weaviate_connector.client import (
    ConnectParams,
    build_headers,
    open_client,
    resolve_connect_params,
)
from weaviate_connector.config import (
    CloudConnection,
    ConnectionSettings,
    CustomConnection,
    HeaderEnvironment,
)
from weaviate_connector.error_context import attach_context, get_context
from weaviate_connector.errors import (
    ConfigurationError,
    ConnectorError,
    NotSupported,
    TransportError,
    ValidationError,
)
from weaviate_connector.filters import build_filter
from weaviate_connector.formatting import build_operation_metadata, format_search_results
from weaviate_connector.generative import GenerativeProviderConfig, build_generative_config
from weaviate_connector.node import (
    MetricsSink,
    NoopMetrics,
    Resource,
    ResultItem,
    WeaviateNode,
    WireNodeHandler,
)
from weaviate_connector.params import (
    ByName,
    ExecutionContext,
    FromList,
    StaticExecutionContext,
)
from weaviate_connector.rest import WeaviateRestClient

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Configuration
    "CloudConnection",
    "CustomConnection",
    "ConnectionSettings",
    "HeaderEnvironment",
    # Connection
    "ConnectParams",
    "build_headers",
    "resolve_connect_params",
    "open_client",
    "WeaviateRestClient",
    # Errors
    "ConnectorError",
    "ValidationError",
    "ConfigurationError",
    "TransportError",
    "NotSupported",
    "attach_context",
    "get_context",
    # Building blocks
    "build_filter",
    "build_operation_metadata",
    "format_search_results",
    "build_generative_config",
    "GenerativeProviderConfig",
    # Host integration
    "ExecutionContext",
    "StaticExecutionContext",
    "ByName",
    "FromList",
    "Resource",
    "ResultItem",
    "MetricsSink",
    "NoopMetrics",
    "WeaviateNode",
    "WireNodeHandler",
]
