# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures for the Weaviate connector tests.

No live cluster is needed: the client edge is replaced by
``tests.mock.mock_weaviate_client`` and the REST edge by ``httpx.MockTransport``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

import httpx
import pytest

from tests.mock.mock_weaviate_client import FakeClientFactory, FakeWeaviateClient
from weaviate_connector.config import ConnectionSettings, HeaderEnvironment
from weaviate_connector.node import WeaviateNode
from weaviate_connector.operations.base import OperationCall
from weaviate_connector.params import ItemParameters, StaticExecutionContext

LOCAL_CREDENTIALS: Dict[str, Any] = {"connection_type": "custom_connection"}


@pytest.fixture
def fake_client() -> FakeWeaviateClient:
    return FakeWeaviateClient()


@pytest.fixture
def factory(fake_client: FakeWeaviateClient) -> FakeClientFactory:
    return FakeClientFactory(fake_client)


@pytest.fixture
def environment() -> HeaderEnvironment:
    return HeaderEnvironment()


@pytest.fixture
def node(factory: FakeClientFactory, environment: HeaderEnvironment) -> WeaviateNode:
    return WeaviateNode(environment=environment, client_factory=factory)


@pytest.fixture
def make_call(
    factory: FakeClientFactory,
    environment: HeaderEnvironment,
) -> Callable[..., OperationCall]:
    """Build an OperationCall for item 0 from a flat parameter mapping."""

    def _make(
        parameters: Mapping[str, Any],
        *,
        credentials: Optional[Mapping[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> OperationCall:
        creds = dict(credentials or LOCAL_CREDENTIALS)
        ctx = StaticExecutionContext(parameters=dict(parameters), credentials=creds)
        return OperationCall(
            params=ItemParameters(ctx, 0),
            settings=ConnectionSettings.from_credentials(creds),
            environment=environment,
            client_factory=factory,
            rest_transport=transport,
        )

    return _make
