# weaviate_connector/operations/base.py
# SPDX-License-Identifier: Apache-2.0
"""
Shared plumbing for request translators.

A translator is ``async def op(call: OperationCall) -> List[dict]``. It reads
its parameters through ``call.params``, opens the scoped client with
``async with call.client() as client``, and returns JSON-ready records. The
dispatcher wraps those records into result items.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, List, Optional

import httpx

from weaviate_connector.client import ClientFactory, open_client
from weaviate_connector.config import ConnectionSettings, HeaderEnvironment
from weaviate_connector.params import ItemParameters
from weaviate_connector.rest import WeaviateRestClient

Record = Dict[str, Any]


@dataclass
class OperationCall:
    """Everything one translator invocation needs for one input item."""

    params: ItemParameters
    settings: ConnectionSettings
    environment: HeaderEnvironment
    client_factory: Optional[ClientFactory] = None
    rest_transport: Optional[httpx.AsyncBaseTransport] = None

    @property
    def item_index(self) -> int:
        return self.params.item_index

    def client(self) -> AsyncContextManager[Any]:
        return open_client(self.settings, self.environment, self.client_factory)

    def rest(self) -> WeaviateRestClient:
        return WeaviateRestClient(
            self.settings,
            self.environment,
            transport=self.rest_transport,
        )


Translator = Callable[[OperationCall], Awaitable[List[Record]]]


def collection_handle(client: Any, name: str, tenant: Optional[str] = None) -> Any:
    """Collection accessor, scoped to ``tenant`` when one is given."""
    collection = client.collections.use(name)
    if tenant:
        collection = collection.with_tenant(tenant)
    return collection


__all__ = ["Record", "OperationCall", "Translator", "collection_handle"]
