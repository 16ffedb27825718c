# weaviate_connector/operations/tenant.py
# SPDX-License-Identifier: Apache-2.0
"""Tenant translators: create, delete, exists, list, updateStatus."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from weaviate.classes.tenants import Tenant, TenantActivityStatus

from weaviate_connector.client import call_client
from weaviate_connector.errors import ValidationError
from weaviate_connector.formatting import (
    build_operation_metadata,
    normalize_records,
    safe_get,
    to_plain,
)
from weaviate_connector.operations.base import OperationCall, Record

# FROZEN is the user-facing name for what the server calls OFFLOADED.
TENANT_STATUSES: Dict[str, TenantActivityStatus] = {
    "ACTIVE": TenantActivityStatus.ACTIVE,
    "INACTIVE": TenantActivityStatus.INACTIVE,
    "FROZEN": TenantActivityStatus.OFFLOADED,
}


# Server status value -> user-facing name.
STATUS_NAMES: Dict[str, str] = {
    to_plain(server): name for name, server in TENANT_STATUSES.items()
}


def _target(call: OperationCall) -> Tuple[str, str]:
    collection = call.params.collection("collectionName")
    tenant = call.params.string("tenantName", required=True).strip()
    return collection, tenant


def _status_name(status: Any) -> str:
    raw = to_plain(status)
    if not raw:
        return "ACTIVE"
    return STATUS_NAMES.get(str(raw), str(raw))


def _tenant_name(tenant: Any) -> str:
    if isinstance(tenant, str):
        return tenant
    return str(safe_get(tenant, "name", tenant))


async def create(call: OperationCall) -> List[Record]:
    collection, tenant = _target(call)
    async with call.client() as client:
        handle = client.collections.use(collection)
        await call_client("tenant.create", handle.tenants.create, Tenant(name=tenant))
    return [
        {
            "success": True,
            "collectionName": collection,
            "tenantName": tenant,
            "message": f'Tenant "{tenant}" created successfully in collection "{collection}"',
            "metadata": build_operation_metadata(
                "tenant:create", collectionName=collection, tenantName=tenant
            ),
        }
    ]


async def delete(call: OperationCall) -> List[Record]:
    collection, tenant = _target(call)
    async with call.client() as client:
        handle = client.collections.use(collection)
        await call_client("tenant.delete", handle.tenants.remove, [tenant])
    return [
        {
            "success": True,
            "collectionName": collection,
            "tenantName": tenant,
            "message": f'Tenant "{tenant}" deleted successfully from collection "{collection}"',
            "metadata": build_operation_metadata(
                "tenant:delete", collectionName=collection, tenantName=tenant
            ),
        }
    ]


async def exists(call: OperationCall) -> List[Record]:
    collection, tenant = _target(call)
    async with call.client() as client:
        handle = client.collections.use(collection)
        raw = await call_client("tenant.exists", handle.tenants.get)
    found = any(_tenant_name(t) == tenant for t in normalize_records(raw))
    return [
        {
            "collectionName": collection,
            "tenantName": tenant,
            "exists": found,
            "metadata": build_operation_metadata(
                "tenant:exists", collectionName=collection, tenantName=tenant
            ),
        }
    ]


async def list_tenants(call: OperationCall) -> List[Record]:
    collection = call.params.collection("collectionName")
    async with call.client() as client:
        handle = client.collections.use(collection)
        raw = await call_client("tenant.list", handle.tenants.get)

    tenants = normalize_records(raw)
    if not tenants:
        return [
            {
                "collectionName": collection,
                "message": "No tenants found",
                "count": 0,
                "metadata": build_operation_metadata("tenant:list", collectionName=collection, count=0),
            }
        ]
    return [
        {
            "collectionName": collection,
            "name": _tenant_name(t),
            "activityStatus": _status_name(safe_get(t, "activity_status")),
            "metadata": build_operation_metadata(
                "tenant:list", collectionName=collection, count=len(tenants)
            ),
        }
        for t in tenants
    ]


async def update_status(call: OperationCall) -> List[Record]:
    collection, tenant = _target(call)
    status = call.params.string("status", required=True).strip().upper()
    if status not in TENANT_STATUSES:
        raise ValidationError(
            f"Unsupported tenant status: {status}",
            details={"status": status, "allowed": sorted(TENANT_STATUSES)},
        )
    async with call.client() as client:
        handle = client.collections.use(collection)
        await call_client(
            "tenant.update_status",
            handle.tenants.update,
            Tenant(name=tenant, activity_status=TENANT_STATUSES[status]),
        )
    return [
        {
            "success": True,
            "collectionName": collection,
            "tenantName": tenant,
            "status": status,
            "message": f'Tenant "{tenant}" status updated to "{status}" in collection "{collection}"',
            "metadata": build_operation_metadata(
                "tenant:updateStatus", collectionName=collection, tenantName=tenant, status=status
            ),
        }
    ]


__all__ = [
    "TENANT_STATUSES",
    "create",
    "delete",
    "exists",
    "list_tenants",
    "update_status",
]
