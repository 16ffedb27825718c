# weaviate_connector/operations/collection.py
# SPDX-License-Identifier: Apache-2.0
"""Collection (schema) translators: create, delete, deleteAll, exists, get, list, aggregate."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from weaviate.classes.aggregate import GroupByAggregate

from weaviate_connector.client import call_client
from weaviate_connector.errors import ValidationError
from weaviate_connector.filters import build_filter
from weaviate_connector.formatting import build_operation_metadata, safe_get, to_plain
from weaviate_connector.operations.base import OperationCall, Record, collection_handle

logger = logging.getLogger(__name__)


def collection_names(listing: Any) -> List[str]:
    """Sorted names from ``list_all`` output, which may be a keyed map or an array."""
    if listing is None:
        return []
    if isinstance(listing, Mapping):
        names = [str(k) for k in listing.keys()]
    else:
        names = []
        for entry in listing:
            name = entry if isinstance(entry, str) else safe_get(entry, "name")
            if name:
                names.append(str(name))
    return sorted(names)


async def create(call: OperationCall) -> List[Record]:
    config = call.params.json("collectionConfig", required=True)
    if not isinstance(config, Mapping):
        raise ValidationError('Field "collectionConfig" must be a JSON object')
    name = config.get("class") or config.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Collection config must include a "class" (or "name")')

    schema: Dict[str, Any] = dict(config)
    schema.pop("name", None)
    schema["class"] = name

    async with call.client() as client:
        collection = await call_client(
            "collection.create", client.collections.create_from_dict, schema
        )
        realized = await call_client("collection.create", collection.config.get)

    return [
        {
            "success": True,
            "collectionName": name,
            "collection": to_plain(realized),
            "metadata": build_operation_metadata("collection:create", collectionName=name),
        }
    ]


async def delete(call: OperationCall) -> List[Record]:
    name = call.params.collection("collectionName")
    async with call.client() as client:
        await call_client("collection.delete", client.collections.delete, name)
    return [
        {
            "success": True,
            "collectionName": name,
            "message": f'Collection "{name}" deleted successfully',
            "metadata": build_operation_metadata("collection:delete", collectionName=name),
        }
    ]


async def delete_all(call: OperationCall) -> List[Record]:
    async with call.client() as client:
        await call_client("collection.delete_all", client.collections.delete_all)
    return [
        {
            "success": True,
            "message": "All collections deleted successfully",
            "metadata": build_operation_metadata("collection:deleteAll"),
        }
    ]


async def exists(call: OperationCall) -> List[Record]:
    name = call.params.collection("collectionName")
    async with call.client() as client:
        found = await call_client("collection.exists", client.collections.exists, name)
    return [
        {
            "collectionName": name,
            "exists": bool(found),
            "metadata": build_operation_metadata("collection:exists", collectionName=name),
        }
    ]


async def get(call: OperationCall) -> List[Record]:
    name = call.params.collection("collectionName")
    config = await call.rest().request("GET", f"/schema/{quote(name, safe='')}")
    return [
        {
            "collectionName": name,
            "config": config,
            "metadata": build_operation_metadata("collection:get", collectionName=name),
        }
    ]


async def list_collections(call: OperationCall) -> List[Record]:
    async with call.client() as client:
        listing = await call_client("collection.list", client.collections.list_all, simple=True)
    names = collection_names(listing)
    return [
        {
            "collections": names,
            "count": len(names),
            "metadata": build_operation_metadata("collection:list", count=len(names)),
        }
    ]


async def search_collections(call: OperationCall, filter_text: Optional[str] = None) -> List[Dict[str, str]]:
    """Name/value pairs for a collection picker, optionally narrowed by substring."""
    async with call.client() as client:
        listing = await call_client("collection.list", client.collections.list_all, simple=True)
    names = collection_names(listing)
    if filter_text:
        needle = filter_text.lower()
        names = [n for n in names if needle in n.lower()]
    return [{"name": n, "value": n} for n in names]


def _format_groups(groups: Any) -> List[Dict[str, Any]]:
    out = []
    for group in groups or []:
        grouped_by = safe_get(group, "grouped_by")
        out.append(
            {
                "groupedBy": {
                    "property": safe_get(grouped_by, "prop"),
                    "value": to_plain(safe_get(grouped_by, "value")),
                },
                "totalCount": safe_get(group, "total_count"),
                "properties": to_plain(safe_get(group, "properties") or {}),
            }
        )
    return out


async def aggregate(call: OperationCall) -> List[Record]:
    name = call.params.collection("collection")
    opts = call.params.options()
    tenant = opts.string("tenant") or None
    group_by = opts.string("groupBy") or None
    limit = opts.integer("limit")
    where = opts.json("whereFilter")
    filters = build_filter(where) if where else None

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        if group_by:
            result = await call_client(
                "collection.aggregate",
                collection.aggregate.over_all,
                filters=filters,
                group_by=GroupByAggregate(prop=group_by, limit=limit or None),
                total_count=True,
            )
            return [
                {
                    "collection": name,
                    "groups": _format_groups(safe_get(result, "groups")),
                    "metadata": build_operation_metadata(
                        "collection:aggregate",
                        collectionName=name,
                        tenant=tenant,
                        groupBy=group_by,
                    ),
                }
            ]

        if limit:
            logger.debug("aggregate limit only applies to grouped results; ignoring %s", limit)
        result = await call_client(
            "collection.aggregate",
            collection.aggregate.over_all,
            filters=filters,
            total_count=True,
        )

    properties = to_plain(safe_get(result, "properties")) or None
    record: Record = {
        "collection": name,
        "totalCount": safe_get(result, "total_count"),
        "metadata": build_operation_metadata(
            "collection:aggregate", collectionName=name, tenant=tenant
        ),
    }
    if properties:
        record["properties"] = properties
    return [record]


__all__ = [
    "collection_names",
    "create",
    "delete",
    "delete_all",
    "exists",
    "get",
    "list_collections",
    "search_collections",
    "aggregate",
]
