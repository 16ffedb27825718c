# weaviate_connector/operations/objects.py
# SPDX-License-Identifier: Apache-2.0
"""
Object translators: insert, insertMany, getById, getMany, deleteById, deleteMany.

insertMany and deleteMany report partial failure as data (counts plus
per-index detail) instead of raising; only a malformed request raises.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from weaviate.classes.data import DataObject
from weaviate.classes.query import MetadataQuery

from weaviate_connector.client import call_client
from weaviate_connector.errors import TransportError, ValidationError
from weaviate_connector.filters import build_filter
from weaviate_connector.formatting import (
    build_operation_metadata,
    is_not_empty,
    object_metadata,
    safe_get,
    to_plain,
)
from weaviate_connector.operations.base import OperationCall, Record, collection_handle


def _vector_param(raw: Any) -> Optional[List[Any]]:
    # An empty array means "let the collection's vectorizer decide".
    if isinstance(raw, list) and raw:
        return raw
    return None


def _to_data_object(entry: Any, index: int) -> DataObject:
    if not isinstance(entry, Mapping):
        raise ValidationError(
            f"Object at index {index} must be a JSON object",
            details={"index": index},
        )
    if isinstance(entry.get("properties"), Mapping):
        return DataObject(
            properties=dict(entry["properties"]),
            uuid=entry.get("id") or entry.get("uuid") or None,
            vector=_vector_param(entry.get("vector")),
        )
    return DataObject(properties=dict(entry))


async def insert(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    properties = p.json("properties", required=True)
    if not isinstance(properties, Mapping):
        raise ValidationError('Field "properties" must be a JSON object')
    vector = _vector_param(p.json("vector"))
    object_id = p.string("objectId").strip() or None
    tenant = p.options().string("tenant") or None

    kwargs: Dict[str, Any] = {"properties": dict(properties)}
    if vector is not None:
        kwargs["vector"] = vector
    if object_id:
        kwargs["uuid"] = object_id

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        new_id = await call_client("object.insert", collection.data.insert, **kwargs)

    new_id = to_plain(new_id)
    return [
        {
            "success": True,
            "id": new_id,
            "collectionName": name,
            "metadata": build_operation_metadata(
                "object:insert", collectionName=name, objectId=new_id, tenant=tenant
            ),
        }
    ]


async def insert_many(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    objects = p.json("objects", required=True)
    if not isinstance(objects, list):
        raise ValidationError("Objects must be an array")
    batch = [_to_data_object(entry, i) for i, entry in enumerate(objects)]
    tenant = p.options().string("tenant") or None

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        result = await call_client("object.insert_many", collection.data.insert_many, batch)

    uuids = {str(k): to_plain(v) for k, v in (safe_get(result, "uuids") or {}).items()}
    errors = {
        str(k): safe_get(err, "message", str(err))
        for k, err in (safe_get(result, "errors") or {}).items()
    }
    return [
        {
            "success": not errors,
            "inserted": len(uuids),
            "errors": len(errors),
            "uuids": uuids,
            "errorDetails": errors,
            "collectionName": name,
            "metadata": build_operation_metadata(
                "object:insertMany",
                collectionName=name,
                inserted=len(uuids),
                errors=len(errors),
                tenant=tenant,
            ),
        }
    ]


async def get_by_id(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    object_id = p.string("objectId", required=True).strip()
    opts = p.options()
    tenant = opts.string("tenant") or None
    include_vectors = opts.boolean("includeVectors")

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        obj = await call_client(
            "object.get_by_id",
            collection.query.fetch_object_by_id,
            object_id,
            include_vector=include_vectors,
        )

    if obj is None:
        raise TransportError(
            f'Object {object_id} not found in collection "{name}"',
            status_code=404,
            code="NOT_FOUND",
            details={"collection": name},
        )

    record: Record = {
        "id": to_plain(safe_get(obj, "uuid")),
        "collection": name,
        "properties": to_plain(safe_get(obj, "properties") or {}),
        "metadata": build_operation_metadata(
            "object:getById", collectionName=name, objectId=object_id, tenant=tenant
        ),
    }
    vectors = safe_get(obj, "vector")
    if include_vectors and is_not_empty(vectors):
        record["vectors"] = to_plain(vectors)
    return [record]


async def get_many(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    limit = p.integer("limit", 50)
    opts = p.options()
    tenant = opts.string("tenant") or None
    offset = opts.integer("offset") or None
    where = opts.json("whereFilter")
    return_properties = opts.csv("returnProperties") or None
    include_vectors = opts.boolean("includeVectors")
    want_created = opts.boolean("returnCreationTime")
    want_updated = opts.boolean("returnUpdateTime")

    kwargs: Dict[str, Any] = {"limit": limit, "include_vector": include_vectors}
    if offset:
        kwargs["offset"] = offset
    if where:
        kwargs["filters"] = build_filter(where)
    if return_properties:
        kwargs["return_properties"] = return_properties
    if want_created or want_updated:
        kwargs["return_metadata"] = MetadataQuery(
            creation_time=want_created,
            last_update_time=want_updated,
        )

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        result = await call_client("object.get_many", collection.query.fetch_objects, **kwargs)

    objects = list(safe_get(result, "objects") or [])
    records: List[Record] = []
    for obj in objects:
        record: Record = {
            "id": to_plain(safe_get(obj, "uuid")),
            "properties": to_plain(safe_get(obj, "properties") or {}),
        }
        vector = safe_get(obj, "vector")
        if is_not_empty(vector):
            record["vector"] = to_plain(vector)
        meta = object_metadata(safe_get(obj, "metadata"))
        meta.update(
            build_operation_metadata(
                "object:getMany",
                collectionName=name,
                resultCount=len(objects),
                limit=limit,
                offset=offset or 0,
            )
        )
        record["metadata"] = meta
        records.append(record)
    return records


async def delete_by_id(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    object_id = p.string("objectId", required=True).strip()
    tenant = p.options().string("tenant") or None

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        await call_client("object.delete_by_id", collection.data.delete_by_id, object_id)

    return [
        {
            "success": True,
            "id": object_id,
            "collectionName": name,
            "message": f"Object {object_id} deleted successfully",
            "metadata": build_operation_metadata(
                "object:deleteById", collectionName=name, objectId=object_id, tenant=tenant
            ),
        }
    ]


async def delete_many(call: OperationCall) -> List[Record]:
    p = call.params
    name = p.collection()
    where = p.json("whereFilter", required=True)
    filters = build_filter(where)
    dry_run = p.boolean("dryRun")
    tenant = p.options().string("tenant") or None

    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        result = await call_client(
            "object.delete_many",
            collection.data.delete_many,
            where=filters,
            dry_run=dry_run,
        )

    deleted = int(safe_get(result, "successful", 0) or 0)
    failed = int(safe_get(result, "failed", 0) or 0)
    matches = int(safe_get(result, "matches", deleted + failed) or 0)
    return [
        {
            "success": failed == 0,
            "deleted": deleted,
            "failed": failed,
            "matches": matches,
            "dryRun": dry_run,
            "collectionName": name,
            "metadata": build_operation_metadata(
                "object:deleteMany",
                collectionName=name,
                deleted=deleted,
                failed=failed,
                dryRun=dry_run,
                tenant=tenant,
            ),
        }
    ]


__all__ = [
    "insert",
    "insert_many",
    "get_by_id",
    "get_many",
    "delete_by_id",
    "delete_many",
]
