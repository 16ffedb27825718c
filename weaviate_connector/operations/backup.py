# weaviate_connector/operations/backup.py
# SPDX-License-Identifier: Apache-2.0
"""Backup translators: create, restore, getCreateStatus, getRestoreStatus, list."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple
from urllib.parse import quote

from weaviate.classes.backup import BackupStorage

from weaviate_connector.client import call_client
from weaviate_connector.errors import ValidationError
from weaviate_connector.formatting import (
    build_operation_metadata,
    normalize_records,
    safe_get,
    split_csv,
    to_plain,
)
from weaviate_connector.operations.base import OperationCall, Record

BACKENDS: Dict[str, BackupStorage] = {
    "filesystem": BackupStorage.FILESYSTEM,
    "s3": BackupStorage.S3,
    "gcs": BackupStorage.GCS,
    "azure": BackupStorage.AZURE,
}


def _target(call: OperationCall) -> Tuple[str, str]:
    backend = call.params.string("backend", required=True)
    if backend not in BACKENDS:
        raise ValidationError(
            f"Unsupported backup backend: {backend}",
            details={"backend": backend, "allowed": sorted(BACKENDS)},
        )
    backup_id = call.params.string("backupId", required=True).strip()
    return backend, backup_id


def _status(result: Any) -> Any:
    return to_plain(safe_get(result, "status"))


async def _start(call: OperationCall, action: str) -> List[Record]:
    backend, backup_id = _target(call)
    p = call.params
    include = split_csv(p.string("includeCollections")) or None
    exclude = split_csv(p.string("excludeCollections")) or None
    wait = p.boolean("waitForCompletion", True)

    async with call.client() as client:
        method = getattr(client.backup, action)
        result = await call_client(
            f"backup.{action}",
            method,
            backup_id=backup_id,
            backend=BACKENDS[backend],
            include_collections=include,
            exclude_collections=exclude,
            wait_for_completion=wait,
        )

    status = _status(result)
    return [
        {
            "success": True,
            "backupId": backup_id,
            "backend": backend,
            "status": status,
            "result": to_plain(result),
            "metadata": build_operation_metadata(
                f"backup:{action}", backupId=backup_id, backend=backend, status=status
            ),
        }
    ]


async def create(call: OperationCall) -> List[Record]:
    return await _start(call, "create")


async def restore(call: OperationCall) -> List[Record]:
    return await _start(call, "restore")


async def _status_lookup(call: OperationCall, method_name: str, operation: str) -> List[Record]:
    backend, backup_id = _target(call)
    async with call.client() as client:
        result = await call_client(
            f"backup.{method_name}",
            getattr(client.backup, method_name),
            backup_id=backup_id,
            backend=BACKENDS[backend],
        )
    status = _status(result)
    return [
        {
            "backupId": backup_id,
            "backend": backend,
            "status": status,
            "result": to_plain(result),
            "metadata": build_operation_metadata(
                f"backup:{operation}", backupId=backup_id, backend=backend, status=status
            ),
        }
    ]


async def get_create_status(call: OperationCall) -> List[Record]:
    return await _status_lookup(call, "get_create_status", "getCreateStatus")


async def get_restore_status(call: OperationCall) -> List[Record]:
    return await _status_lookup(call, "get_restore_status", "getRestoreStatus")


async def list_backups(call: OperationCall) -> List[Record]:
    """``GET /v1/backups/{backend}``; one record per backup."""
    backend = call.params.string("backend", required=True)
    if backend not in BACKENDS:
        raise ValidationError(
            f"Unsupported backup backend: {backend}",
            details={"backend": backend, "allowed": sorted(BACKENDS)},
        )
    raw = await call.rest().request("GET", f"/backups/{quote(backend, safe='')}")
    backups = normalize_records(raw)

    if not backups:
        return [
            {
                "backend": backend,
                "message": "No backups found",
                "backups": [],
                "metadata": build_operation_metadata("backup:list", backend=backend, count=0),
            }
        ]

    records: List[Record] = []
    for entry in backups:
        record: Record = dict(entry) if isinstance(entry, Mapping) else {"backup": to_plain(entry)}
        record["backend"] = backend
        record["metadata"] = build_operation_metadata(
            "backup:list", backend=backend, count=len(backups)
        )
        records.append(record)
    return records


__all__ = [
    "BACKENDS",
    "create",
    "restore",
    "get_create_status",
    "get_restore_status",
    "list_backups",
]
