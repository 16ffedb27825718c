# weaviate_connector/formatting.py
# SPDX-License-Identifier: Apache-2.0
"""
Response formatting and small parameter helpers shared by every translator.

Object-shaped results are normalized to::

    {"id": ..., "properties": {...}, "vector": {...}?, "metadata": {...}}

and every record carries ``metadata.operation`` plus an ISO-8601 UTC
``metadata.timestamp``. Values coming back from the client (dataclasses,
pydantic models, enums, UUIDs, datetimes) are turned into JSON-safe
structures by :func:`to_plain`.
"""

from __future__ import annotations

import base64
import dataclasses
import enum
import json
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from weaviate_connector.errors import ValidationError


def safe_get(obj: Any, key: str, default: Any = None) -> Any:
    """Support both dict-style and attribute-style access."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_operation_metadata(operation: str, **extra: Any) -> Dict[str, Any]:
    """Operation name, timestamp, and any extra fields that are not None."""
    meta: Dict[str, Any] = {"operation": operation, "timestamp": utc_timestamp()}
    for key, value in extra.items():
        if value is not None:
            meta[key] = value
    return meta


def is_not_empty(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) > 0
    if isinstance(value, Mapping):
        return len(value) > 0
    return True


def to_plain(value: Any) -> Any:
    """Recursively convert client return values into JSON-safe data."""
    # str-based enums must unwrap before the scalar check.
    if isinstance(value, enum.Enum):
        return to_plain(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return to_plain(model_dump())
    if hasattr(value, "__dict__"):
        return {
            k: to_plain(v)
            for k, v in vars(value).items()
            if not k.startswith("_")
        }
    return str(value)


def parse_json_param(value: Any, field_name: str) -> Any:
    """Decode a JSON string parameter; non-strings are returned unchanged."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            f'Invalid JSON in field "{field_name}": {exc}',
            details={"field": field_name},
        ) from exc


def split_csv(value: Any) -> List[str]:
    """Comma-separated list to trimmed, non-empty entries."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def validate_required_fields(values: Mapping[str, Any], fields: Iterable[str]) -> None:
    # 0 and False are legitimate values.
    for name in fields:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(
                f'Required field "{name}" is missing or empty',
                details={"field": name},
            )
        if isinstance(value, (list, tuple, dict)) and not value:
            raise ValidationError(
                f'Required field "{name}" is missing or empty',
                details={"field": name},
            )


def normalize_records(raw: Any) -> List[Any]:
    """
    A list, a single record, a key -> record map, or nothing, as an ordered
    list of records.

    A mapping counts as keyed when every value is itself a record (a mapping
    or an object); otherwise it is one record. An empty mapping is no records.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, Mapping) and all(_is_record(v) for v in raw.values()):
        return list(raw.values())
    return [raw]


def _is_record(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    if value is None or isinstance(value, (str, bytes, bool, int, float, list, tuple, set)):
        return False
    return hasattr(value, "__dict__") or dataclasses.is_dataclass(value)


def object_metadata(metadata: Any) -> Dict[str, Any]:
    """Search metadata of one returned object, keeping only populated fields."""
    fields = (
        ("certainty", "certainty"),
        ("distance", "distance"),
        ("score", "score"),
        ("explainScore", "explain_score"),
        ("creationTime", "creation_time"),
        ("lastUpdateTime", "last_update_time"),
        ("isConsistent", "is_consistent"),
        ("rerankScore", "rerank_score"),
    )
    out: Dict[str, Any] = {}
    for key, attr in fields:
        value = safe_get(metadata, attr)
        if value is not None:
            out[key] = to_plain(value)
    return out


def format_object(
    obj: Any,
    *,
    include_vector: bool = False,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": to_plain(safe_get(obj, "uuid")),
        "properties": to_plain(safe_get(obj, "properties") or {}),
    }
    vector = safe_get(obj, "vector")
    if include_vector and is_not_empty(vector):
        record["vector"] = to_plain(vector)
    meta = object_metadata(safe_get(obj, "metadata"))
    meta.update(metadata or {})
    record["metadata"] = meta
    return record


def format_search_results(
    results: Any,
    metadata: Optional[Mapping[str, Any]] = None,
    *,
    include_vector: bool = True,
) -> List[Dict[str, Any]]:
    """
    One record per object, or a single zero-count record when nothing matched.

    ``results`` is either a sequence of objects or a query result carrying
    ``objects`` (client result or ``{"objects": [...]}`` mapping).
    """
    if isinstance(results, (list, tuple)):
        objects: Optional[Sequence[Any]] = results
    else:
        objects = safe_get(results, "objects")
    if not objects:
        return [{"objects": [], "metadata": {"count": 0, **dict(metadata or {})}}]
    return [
        format_object(obj, include_vector=include_vector, metadata=metadata)
        for obj in objects
    ]


__all__ = [
    "safe_get",
    "utc_timestamp",
    "build_operation_metadata",
    "is_not_empty",
    "to_plain",
    "parse_json_param",
    "split_csv",
    "validate_required_fields",
    "normalize_records",
    "object_metadata",
    "format_object",
    "format_search_results",
]
