# weaviate_connector/operations/search.py
# SPDX-License-Identifier: Apache-2.0
"""
Search translators and their generative (retrieval-augmented) variants.

Seven query kinds share one option set:

    nearText    queryText               collection.query.near_text
    nearVector  queryVector (JSON)      collection.query.near_vector
    nearObject  objectId                collection.query.near_object
    nearImage   imageData (base64)      collection.query.near_image
    nearMedia   mediaData + mediaType   collection.query.near_media
    bm25        query                   collection.query.bm25
    hybrid      query                   collection.query.hybrid

With ``enableGenerative`` the same kinds go through ``collection.generate``
and additionally need a single prompt and/or a grouped task.

Results are one record per object (``returnFormat: perObject``, default) or a
single record holding every object (``returnFormat: singleItem``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from weaviate.classes.query import MetadataQuery, Move, NearMediaType, Rerank

from weaviate_connector.client import call_client
from weaviate_connector.errors import ValidationError
from weaviate_connector.filters import build_filter
from weaviate_connector.formatting import (
    build_operation_metadata,
    format_object,
    format_search_results,
    safe_get,
    to_plain,
)
from weaviate_connector.generative import build_generative_config
from weaviate_connector.operations.base import OperationCall, Record, collection_handle
from weaviate_connector.params import ItemParameters, OptionValues

logger = logging.getLogger(__name__)

PER_OBJECT = "perObject"
SINGLE_ITEM = "singleItem"

MEDIA_TYPES: Dict[str, NearMediaType] = {
    "audio": NearMediaType.AUDIO,
    "video": NearMediaType.VIDEO,
    "depth": NearMediaType.DEPTH,
    "thermal": NearMediaType.THERMAL,
    "imu": NearMediaType.IMU,
}


# --------------------------------------------------------------------------- #
# Query payloads
# --------------------------------------------------------------------------- #

# Each reader returns (client kwargs, metadata fields) for the query payload.
PayloadReader = Callable[[ItemParameters], Tuple[Dict[str, Any], Dict[str, Any]]]


def _near_text(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    text = p.string("queryText", required=True)
    return {"query": text}, {"queryText": text}


def _near_vector(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    vector = p.json("queryVector", required=True)
    if not isinstance(vector, list) or not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector
    ):
        raise ValidationError("Query vector must be an array of numbers")
    return {"near_vector": vector}, {"dimensions": len(vector)}


def _near_object(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    object_id = p.string("objectId", required=True).strip()
    return {"near_object": object_id}, {"objectId": object_id}


def _near_image(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    data = p.string("imageData").strip()
    if not data:
        raise ValidationError("Image data must be provided as a base64 encoded string")
    return {"near_image": data}, {}


def _near_media(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    data = p.string("mediaData").strip()
    if not data:
        raise ValidationError("Media data must be provided as a base64 encoded string")
    media_type = p.string("mediaType", "audio")
    if media_type not in MEDIA_TYPES:
        raise ValidationError(
            f"Unsupported media type: {media_type}",
            details={"mediaType": media_type, "allowed": sorted(MEDIA_TYPES)},
        )
    return {"media": data, "media_type": MEDIA_TYPES[media_type]}, {"mediaType": media_type}


def _keyword(p: ItemParameters) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    query = p.string("query", required=True)
    return {"query": query}, {"query": query}


@dataclass(frozen=True)
class SearchKind:
    method: str
    read_payload: PayloadReader
    similarity: bool = False
    target_vector: bool = True


SEARCH_KINDS: Dict[str, SearchKind] = {
    "nearText": SearchKind("near_text", _near_text, similarity=True),
    "nearVector": SearchKind("near_vector", _near_vector, similarity=True),
    "nearObject": SearchKind("near_object", _near_object, similarity=True),
    "nearImage": SearchKind("near_image", _near_image, similarity=True),
    "nearMedia": SearchKind("near_media", _near_media, similarity=True),
    "bm25": SearchKind("bm25", _keyword, target_vector=False),
    "hybrid": SearchKind("hybrid", _keyword),
}


# --------------------------------------------------------------------------- #
# Shared options
# --------------------------------------------------------------------------- #


def _move(raw: Any, field_name: str) -> Optional[Move]:
    """``{"force": 0.5, "concepts": [...], "objects": [...]}`` to a Move."""
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ValidationError(f'Field "{field_name}" must be a JSON object')
    force = raw.get("force")
    if isinstance(force, bool) or not isinstance(force, (int, float)):
        raise ValidationError(f'Field "{field_name}" requires a numeric "force"')
    concepts = raw.get("concepts")
    objects = raw.get("objects")
    if not concepts and not objects:
        raise ValidationError(f'Field "{field_name}" requires "concepts" or "objects"')
    return Move(force=float(force), concepts=concepts or None, objects=objects or None)


def _rerank(raw: Any) -> Optional[Rerank]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or not raw.get("property"):
        raise ValidationError('Field "rerank" must be a JSON object with a "property"')
    return Rerank(prop=raw["property"], query=raw.get("query"))


def build_query_kwargs(kind_name: str, kind: SearchKind, limit: int, opts: OptionValues) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"limit": limit}

    offset = opts.integer("offset")
    if offset:
        kwargs["offset"] = offset
    where = opts.json("whereFilter")
    if where:
        kwargs["filters"] = build_filter(where)
    props = opts.csv("returnProperties")
    if props:
        kwargs["return_properties"] = props
    if opts.boolean("includeVector"):
        kwargs["include_vector"] = True
    autocut = opts.integer("autocut")
    if autocut and autocut > 0:
        kwargs["auto_limit"] = autocut
    if kind.target_vector and opts.string("targetVector"):
        kwargs["target_vector"] = opts.string("targetVector")
    rerank = _rerank(opts.json("rerank"))
    if rerank is not None:
        kwargs["rerank"] = rerank

    if kind.similarity:
        certainty = opts.number("certainty")
        if certainty and certainty > 0:
            kwargs["certainty"] = certainty
        distance = opts.number("distance")
        if distance and distance > 0:
            kwargs["distance"] = distance

    if kind_name == "hybrid":
        alpha = opts.number("alpha")
        if alpha is not None:
            kwargs["alpha"] = alpha

    if kind_name == "nearText":
        move_away = _move(opts.json("moveAway"), "moveAway")
        if move_away is not None:
            kwargs["move_away"] = move_away
        move_to = _move(opts.json("moveTowards"), "moveTowards")
        if move_to is not None:
            kwargs["move_to"] = move_to

    metadata = MetadataQuery(
        distance=kind.similarity and opts.boolean("returnDistance"),
        score=opts.boolean("returnScore"),
        explain_score=opts.boolean("returnExplainScore"),
        creation_time=opts.boolean("returnCreationTime"),
    )
    if metadata.distance or metadata.score or metadata.explain_score or metadata.creation_time:
        kwargs["return_metadata"] = metadata
    return kwargs


def _return_format(opts: OptionValues) -> str:
    value = opts.string("returnFormat", PER_OBJECT) or PER_OBJECT
    if value not in (PER_OBJECT, SINGLE_ITEM):
        raise ValidationError(f"Unsupported return format: {value}")
    return value


# --------------------------------------------------------------------------- #
# Generative
# --------------------------------------------------------------------------- #


def _generated_text(block: Any, legacy: Any) -> Tuple[Optional[str], Any]:
    if block is not None:
        return safe_get(block, "text"), to_plain(safe_get(block, "metadata"))
    return legacy, None


def _generative_kwargs(opts: OptionValues) -> Tuple[Dict[str, Any], Optional[str]]:
    single = opts.string("singlePrompt").strip()
    grouped = opts.string("groupedTask").strip()
    if not single and not grouped:
        raise ValidationError(
            'At least one of "Single Prompt" or "Grouped Task" must be provided when generative is enabled'
        )
    kwargs: Dict[str, Any] = {}
    if single:
        kwargs["single_prompt"] = single
    if grouped:
        kwargs["grouped_task"] = grouped

    provider = opts.string("modelProvider") or None
    if provider:
        config = build_generative_config(provider, opts.as_dict())
        if config is None:
            logger.warning("Unknown generative provider %r; using the collection default", provider)
        else:
            kwargs["generative_provider"] = config.to_runtime()
    return kwargs, provider


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #


async def run_search(call: OperationCall, kind_name: str, *, generative: bool = False) -> List[Record]:
    kind = SEARCH_KINDS[kind_name]
    p = call.params
    name = p.collection()
    payload, payload_meta = kind.read_payload(p)
    limit = p.integer("limit", 10) or 10
    opts = p.options()
    tenant = opts.string("tenant") or None
    return_format = _return_format(opts)
    kwargs = build_query_kwargs(kind_name, kind, limit, opts)
    kwargs.update(payload)

    provider: Optional[str] = None
    if generative:
        gen_kwargs, provider = _generative_kwargs(p.options("generativeOptions"))
        kwargs.update(gen_kwargs)

    prefix = "generate" if generative else "search"
    op = f"{prefix}.{kind.method}"
    async with call.client() as client:
        collection = collection_handle(client, name, tenant)
        namespace = collection.generate if generative else collection.query
        result = await call_client(op, getattr(namespace, kind.method), **kwargs)

    objects = list(safe_get(result, "objects") or [])
    op_meta = build_operation_metadata(
        f"{prefix}:{kind_name}",
        collectionName=name,
        resultCount=len(objects),
        tenant=tenant,
        alpha=kwargs.get("alpha"),
        provider=provider,
        **payload_meta,
    )

    grouped_text, grouped_meta = (None, None)
    if generative:
        grouped_text, grouped_meta = _generated_text(
            safe_get(result, "generative"), safe_get(result, "generated")
        )

    if return_format == SINGLE_ITEM:
        record: Record = {
            "objects": [_object_record(obj, generative, nested=True) for obj in objects],
            "metadata": {"totalCount": len(objects), **op_meta},
        }
        if grouped_text is not None:
            record["generative"] = {"text": grouped_text, "metadata": grouped_meta}
        return [record]

    if not objects:
        return format_search_results(objects, op_meta)

    records = []
    for index, obj in enumerate(objects):
        record = _object_record(obj, generative, nested=False)
        record["metadata"].update(op_meta)
        if index == 0 and grouped_text is not None:
            record["groupedGenerated"] = grouped_text
            if grouped_meta is not None:
                record["metadata"]["groupedGenerativeMetadata"] = grouped_meta
        records.append(record)
    return records


def _object_record(obj: Any, generative: bool, *, nested: bool) -> Record:
    record = format_object(obj, include_vector=True)
    if not generative:
        return record
    text, meta = _generated_text(safe_get(obj, "generative"), safe_get(obj, "generated"))
    if text is None:
        return record
    if nested:
        record["generative"] = {"text": text, "metadata": meta}
    else:
        record["generated"] = text
        if meta is not None:
            record["metadata"]["generativeMetadata"] = meta
    return record


def translator(kind_name: str, *, generative: bool = False):
    """Bind ``run_search`` to one query kind for the dispatch table."""

    async def _translate(call: OperationCall) -> List[Record]:
        return await run_search(call, kind_name, generative=generative)

    _translate.__name__ = f"{'generate' if generative else 'search'}_{kind_name}"
    return _translate


__all__ = [
    "PER_OBJECT",
    "SINGLE_ITEM",
    "MEDIA_TYPES",
    "SEARCH_KINDS",
    "SearchKind",
    "build_query_kwargs",
    "run_search",
    "translator",
]
