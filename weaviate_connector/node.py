# weaviate_connector/node.py
# SPDX-License-Identifier: Apache-2.0
"""
Dispatcher for the Weaviate workflow node.

``WeaviateNode.execute(ctx)`` reads ``resource`` and ``operation`` once (from
item 0), resolves the translator from a static table, and runs it for every
input item in order. The ``search`` resource is additionally routed per item
on ``enableGenerative``.

Failure policy
--------------
- default:           the first failing item aborts the invocation; the error
                     propagates with ``item_index`` attached (see
                     :func:`weaviate_connector.error_context.get_context`)
- continue-on-fail:  the failing item yields ``{"error": message, "code": ...}``
                     paired to that item, and processing moves on

``WireNodeHandler`` exposes the same invocation through the JSON envelope
contract used elsewhere in the SDK::

    {"op": "weaviate.execute", "args": {...}} -> {"ok": true, "result": [...], ...}
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

import httpx

from weaviate_connector.client import ClientFactory
from weaviate_connector.config import ConnectionSettings, HeaderEnvironment
from weaviate_connector.error_context import attach_context
from weaviate_connector.errors import ConnectorError, NotSupported, ValidationError
from weaviate_connector.operations import backup, collection, objects, search, tenant
from weaviate_connector.operations.base import OperationCall, Translator
from weaviate_connector.params import ExecutionContext, ItemParameters, StaticExecutionContext

logger = logging.getLogger(__name__)

COMPONENT = "weaviate_node"


class Resource(str, enum.Enum):
    BACKUP = "backup"
    COLLECTION = "collection"
    OBJECT = "object"
    SEARCH = "search"
    TENANT = "tenant"


# =============================================================================
# Dispatch table
# =============================================================================

TRANSLATORS: Dict[Tuple[Resource, str], Translator] = {
    (Resource.COLLECTION, "create"): collection.create,
    (Resource.COLLECTION, "delete"): collection.delete,
    (Resource.COLLECTION, "deleteAll"): collection.delete_all,
    (Resource.COLLECTION, "exists"): collection.exists,
    (Resource.COLLECTION, "get"): collection.get,
    (Resource.COLLECTION, "list"): collection.list_collections,
    (Resource.COLLECTION, "aggregate"): collection.aggregate,
    (Resource.OBJECT, "insert"): objects.insert,
    (Resource.OBJECT, "insertMany"): objects.insert_many,
    (Resource.OBJECT, "getById"): objects.get_by_id,
    (Resource.OBJECT, "getMany"): objects.get_many,
    (Resource.OBJECT, "deleteById"): objects.delete_by_id,
    (Resource.OBJECT, "deleteMany"): objects.delete_many,
    (Resource.BACKUP, "create"): backup.create,
    (Resource.BACKUP, "restore"): backup.restore,
    (Resource.BACKUP, "getCreateStatus"): backup.get_create_status,
    (Resource.BACKUP, "getRestoreStatus"): backup.get_restore_status,
    (Resource.BACKUP, "list"): backup.list_backups,
    (Resource.TENANT, "create"): tenant.create,
    (Resource.TENANT, "delete"): tenant.delete,
    (Resource.TENANT, "exists"): tenant.exists,
    (Resource.TENANT, "list"): tenant.list_tenants,
    (Resource.TENANT, "updateStatus"): tenant.update_status,
}

TRANSLATORS.update(
    {(Resource.SEARCH, kind): search.translator(kind) for kind in search.SEARCH_KINDS}
)

GENERATIVE_TRANSLATORS: Dict[str, Translator] = {
    kind: search.translator(kind, generative=True) for kind in search.SEARCH_KINDS
}


def resolve_translator(resource: Resource, operation: str, *, generative: bool = False) -> Translator:
    if resource is Resource.SEARCH and generative:
        found = GENERATIVE_TRANSLATORS.get(operation)
    else:
        found = TRANSLATORS.get((resource, operation))
    if found is None:
        raise NotSupported(
            f"unknown operation '{resource.value}.{operation}'",
            details={"resource": resource.value, "operation": operation},
        )
    return found


def parse_resource(value: Any) -> Resource:
    try:
        return Resource(value)
    except ValueError:
        raise NotSupported(
            f"unknown resource '{value}'",
            details={"resource": value},
        ) from None


# =============================================================================
# Metrics Interface
# =============================================================================


class MetricsSink(Protocol):
    """Low-cardinality timing/status hook; never receives parameter values."""

    def observe(
        self,
        *,
        component: str,
        op: str,
        ms: float,
        ok: bool,
        code: str = "OK",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None: ...


class NoopMetrics:
    """No-operation metrics sink for testing or when metrics are disabled."""

    def observe(self, **_: Any) -> None: ...


# =============================================================================
# Node
# =============================================================================


@dataclass
class ResultItem:
    json: Dict[str, Any]
    paired_item: int


class WeaviateNode:
    """
    Executes one node invocation against Weaviate.

    ``environment`` is captured once here; it is not re-read per item.
    ``client_factory`` and ``rest_transport`` replace the network edges (tests,
    proxies).
    """

    def __init__(
        self,
        *,
        environment: Optional[HeaderEnvironment] = None,
        client_factory: Optional[ClientFactory] = None,
        rest_transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsSink] = None,
    ) -> None:
        self._environment = environment if environment is not None else HeaderEnvironment.from_environ()
        self._client_factory = client_factory
        self._rest_transport = rest_transport
        self._metrics: MetricsSink = metrics or NoopMetrics()

    def _call_for(self, ctx: ExecutionContext, item_index: int) -> OperationCall:
        return OperationCall(
            params=ItemParameters(ctx, item_index),
            settings=ConnectionSettings.from_credentials(ctx.get_credentials(item_index)),
            environment=self._environment,
            client_factory=self._client_factory,
            rest_transport=self._rest_transport,
        )

    def _record(self, op: str, t0: float, ok: bool, *, code: str = "OK") -> None:
        try:
            self._metrics.observe(
                component=COMPONENT,
                op=op,
                ms=(time.monotonic() - t0) * 1000.0,
                ok=ok,
                code=code,
            )
        except Exception:  # noqa: BLE001
            # Never let metrics recording break the operation
            pass

    async def execute(self, ctx: ExecutionContext) -> List[ResultItem]:
        items = ctx.get_input_items()
        if not items:
            return []

        resource = parse_resource(ctx.get_node_parameter("resource", 0))
        operation = str(ctx.get_node_parameter("operation", 0))
        # Fail fast on unknown pairs, before touching any item.
        base = resolve_translator(resource, operation)
        op_name = f"{resource.value}.{operation}"

        out: List[ResultItem] = []
        for index in range(len(items)):
            t0 = time.monotonic()
            try:
                translator = base
                if resource is Resource.SEARCH:
                    generative = ItemParameters(ctx, index).boolean("enableGenerative", False)
                    translator = resolve_translator(resource, operation, generative=generative)
                records = await translator(self._call_for(ctx, index))
            except Exception as exc:
                code = exc.code if isinstance(exc, ConnectorError) and exc.code else type(exc).__name__.upper()
                self._record(op_name, t0, ok=False, code=code)
                if ctx.continue_on_fail():
                    logger.warning("%s failed for item %d: %s", op_name, index, exc)
                    out.append(ResultItem(json={"error": str(exc), "code": code}, paired_item=index))
                    continue
                attach_context(
                    exc,
                    COMPONENT,
                    resource=resource.value,
                    operation=operation,
                    item_index=index,
                )
                raise
            self._record(op_name, t0, ok=True)
            out.extend(ResultItem(json=record, paired_item=index) for record in records)
        return out

    async def search_collections(
        self,
        credentials: Mapping[str, Any],
        filter_text: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """Collection picker lookup: name/value pairs, narrowed by substring."""
        ctx = StaticExecutionContext(credentials=credentials)
        return await collection.search_collections(self._call_for(ctx, 0), filter_text)


# =============================================================================
# Wire handler
# =============================================================================


def _error_to_wire(e: Exception, ms: float) -> Dict[str, Any]:
    if isinstance(e, ConnectorError):
        payload = e.asdict()
        return {
            "ok": False,
            "code": payload.get("code") or type(e).__name__.upper(),
            "error": type(e).__name__,
            "message": payload.get("message", ""),
            "retry_after_ms": payload.get("retry_after_ms"),
            "details": payload.get("details") or None,
            "ms": ms,
        }
    return {
        "ok": False,
        "code": "UNAVAILABLE",
        "error": type(e).__name__,
        "message": str(e) or "internal error",
        "retry_after_ms": None,
        "details": None,
        "ms": ms,
    }


def _success_to_wire(result: Any, ms: float) -> Dict[str, Any]:
    return {"ok": True, "code": "OK", "ms": ms, "result": result}


def context_from_wire(args: Mapping[str, Any]) -> StaticExecutionContext:
    """
    Build an execution context from an invocation document::

        {"resource": "search", "operation": "nearText",
         "parameters": {...}, "items": [{...}], "itemParameters": [{...}],
         "credentials": {...}, "continueOnFail": false}
    """
    if not isinstance(args, Mapping):
        raise ValidationError("invocation must be a JSON object")
    parameters = dict(args.get("parameters") or {})
    for key in ("resource", "operation"):
        if key in args:
            parameters[key] = args[key]
    item_parameters = list(args.get("itemParameters") or [])
    items = args.get("items")
    if items is None:
        items = [{} for _ in range(max(1, len(item_parameters)))]
    return StaticExecutionContext(
        parameters=parameters,
        items=list(items),
        item_parameters=item_parameters,
        credentials=dict(args.get("credentials") or {}),
        fail_soft=bool(args.get("continueOnFail", False)),
    )


class WireNodeHandler:
    """
    JSON envelope front for :class:`WeaviateNode`.

    Supported ops: ``weaviate.execute`` and ``weaviate.search_collections``.
    """

    def __init__(self, node: WeaviateNode):
        self._node = node

    async def handle(self, envelope: Mapping[str, Any]) -> Dict[str, Any]:
        t0 = time.monotonic()
        try:
            op = envelope.get("op")
            if not isinstance(op, str):
                raise ValidationError("missing or invalid 'op'")
            args = envelope.get("args") or {}

            if op == "weaviate.execute":
                results = await self._node.execute(context_from_wire(args))
                return _success_to_wire(
                    [asdict(r) for r in results], (time.monotonic() - t0) * 1000.0
                )

            if op == "weaviate.search_collections":
                res = await self._node.search_collections(
                    args.get("credentials") or {}, args.get("filter")
                )
                return _success_to_wire({"results": res}, (time.monotonic() - t0) * 1000.0)

            raise NotSupported(f"unknown operation '{op}'")

        except Exception as e:
            ms = (time.monotonic() - t0) * 1000.0
            return _error_to_wire(e, ms)


__all__ = [
    "COMPONENT",
    "Resource",
    "TRANSLATORS",
    "GENERATIVE_TRANSLATORS",
    "resolve_translator",
    "parse_resource",
    "MetricsSink",
    "NoopMetrics",
    "ResultItem",
    "WeaviateNode",
    "WireNodeHandler",
    "context_from_wire",
]
