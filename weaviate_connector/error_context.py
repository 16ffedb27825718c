# weaviate_connector/error_context.py
# SPDX-License-Identifier: Apache-2.0
"""
Attach per-item debugging context to exceptions as they leave the dispatcher.

The context lives in exception attributes, so the original exception type,
message and traceback propagate unchanged. Hosts that want to know which
input item failed read it back with :func:`get_context`:

    try:
        await node.execute(ctx)
    except Exception as exc:
        failed_item = get_context(exc).get("item_index")

Multiple calls merge their keys; the ``component`` key is set once and never
overwritten.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

logger = logging.getLogger(__name__)

_CONTEXT_ATTR = "__weaviate_connector_context__"


def attach_context(exc: BaseException, component: str, **context: Any) -> None:
    """
    Merge ``context`` into the exception's connector context.

    Attachment is best-effort: a failure here is logged at debug level and
    never replaces the exception being propagated.
    """
    try:
        merged: MutableMapping[str, Any] = {}
        existing = getattr(exc, _CONTEXT_ATTR, None)
        if isinstance(existing, Mapping):
            merged.update(existing)
        merged.setdefault("component", component)
        merged.update(context)
        setattr(exc, _CONTEXT_ATTR, merged)
    except Exception as attachment_error:  # noqa: BLE001
        logger.debug(
            "Failed to attach error context to %s: %s",
            type(exc).__name__,
            attachment_error,
        )


def get_context(exc: BaseException) -> Mapping[str, Any]:
    """Return the attached context, or an empty mapping."""
    ctx = getattr(exc, _CONTEXT_ATTR, None)
    if isinstance(ctx, Mapping):
        return ctx
    return {}


__all__ = ["attach_context", "get_context"]
