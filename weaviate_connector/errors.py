# weaviate_connector/errors.py
# SPDX-License-Identifier: Apache-2.0
"""
Error taxonomy for the Weaviate connector.

Every failure raised by this package is a :class:`ConnectorError` carrying a
machine-readable ``code`` and a shallow, JSON-serializable ``details`` mapping.
Failures raised by the Weaviate client library, by httpx, or by the network are
normalized into :class:`TransportError` through :func:`translate_error`.

Taxonomy
--------
- ValidationError     malformed or missing parameters, rejected before any
                      remote call is made
- ConfigurationError  malformed connection settings or custom headers
- TransportError      the remote service answered with an error, or could not
                      be reached at all
- NotSupported        unknown (resource, operation) pair
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from weaviate.exceptions import WeaviateBaseError

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """
    Base exception for all connector errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (UPPER_SNAKE_CASE)
        retry_after_ms: Suggested delay before retry (None if not retryable)
        details: Additional context-specific error details (JSON-serializable)
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        retry_after_ms: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retry_after_ms = retry_after_ms
        self.details = dict(details or {})

    def asdict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization and logging."""
        return {
            "message": self.message,
            "code": self.code,
            "retry_after_ms": self.retry_after_ms,
            "details": self.details or None,
        }


class ValidationError(ConnectorError):
    """Parameters are missing, malformed, or of the wrong type."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)


class ConfigurationError(ConnectorError):
    """Connection settings or custom headers cannot be used."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "BAD_CONFIG")
        super().__init__(message, **kwargs)


class TransportError(ConnectorError):
    """
    The remote service rejected the request or could not be reached.

    ``status_code`` is set when an HTTP status was observed.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "TRANSPORT_ERROR")
        super().__init__(message, **kwargs)
        self.status_code = status_code

    def asdict(self) -> Dict[str, Any]:
        payload = super().asdict()
        payload["status_code"] = self.status_code
        return payload


class NotSupported(ConnectorError):
    """The requested resource/operation pair does not exist."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("code", "NOT_SUPPORTED")
        super().__init__(message, **kwargs)


def _status_of(err: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        status = getattr(err, attr, None)
        if status is None:
            continue
        try:
            return int(status)
        except (TypeError, ValueError):
            continue
    if isinstance(err, httpx.HTTPStatusError):
        return err.response.status_code
    return None


def classify_status(status: Optional[int], message: str) -> str:
    """
    Pick an error code from an HTTP status and/or the error text.

    The text heuristics cover client errors that do not expose a status
    (gRPC failures, wrapped transport errors).
    """
    lowered = message.lower()
    if status == 429 or "rate limit" in lowered or "too many requests" in lowered or "quota" in lowered:
        return "RESOURCE_EXHAUSTED"
    if status in (401, 403) or "unauthorized" in lowered or "forbidden" in lowered:
        return "AUTH_ERROR"
    if status == 404:
        return "NOT_FOUND"
    if "timeout" in lowered or "timed out" in lowered or "temporarily unavailable" in lowered:
        return "TRANSIENT_NETWORK"
    if status in (400, 422):
        return "BAD_REQUEST"
    if status is not None and status >= 500:
        return "UNAVAILABLE"
    if "connection" in lowered or "connect" in lowered:
        return "TRANSIENT_NETWORK"
    return "TRANSPORT_ERROR"


def translate_error(err: BaseException, *, op: str) -> ConnectorError:
    """
    Map an arbitrary exception raised during ``op`` into the connector taxonomy.

    Connector errors pass through untouched. Everything else becomes a
    :class:`TransportError` whose message keeps the underlying error text.
    """
    if isinstance(err, ConnectorError):
        return err

    msg = str(err) or f"Weaviate error during {op}"
    logger.debug("Weaviate error in %s: %r", op, err)

    status = _status_of(err)
    code = classify_status(status, msg)
    details: Dict[str, Any] = {"op": op, "error_type": type(err).__name__}

    retry_after_ms: Optional[int] = None
    if code in ("RESOURCE_EXHAUSTED", "TRANSIENT_NETWORK"):
        retry_after_ms = 500
    elif code == "UNAVAILABLE":
        retry_after_ms = 1000

    if isinstance(err, WeaviateBaseError):
        details["source"] = "weaviate"
    elif isinstance(err, httpx.HTTPError):
        details["source"] = "http"

    return TransportError(
        msg,
        status_code=status,
        code=code,
        retry_after_ms=retry_after_ms,
        details=details,
    )


__all__ = [
    "ConnectorError",
    "ValidationError",
    "ConfigurationError",
    "TransportError",
    "NotSupported",
    "classify_status",
    "translate_error",
]
