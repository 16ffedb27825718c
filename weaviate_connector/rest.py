# weaviate_connector/rest.py
# SPDX-License-Identifier: Apache-2.0
"""
Minimal REST channel to the Weaviate HTTP API.

Used for the schema endpoints, which accept the raw collection definition the
user supplies. Requests go to ``{base_url}/v1{path}`` with the same headers
the client connection uses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from weaviate_connector.client import build_headers, rest_base_url
from weaviate_connector.config import ConnectionSettings, HeaderEnvironment
from weaviate_connector.errors import (
    TransportError,
    ValidationError,
    classify_status,
    translate_error,
)

logger = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})
DEFAULT_TIMEOUT_S = 30.0


class WeaviateRestClient:
    """
    One-shot JSON requests against the Weaviate REST API.

    ``transport`` lets callers (tests, proxies) substitute the httpx transport.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        environment: Optional[HeaderEnvironment] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._settings = settings
        self._environment = environment
        self._transport = transport
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return rest_base_url(self._settings)

    def url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}/v1{path}"

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """
        Send one request and return the decoded JSON body, or None for
        non-JSON responses.
        """
        verb = method.upper()
        if verb not in ALLOWED_METHODS:
            raise ValidationError(f"Unsupported HTTP method: {method}")

        headers: Dict[str, str] = {"Content-Type": "application/json"}
        headers.update(build_headers(self._settings, self._environment))
        url = self.url_for(path)
        logger.debug("Weaviate REST %s %s", verb, url)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
            ) as http:
                response = await http.request(
                    verb,
                    url,
                    headers=headers,
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise translate_error(exc, op=f"rest.{verb.lower()}") from exc

        if not response.is_success:
            raise TransportError(
                f"Weaviate REST API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                code=classify_status(response.status_code, ""),
                details={"method": verb, "path": path},
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type and response.content:
            return response.json()
        return None


__all__ = ["WeaviateRestClient", "ALLOWED_METHODS"]
