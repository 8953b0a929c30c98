# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
API connector - REST calls over httpx.

Action selects the HTTP method: get, post, put, delete. The request URL is
`endpoint + params.path`; post/put send `params.data` as JSON.
"""
import asyncio
import base64
from typing import Any, Dict, Optional

import httpx

from .base import ConnectorHandler
from ..core.config import Config
from ..core.errors import ConnectorTimeoutError, DispatchError
from ..models import AuthConfig, Connector, ConnectorType, InvocationContext, MCPResponse

ACTION_METHODS = {
    "get": "GET",
    "post": "POST",
    "put": "PUT",
    "delete": "DELETE",
}

BODY_METHODS = {"POST", "PUT"}


def apply_authentication(headers: Dict[str, str], auth: AuthConfig) -> None:
    """
    Add auth headers in place.

    bearer: Authorization: Bearer <token>
    basic:  Authorization: Basic base64(username:password)
    apikey: <credentials.header or X-API-Key>: <key>
    oauth:  Authorization: Bearer <accessToken or token>
    """
    creds = auth.credentials
    if auth.type == "bearer":
        headers["Authorization"] = f"Bearer {creds.get('token') or ''}"
    elif auth.type == "basic":
        raw = f"{creds.get('username') or ''}:{creds.get('password') or ''}"
        headers["Authorization"] = f"Basic {base64.b64encode(raw.encode()).decode()}"
    elif auth.type == "apikey":
        headers[creds.get("header") or "X-API-Key"] = creds.get("key") or ""
    elif auth.type == "oauth":
        token = creds.get("accessToken") or creds.get("token") or ""
        headers["Authorization"] = f"Bearer {token}"


def parse_body(response: httpx.Response) -> Any:
    """JSON body if it parses, raw text otherwise"""
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiHandler(ConnectorHandler):
    """REST client connector"""

    connector_type = ConnectorType.API

    def __init__(self, config: Config, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

    def build_headers(self, connector: Connector) -> Dict[str, str]:
        # Never mutate the connector's own header map
        headers = dict(connector.config.headers)
        if connector.config.api_key and not connector.config.authentication:
            headers.setdefault("X-API-Key", connector.config.api_key)
        if connector.config.authentication:
            apply_authentication(headers, connector.config.authentication)
        return headers

    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        method = ACTION_METHODS.get(action)
        if method is None:
            raise DispatchError(f"Unsupported API action: {action}")

        if not connector.config.endpoint:
            raise DispatchError(f"Connector '{connector.id}' has no endpoint configured")

        url = connector.config.endpoint + str(params.get("path") or "")
        headers = self.build_headers(connector)

        request_kwargs: Dict[str, Any] = {"headers": headers}
        if params.get("query"):
            request_kwargs["params"] = params["query"]
        if method in BODY_METHODS:
            request_kwargs["json"] = params.get("data")

        timeout_ms = self.timeout_ms(connector)
        try:
            response = await asyncio.wait_for(
                self.client.request(method, url, timeout=timeout_ms / 1000.0, **request_kwargs),
                timeout=timeout_ms / 1000.0
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise ConnectorTimeoutError("Request timeout", timeout_ms)
        except httpx.HTTPError as e:
            raise DispatchError(f"API request failed: {e}")

        body = parse_body(response)
        metadata = {
            "status": response.status_code,
            "headers": dict(response.headers),
        }

        if response.status_code >= 400:
            raise DispatchError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                data=body,
                details=metadata
            )

        return MCPResponse.ok(body, metadata=metadata)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
