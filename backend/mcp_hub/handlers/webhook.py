# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Webhook connector - POSTs {action, params, context, timestamp} as JSON.
"""
import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from .base import ConnectorHandler
from ..core.config import Config
from ..core.errors import ConnectorTimeoutError, DispatchError
from ..models import Connector, ConnectorType, InvocationContext, MCPResponse


class WebhookHandler(ConnectorHandler):
    """Outbound webhook connector"""

    connector_type = ConnectorType.WEBHOOK

    def __init__(self, config: Config, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

    def build_payload(self, action: str, params: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        return {
            "action": action,
            "params": params,
            "context": context.model_dump(mode="json", by_alias=True),
            "timestamp": int(time.time() * 1000),
        }

    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        url = connector.config.webhook_url
        if not url:
            raise DispatchError(f"Connector '{connector.id}' has no webhook URL configured")

        payload = self.build_payload(action, params, context)
        timeout_ms = self.timeout_ms(connector)

        try:
            response = await asyncio.wait_for(
                self.client.post(
                    url,
                    json=payload,
                    headers=dict(connector.config.headers),
                    timeout=timeout_ms / 1000.0,
                    follow_redirects=False
                ),
                timeout=timeout_ms / 1000.0
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise ConnectorTimeoutError("Webhook timeout", timeout_ms)
        except httpx.HTTPError as e:
            raise DispatchError(f"Webhook execution failed: {e}")

        metadata = {"status": response.status_code}

        if response.status_code >= 400:
            raise DispatchError(
                f"Webhook failed: {response.reason_phrase}",
                data=response.text,
                details=metadata
            )

        return MCPResponse.ok(response.text, metadata=metadata)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
