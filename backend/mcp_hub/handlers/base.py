# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Base class for connector dispatch strategies.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict

from ..core.config import Config
from ..models import Connector, ConnectorType, InvocationContext, MCPResponse


class ConnectorHandler(ABC):
    """
    One execution strategy per connector type.

    Handlers return an MCPResponse on success and raise HubError subclasses
    (DispatchError, ConnectorTimeoutError) on failure. Each handler enforces
    the connector's own timeout; the executor does not supervise them.
    """

    connector_type: ConnectorType

    def __init__(self, config: Config):
        self.config = config

    def timeout_ms(self, connector: Connector) -> int:
        """Connector timeout, falling back to the per-type default"""
        return connector.config.timeout or self.config.get_default_timeout(self.connector_type.value)

    def timeout_seconds(self, connector: Connector) -> float:
        return self.timeout_ms(connector) / 1000.0

    @abstractmethod
    async def handle(
        self,
        connector: Connector,
        action: str,
        params: Dict[str, Any],
        context: InvocationContext
    ) -> MCPResponse:
        """Run `action` against the connector's backing system"""

    async def aclose(self) -> None:
        """Release pooled resources (HTTP clients etc.)"""
