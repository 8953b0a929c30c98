# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures for hub tests.
"""

import os
import sys
from typing import Any, Dict, List, Tuple

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from mcp_hub.cache import ResponseCache
from mcp_hub.core.config import Config
from mcp_hub.handlers import ConnectorHandler
from mcp_hub.models import Connector, ConnectorType, MCPResponse
from mcp_hub.registry import ConnectorRegistry


class RecordingHandler(ConnectorHandler):
    """Handler that records calls and returns a canned response (or raises)"""

    def __init__(self, config: Config, connector_type: ConnectorType):
        super().__init__(config)
        self.connector_type = connector_type
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.response = MCPResponse.ok({"echo": True})
        self.error: Exception = None

    async def handle(self, connector, action, params, context):
        self.calls.append((connector.id, action, dict(params)))
        if self.error is not None:
            raise self.error
        return self.response


def make_connector(connector_id: str, connector_type: str = "api", **fields) -> Connector:
    """Connector from wire-format fields"""
    return Connector.model_validate({
        "id": connector_id,
        "type": connector_type,
        "config": fields.pop("config", {}),
        **fields,
    })


@pytest.fixture
def hub_config(tmp_path):
    """Config rooted at a temp workspace"""
    return Config(workspace_root=str(tmp_path), log_format="text")


@pytest.fixture
def registry():
    return ConnectorRegistry()


@pytest.fixture
def cache():
    return ResponseCache()


@pytest.fixture
def recording_handlers(hub_config):
    """One RecordingHandler per connector type"""
    return {t: RecordingHandler(hub_config, t) for t in ConnectorType}


@pytest.fixture
def connector_factory():
    return make_connector
