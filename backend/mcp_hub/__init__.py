# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Neon MCP Hub - connector execution and workflow orchestration.
"""

from mcp_hub.hub import IntegrationHub
from mcp_hub.models import (
    Connector,
    ConnectorType,
    InvocationContext,
    MCPResponse,
    Workflow,
    WorkflowStep,
)

__version__ = "0.1.0"

__all__ = [
    "IntegrationHub",
    "Connector",
    "ConnectorType",
    "InvocationContext",
    "MCPResponse",
    "Workflow",
    "WorkflowStep",
]
