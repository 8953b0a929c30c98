# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the MCP hub.

This package contains:
- config: Configuration management
- errors: Exception taxonomy (converted to failed envelopes at the boundary)
- logging: Structured logging
"""

from mcp_hub.core.config import get_config, Config
from mcp_hub.core.errors import (
    HubError,
    NotFoundError,
    DisabledError,
    ConnectorTimeoutError,
    DispatchError,
    ConditionEvaluationError,
    WorkflowExecutionError,
    ValidationError,
    ConfigurationError,
)
from mcp_hub.core.logging import get_service_logger, log_event

__all__ = [
    "get_config",
    "Config",
    "HubError",
    "NotFoundError",
    "DisabledError",
    "ConnectorTimeoutError",
    "DispatchError",
    "ConditionEvaluationError",
    "WorkflowExecutionError",
    "ValidationError",
    "ConfigurationError",
    "get_service_logger",
    "log_event",
]
