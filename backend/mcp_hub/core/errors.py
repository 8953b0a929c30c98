# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the MCP hub.

All exceptions inherit from HubError. They are raised inside handlers and
the workflow engine and converted into failed MCPResponse envelopes at the
executor/engine boundary - callers never see them.
"""

from typing import Optional, Any


class HubError(Exception):
    """Base exception for all hub errors."""

    error_type = "HubError"

    def __init__(
        self,
        message: str,
        data: Any = None,
        details: Optional[dict] = None
    ):
        """
        Initialize hub error.

        Args:
            message: Human-readable error message
            data: Partial payload to surface alongside the error
                (e.g. HTTP body, process output)
            details: Additional metadata merged into the envelope
        """
        self.message = message
        self.data = data
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "errorType": self.error_type,
            "message": self.message,
            "details": self.details
        }

    def to_response(self, duration: Optional[int] = None):
        """Convert error to a failed MCPResponse envelope."""
        from mcp_hub.models import MCPResponse

        metadata = {**self.details, "errorType": self.error_type}
        return MCPResponse(
            success=False,
            error=self.message,
            data=self.data,
            metadata=metadata,
            duration=duration
        )


class NotFoundError(HubError):
    """Unknown connector or workflow id."""

    error_type = "NotFound"

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            resource: Type of resource ("Connector", "Workflow")
            identifier: Resource identifier
            details: Additional error details
        """
        super().__init__(f"{resource} '{identifier}' not found", details=details)
        self.resource = resource
        self.identifier = identifier


class DisabledError(HubError):
    """Connector or workflow exists but is toggled off."""

    error_type = "Disabled"

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        super().__init__(f"{resource} '{identifier}' is disabled", details=details)
        self.resource = resource
        self.identifier = identifier


class ConnectorTimeoutError(HubError):
    """Operation exceeded its configured budget."""

    error_type = "Timeout"

    def __init__(self, message: str, timeout_ms: int, data: Any = None):
        super().__init__(message, data=data, details={"timeout": timeout_ms})
        self.timeout_ms = timeout_ms


class DispatchError(HubError):
    """
    Protocol-specific failure.

    Non-2xx HTTP, non-zero process exit, filesystem error, unsupported
    action, malformed configuration for the connector type.
    """

    error_type = "DispatchFailure"


class ConditionEvaluationError(HubError):
    """Condition expression could not be evaluated."""

    error_type = "ConditionEvaluationError"

    def __init__(self, condition: str, reason: str):
        super().__init__(f"Failed to evaluate condition '{condition}': {reason}")
        self.condition = condition
        self.reason = reason


class WorkflowExecutionError(HubError):
    """Workflow run could not complete (required step failed, step budget exceeded)."""

    error_type = "WorkflowExecutionError"


class ValidationError(HubError):
    """Definition failed validation."""

    error_type = "ValidationError"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.field = field


class ConfigurationError(HubError):
    """Configuration file could not be read or parsed."""

    error_type = "ConfigurationError"

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.config_file = config_file


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = True) -> str:
    """
    Sanitize error messages for user display.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        Single-line message without stack trace, capped at 500 characters
    """
    error_msg = str(error).strip().replace("\n", " ")

    if not error_msg:
        error_msg = repr(error)

    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
