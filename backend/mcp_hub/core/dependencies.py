# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency injection for the hub API.

The IntegrationHub is created by the app lifespan and stored on app.state.
"""

from typing import Optional

from fastapi import HTTPException, Request, status

from mcp_hub.models import InvocationContext


def get_hub(request: Request):
    """Get the IntegrationHub instance from app.state (initialized at startup)."""
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Integration hub is not running"
        )
    return hub


def resolve_context(hub, context: Optional[InvocationContext]) -> InvocationContext:
    """Fill in the hub's workspace root when the caller left it out."""
    if context is None:
        return hub.make_context()
    if not context.workspace_root:
        return context.model_copy(update={"workspace_root": hub.workspace_root})
    return context
