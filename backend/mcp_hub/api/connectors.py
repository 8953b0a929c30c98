# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connector API Routes

- GET  /connectors                  - List connectors by priority
- POST /connectors/{id}/toggle      - Flip enabled state
- POST /connectors/{id}/execute     - Run an action
- POST /connectors/{id}/test        - Run the type's check action

Execution failures are data: the envelope is returned with HTTP 200.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mcp_hub.core.dependencies import get_hub, resolve_context
from mcp_hub.models import InvocationContext, MCPResponse

router = APIRouter(prefix="/connectors", tags=["connectors"])


class ExecuteRequest(BaseModel):
    """Request to execute a connector action"""
    action: str
    params: Dict[str, Any] = {}
    context: Optional[InvocationContext] = None


@router.get("")
async def list_connectors(hub=Depends(get_hub)) -> List[Dict[str, Any]]:
    """List connectors; configs are omitted since they may hold credentials"""
    return [
        {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "type": c.type.value,
            "enabled": c.enabled,
            "priority": c.priority,
        }
        for c in hub.list_connectors()
    ]


@router.post("/{connector_id}/toggle")
async def toggle_connector(connector_id: str, hub=Depends(get_hub)) -> Dict[str, Any]:
    enabled = hub.toggle_connector(connector_id)
    if enabled is None:
        raise HTTPException(status_code=404, detail=f"Connector '{connector_id}' not found")
    return {"id": connector_id, "enabled": enabled}


@router.post("/{connector_id}/execute", response_model=MCPResponse)
async def execute_connector(
    connector_id: str,
    request: ExecuteRequest,
    hub=Depends(get_hub)
) -> MCPResponse:
    context = resolve_context(hub, request.context)
    return await hub.execute(connector_id, request.action, request.params, context)


@router.post("/{connector_id}/test", response_model=MCPResponse)
async def test_connector(connector_id: str, hub=Depends(get_hub)) -> MCPResponse:
    return await hub.test_connector(connector_id)
