# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow API Routes

- GET  /workflows                - List workflow definitions
- POST /workflows/{id}/toggle    - Flip enabled state
- POST /workflows/{id}/run       - Execute a workflow
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mcp_hub.core.dependencies import get_hub, resolve_context
from mcp_hub.models import InvocationContext, MCPResponse

router = APIRouter(prefix="/workflows", tags=["workflows"])


class RunRequest(BaseModel):
    """Request to run a workflow"""
    context: Optional[InvocationContext] = None


@router.get("")
async def list_workflows(hub=Depends(get_hub)) -> List[Dict[str, Any]]:
    """List all loaded workflows"""
    return [w.model_dump(mode="json", by_alias=True) for w in hub.list_workflows()]


@router.post("/{workflow_id}/toggle")
async def toggle_workflow(workflow_id: str, hub=Depends(get_hub)) -> Dict[str, Any]:
    enabled = hub.toggle_workflow(workflow_id)
    if enabled is None:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return {"id": workflow_id, "enabled": enabled}


@router.post("/{workflow_id}/run", response_model=MCPResponse)
async def run_workflow(
    workflow_id: str,
    request: Optional[RunRequest] = None,
    hub=Depends(get_hub)
) -> MCPResponse:
    context = resolve_context(hub, request.context if request else None)
    return await hub.run_workflow(workflow_id, context)
