# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
System API - health, status and config file management

Endpoints:
- GET  /health          - Liveness
- GET  /status          - Connector and workflow statistics
- POST /config/reload   - Re-read connector config files
- POST /config/sample   - Write a sample connector config
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from mcp_hub.core.dependencies import get_hub
from mcp_hub.core.errors import ConfigurationError

router = APIRouter(tags=["system"])


class WorkspaceRequest(BaseModel):
    """Optional workspace override"""
    model_config = ConfigDict(populate_by_name=True)

    workspace_root: Optional[str] = Field(default=None, alias="workspaceRoot")


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/status")
async def get_status(hub=Depends(get_hub)) -> Dict[str, Any]:
    """Connector and workflow statistics plus cache state"""
    return {
        "workspaceRoot": hub.workspace_root,
        "connectors": hub.connector_stats(),
        "workflows": hub.workflow_stats(),
        "cache": {
            "entries": len(hub.cache),
            "ttl": hub.cache.ttl,
            "sweeping": hub.cache.running,
        },
    }


@router.post("/config/reload")
async def reload_config(
    request: Optional[WorkspaceRequest] = None,
    hub=Depends(get_hub)
) -> Dict[str, Any]:
    """Rebuild connector and workflow definitions from the workspace"""
    return await hub.reload(request.workspace_root if request else None)


@router.post("/config/sample")
async def create_sample_config(
    request: Optional[WorkspaceRequest] = None,
    hub=Depends(get_hub)
) -> Dict[str, str]:
    """Write .neon-connectors.yaml into the workspace root"""
    try:
        path = hub.create_sample_config(request.workspace_root if request else None)
    except ConfigurationError as e:
        raise HTTPException(status_code=409 if "already exists" in e.message else 400, detail=e.to_dict())
    return {"path": str(path)}
