# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FastAPI app - HTTP surface of the integration hub.
Executes connectors and workflows, reports registry status.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcp_hub.api import connectors, system, workflows
from mcp_hub.core.config import get_config
from mcp_hub.core.logging import get_api_logger
from mcp_hub.hub import IntegrationHub

logger = get_api_logger()


def create_app(hub: Optional[IntegrationHub] = None) -> FastAPI:
    """
    Build the API app.

    Args:
        hub: Hub to serve; one is built from the global config at startup
            when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        instance = hub or IntegrationHub()
        await instance.start()
        await instance.reload()
        app.state.hub = instance
        logger.info(f"Serving workspace {instance.workspace_root}")
        try:
            yield
        finally:
            app.state.hub = None
            await instance.stop()

    app = FastAPI(
        title="Neon MCP Hub",
        description="Connector execution and workflow orchestration",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Browser callers only from explicitly listed origins
    origins = (hub.config if hub else get_config()).cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(origins),
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    app.include_router(system.router)
    app.include_router(connectors.router)
    app.include_router(workflows.router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    config = get_config()
    uvicorn.run(app, host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    main()
