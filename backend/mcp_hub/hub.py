# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Integration Hub - owns the registry, cache, executor and workflow engine.

One instance per process (or per test). Nothing here is module-global.

    async with IntegrationHub() as hub:
        await hub.reload("/path/to/workspace")
        response = await hub.execute("github", "get", {"path": "/user"})
"""
import asyncio
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from .cache import ResponseCache
from .config_loader import load_definitions, write_sample_config
from .core.config import Config, get_config
from .core.logging import get_service_logger
from .executor import ConnectorExecutor
from .handlers import build_handlers
from .models import Connector, ConnectorType, InvocationContext, MCPResponse, Workflow
from .registry import ConnectorRegistry
from .workflow_engine import ApprovalHandler, ChatProvider, WorkflowEngine

logger = get_service_logger("hub")

# Cheapest read-only action per connector type, used by test_connector()
CHECK_ACTIONS: Dict[ConnectorType, str] = {
    ConnectorType.API: "get",
    ConnectorType.CLI: "version",
    ConnectorType.FILE: "exists",
    ConnectorType.DATABASE: "schema",
    ConnectorType.WEBHOOK: "health",
}


class IntegrationHub:
    """Facade over connector execution and workflow orchestration"""

    def __init__(
        self,
        config: Optional[Config] = None,
        ai_provider: Optional[ChatProvider] = None,
        approval_handler: Optional[ApprovalHandler] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or get_config()
        self.workspace_root = self.config.workspace_root or os.getcwd()

        self.registry = ConnectorRegistry()
        self.cache = ResponseCache(
            ttl=self.config.cache_ttl,
            max_age=self.config.cache_max_age,
            sweep_interval=self.config.cache_sweep_interval
        )
        self.handlers = build_handlers(self.config, http_client=http_client)
        self.executor = ConnectorExecutor(self.registry, self.cache, self.handlers)
        self.engine = WorkflowEngine(
            self.registry,
            self.executor,
            ai_provider=ai_provider,
            approval_handler=approval_handler,
            max_steps=self.config.max_workflow_steps,
            default_step_timeout=self.config.default_step_timeout
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self) -> None:
        self.cache.start()
        logger.info("Integration hub started")

    async def stop(self) -> None:
        await self.cache.stop()
        for handler in self.handlers.values():
            await handler.aclose()
        logger.info("Integration hub stopped")

    async def __aenter__(self) -> "IntegrationHub":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def reload(self, workspace_root: Optional[str] = None) -> Dict[str, Any]:
        """
        Rebuild definitions from the workspace's config files.

        The cache is emptied: cached responses may belong to connectors
        whose definition just changed.
        """
        if workspace_root:
            self.workspace_root = workspace_root

        definitions = await asyncio.to_thread(
            load_definitions,
            self.workspace_root,
            self.config.config_file_patterns,
            self.config.ignored_dirs
        )
        self.registry.load(definitions)
        self.cache.clear()

        return {
            "workspaceRoot": self.workspace_root,
            "connectors": self.registry.stats(),
            "workflows": self.registry.workflow_stats(),
        }

    def clear(self) -> None:
        """Forget user definitions and cached responses; built-ins remain"""
        self.registry.clear()
        self.cache.clear()

    # ========================================================================
    # Execution
    # ========================================================================

    def make_context(self, **fields: Any) -> InvocationContext:
        """InvocationContext defaulting the workspace root to the hub's"""
        fields.setdefault("workspace_root", self.workspace_root)
        return InvocationContext(**fields)

    async def execute(
        self,
        connector_id: str,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        context: Optional[InvocationContext] = None
    ) -> MCPResponse:
        return await self.executor.execute(
            connector_id, action, params, context or self.make_context()
        )

    async def run_workflow(
        self,
        workflow_id: str,
        context: Optional[InvocationContext] = None
    ) -> MCPResponse:
        return await self.engine.run_workflow(workflow_id, context or self.make_context())

    async def test_connector(self, connector_id: str) -> MCPResponse:
        """Run the connector type's check action"""
        connector = self.registry.get(connector_id)
        action = CHECK_ACTIONS[connector.type] if connector else "get"
        response = await self.execute(connector_id, action, {})

        logger.info(
            f"Connector test {connector_id}: {'ok' if response.success else response.error}",
            extra={"connector_id": connector_id, "success": response.success}
        )
        return response

    # ========================================================================
    # Introspection
    # ========================================================================

    def toggle_connector(self, connector_id: str) -> Optional[bool]:
        return self.registry.toggle(connector_id)

    def toggle_workflow(self, workflow_id: str) -> Optional[bool]:
        return self.registry.toggle_workflow(workflow_id)

    def list_connectors(self) -> List[Connector]:
        return self.registry.list()

    def list_workflows(self) -> List[Workflow]:
        return self.registry.list_workflows()

    def connector_stats(self) -> Dict[str, Any]:
        return self.registry.stats()

    def workflow_stats(self) -> Dict[str, Any]:
        return self.registry.workflow_stats()

    def create_sample_config(self, workspace_root: Optional[str] = None) -> Path:
        return write_sample_config(workspace_root or self.workspace_root)
