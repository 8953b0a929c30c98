# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connector Registry - owns connector and workflow definitions.

Built-in connectors are always present; user definitions are merged on top
and win on id collision. A reload rebuilds the registry from scratch.
"""
from typing import Any, Dict, List, Optional

from .models import Connector, HubDefinitions, Workflow
from .core.logging import get_service_logger

logger = get_service_logger("registry")


BUILTIN_CONNECTORS: List[Dict[str, Any]] = [
    {
        "id": "github",
        "name": "GitHub API",
        "description": "GitHub repository and issue management",
        "type": "api",
        "config": {
            "endpoint": "https://api.github.com",
            "headers": {
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "Neon-Agent",
            },
            "timeout": 10000,
            "retries": 3,
        },
        "enabled": True,
        "priority": 100,
    },
    {
        "id": "jira",
        "name": "Jira API",
        "description": "Jira issue tracking and project management",
        "type": "api",
        "config": {"timeout": 15000, "retries": 2},
        "enabled": False,
        "priority": 90,
    },
    {
        "id": "slack",
        "name": "Slack Webhook",
        "description": "Send notifications to Slack channels",
        "type": "webhook",
        "config": {"timeout": 5000, "retries": 2},
        "enabled": False,
        "priority": 80,
    },
    {
        "id": "docker",
        "name": "Docker CLI",
        "description": "Docker container management",
        "type": "cli",
        "config": {"command": "docker", "timeout": 30000, "retries": 1},
        "enabled": False,
        "priority": 70,
    },
    {
        "id": "database",
        "name": "Database Query",
        "description": "Execute database queries",
        "type": "database",
        "config": {"timeout": 20000, "retries": 2},
        "enabled": False,
        "priority": 60,
    },
]


class ConnectorRegistry:
    """Holds known connectors and workflows, their enablement and priority"""

    def __init__(self, load_builtins: bool = True):
        self._connectors: Dict[str, Connector] = {}
        self._workflows: Dict[str, Workflow] = {}
        if load_builtins:
            self.load_builtins()

    # ========================================================================
    # Connectors
    # ========================================================================

    def register(self, connector: Connector) -> None:
        """Insert or replace by id"""
        self._connectors[connector.id] = connector

    def load_builtins(self) -> None:
        for definition in BUILTIN_CONNECTORS:
            self.register(Connector.model_validate(definition))

    def get(self, connector_id: str) -> Optional[Connector]:
        return self._connectors.get(connector_id)

    def toggle(self, connector_id: str) -> Optional[bool]:
        """
        Flip a connector's enabled flag.

        Returns the new state, or None if the id is unknown (no-op).
        """
        connector = self._connectors.get(connector_id)
        if connector is None:
            logger.warning(f"Toggle ignored, unknown connector: {connector_id}")
            return None

        connector.enabled = not connector.enabled
        logger.info(f"Connector {connector_id} {'enabled' if connector.enabled else 'disabled'}")
        return connector.enabled

    def list(self) -> List[Connector]:
        """Connectors by descending priority; sort is stable so ties keep insertion order"""
        return sorted(self._connectors.values(), key=lambda c: c.priority, reverse=True)

    def stats(self) -> Dict[str, Any]:
        connectors = list(self._connectors.values())
        by_type = {}
        for connector in connectors:
            by_type[connector.type.value] = by_type.get(connector.type.value, 0) + 1

        enabled = sum(1 for c in connectors if c.enabled)
        return {
            "total": len(connectors),
            "enabled": enabled,
            "disabled": len(connectors) - enabled,
            "byType": by_type,
        }

    # ========================================================================
    # Workflows
    # ========================================================================

    def register_workflow(self, workflow: Workflow) -> None:
        self._workflows[workflow.id] = workflow

    def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    def toggle_workflow(self, workflow_id: str) -> Optional[bool]:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            logger.warning(f"Toggle ignored, unknown workflow: {workflow_id}")
            return None

        workflow.enabled = not workflow.enabled
        logger.info(f"Workflow {workflow_id} {'enabled' if workflow.enabled else 'disabled'}")
        return workflow.enabled

    def list_workflows(self) -> List[Workflow]:
        return list(self._workflows.values())

    def workflow_stats(self) -> Dict[str, Any]:
        workflows = list(self._workflows.values())
        by_trigger: Dict[str, int] = {}
        for workflow in workflows:
            for trigger in workflow.triggers:
                by_trigger[trigger] = by_trigger.get(trigger, 0) + 1

        return {
            "total": len(workflows),
            "enabled": sum(1 for w in workflows if w.enabled),
            "triggers": list(by_trigger),
            "byTrigger": by_trigger,
        }

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def clear(self) -> None:
        """Drop all definitions, keeping only the built-ins"""
        self._connectors.clear()
        self._workflows.clear()
        self.load_builtins()

    def load(self, definitions: HubDefinitions) -> None:
        """Rebuild from scratch: built-ins first, user definitions on top"""
        self.clear()
        for connector in definitions.connectors:
            self.register(connector)
        for workflow in definitions.workflows:
            self.register_workflow(workflow)

        logger.info(
            f"Loaded {len(self._connectors)} connectors, {len(self._workflows)} workflows",
            extra={"connectors": len(self._connectors), "workflows": len(self._workflows)}
        )

    def __len__(self) -> int:
        return len(self._connectors)

    def __contains__(self, connector_id: str) -> bool:
        return connector_id in self._connectors
