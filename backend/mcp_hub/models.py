# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Hub Models - connectors, invocation context, response envelope, workflows.

Wire format (config files, HTTP API) is camelCase; attributes are snake_case.
"""
import time
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _now_ms() -> int:
    return int(time.time() * 1000)


class WireModel(BaseModel):
    """Base for models that read and write camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True)


# ============================================================================
# Connector Definition Models
# ============================================================================

class ConnectorType(str, Enum):
    """Supported connector types. Each has exactly one handler."""
    API = "api"
    CLI = "cli"
    FILE = "file"
    DATABASE = "database"
    WEBHOOK = "webhook"


class AuthConfig(WireModel):
    """Authentication strategy applied to outgoing API headers"""
    type: Literal["bearer", "basic", "apikey", "oauth"]
    credentials: Dict[str, Optional[str]] = {}


class BaseConnectorConfig(WireModel):
    """Fields shared by every connector type"""
    timeout: Optional[int] = Field(default=None, gt=0)  # milliseconds
    retries: int = Field(default=0, ge=0)


class ApiConfig(BaseConnectorConfig):
    kind: Literal["api"] = "api"
    endpoint: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    headers: Dict[str, str] = {}
    authentication: Optional[AuthConfig] = None


class CliConfig(BaseConnectorConfig):
    kind: Literal["cli"] = "cli"
    command: Optional[str] = None


class FileConfig(BaseConnectorConfig):
    kind: Literal["file"] = "file"
    file_path: Optional[str] = Field(default=None, alias="filePath")


class DatabaseConfig(BaseConnectorConfig):
    kind: Literal["database"] = "database"
    connection_string: Optional[str] = Field(default=None, alias="connectionString")


class WebhookConfig(BaseConnectorConfig):
    kind: Literal["webhook"] = "webhook"
    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")
    headers: Dict[str, str] = {}


ConnectorConfig = Annotated[
    Union[ApiConfig, CliConfig, FileConfig, DatabaseConfig, WebhookConfig],
    Field(discriminator="kind"),
]


class Connector(WireModel):
    """A named, typed adapter to one external system"""
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    type: ConnectorType
    config: ConnectorConfig
    enabled: bool = True
    priority: int = 0

    @model_validator(mode="before")
    @classmethod
    def _tag_config(cls, data: Any) -> Any:
        # The on-disk format keys the config shape off the connector type;
        # copy it into the config so the union can discriminate.
        if isinstance(data, dict):
            connector_type = data.get("type")
            if isinstance(connector_type, Enum):
                connector_type = connector_type.value
            config = data.get("config")
            if config is None:
                config = {}
            if isinstance(config, dict):
                config = {**config, "kind": connector_type}
            data = {**data, "config": config}
            if not data.get("name"):
                data["name"] = data.get("id", "")
        return data

    @model_validator(mode="after")
    def _check_config_kind(self) -> "Connector":
        if self.config.kind != self.type.value:
            raise ValueError(
                f"Connector '{self.id}' has type '{self.type.value}' but a '{self.config.kind}' config"
            )
        return self


# ============================================================================
# Invocation Models
# ============================================================================

class InvocationContext(WireModel):
    """Ambient information passed read-only to every execution"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    workspace_root: str = Field(default="", alias="workspaceRoot")
    current_file: Optional[str] = Field(default=None, alias="currentFile")
    selected_text: Optional[str] = Field(default=None, alias="selectedText")
    language: Optional[str] = None
    git_branch: Optional[str] = Field(default=None, alias="gitBranch")
    timestamp: int = Field(default_factory=_now_ms)
    user_request: str = Field(default="", alias="userRequest")


class MCPResponse(BaseModel):
    """
    Uniform result of every connector call and every workflow step.

    `cached` is only ever set by the cache layer; `duration` (ms) by the
    executor after dispatch.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    cached: bool = False
    duration: Optional[int] = None

    @model_validator(mode="after")
    def _failure_has_error(self) -> "MCPResponse":
        if not self.success and not self.error:
            raise ValueError("A failed response must carry an error message")
        return self

    @classmethod
    def ok(cls, data: Any = None, **kwargs: Any) -> "MCPResponse":
        return cls(success=True, data=data, **kwargs)

    @classmethod
    def fail(cls, error: str, data: Any = None, **kwargs: Any) -> "MCPResponse":
        return cls(success=False, error=error, data=data, **kwargs)

    @property
    def error_type(self) -> Optional[str]:
        """Error class recorded by HubError.to_response(), if any"""
        if self.metadata:
            return self.metadata.get("errorType")
        return None


# ============================================================================
# Workflow Definition Models
# ============================================================================

class StepType(str, Enum):
    CONNECTOR = "connector"
    AI = "ai"
    USER = "user"
    CONDITION = "condition"


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class WorkflowStep(WireModel):
    """
    One unit of workflow execution.

    Only condition steps navigate by onSuccess/onFailure; every other type
    advances to the next step in list order.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    type: StepType
    connector_id: Optional[str] = Field(default=None, alias="connectorId")
    action: str = "run"
    params: Dict[str, Any] = {}
    prompt: Optional[str] = None
    condition: Optional[str] = None
    on_success: Optional[str] = Field(default=None, alias="onSuccess")
    on_failure: Optional[str] = Field(default=None, alias="onFailure")
    timeout: Optional[int] = Field(default=None, gt=0)  # milliseconds
    required: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = {**data, "name": data.get("id", "")}
        return data


class Workflow(WireModel):
    """Ordered, optionally branching sequence of steps with shared variables"""
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    triggers: List[str] = []
    steps: List[WorkflowStep] = []
    variables: Dict[str, Any] = {}
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = {**data, "name": data.get("id", "")}
        return data


# ============================================================================
# Execution Models
# ============================================================================

class StepResult(WireModel):
    """Entry of the workflow result log"""
    step_id: str = Field(alias="stepId")
    step_name: str = Field(alias="stepName")
    result: MCPResponse


class HubDefinitions(BaseModel):
    """Parsed `{connectors, workflows}` handed to the registry"""
    connectors: List[Connector] = []
    workflows: List[Workflow] = []
