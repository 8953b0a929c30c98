# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connector Configuration Loader - discovers `.neon-connectors.*` files in a
workspace and parses them into connector and workflow definitions.

Files are data only (YAML or JSON). Environment values and secrets are
referenced with string placeholders instead of executable code:

    ${env:GITHUB_REPO}          environment variable
    ${secret:GITHUB_TOKEN}      NEON_SECRET_GITHUB_TOKEN
    ${CHANNEL:-#dev-alerts}     environment variable with default

A broken file or entry is logged and skipped; it never aborts a reload.
"""
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pydantic
import yaml

from .core.config import get_secret
from .core.errors import ConfigurationError, ValidationError
from .core.logging import get_service_logger
from .models import Connector, HubDefinitions, StepType, Workflow

logger = get_service_logger("config")

DEFAULT_CONFIG_FILES = [".neon-connectors.json", ".neon-connectors.yaml", ".neon-connectors.yml"]
DEFAULT_IGNORED_DIRS = [".git", "node_modules", ".venv", "venv", "__pycache__"]
SCRIPT_CONFIG_FILE = ".neon-connectors.js"
SAMPLE_CONFIG_FILE = ".neon-connectors.yaml"

# ${env:NAME}, ${secret:NAME}, ${NAME}, ${NAME:-default}
_PLACEHOLDER = re.compile(r'\$\{(?:(env|secret):)?([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}')


# ============================================================================
# Discovery
# ============================================================================

def discover_config_files(
    workspace_root: str,
    patterns: Optional[Iterable[str]] = None,
    ignored_dirs: Optional[Iterable[str]] = None
) -> List[Path]:
    """
    Find connector config files anywhere below the workspace root.

    Args:
        workspace_root: Directory to search
        patterns: Accepted file names
        ignored_dirs: Directory names never descended into

    Returns:
        Matching paths in sorted order
    """
    names = set(patterns or DEFAULT_CONFIG_FILES)
    skip = set(ignored_dirs or DEFAULT_IGNORED_DIRS)
    root = Path(workspace_root)

    if not root.is_dir():
        logger.warning(f"Workspace root does not exist: {workspace_root}")
        return []

    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in skip]
        for filename in filenames:
            if filename in names:
                found.append(Path(dirpath) / filename)
            elif filename == SCRIPT_CONFIG_FILE:
                logger.warning(
                    f"Skipping {Path(dirpath) / filename}: script configs are not executed, "
                    f"convert it to {SAMPLE_CONFIG_FILE}"
                )

    return sorted(found)


# ============================================================================
# Parsing
# ============================================================================

def parse_config_text(text: str, fmt: str) -> Dict[str, Any]:
    """
    Parse config file content.

    Args:
        text: File content
        fmt: "json" or "yaml"

    Raises:
        ConfigurationError: On syntax errors or a non-mapping document
    """
    try:
        if fmt == "json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid {fmt.upper()}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a mapping with 'connectors' and/or 'workflows'")
    return data


def _lookup(source: Optional[str], name: str) -> Optional[str]:
    if source == "secret":
        return get_secret(name)
    return os.getenv(name)


def resolve_placeholders(value: Any) -> Any:
    """
    Substitute placeholders in every string of a parsed config tree.

    Unset names resolve to the default, or an empty string.

    Examples:
        ${secret:GITHUB_TOKEN} -> $NEON_SECRET_GITHUB_TOKEN
        ${AGENT_PORT:-7000} -> env value or 7000
    """
    if isinstance(value, dict):
        return {k: resolve_placeholders(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_placeholders(v) for v in value]
    if not isinstance(value, str):
        return value

    def replacer(match):
        source, name, default = match.group(1), match.group(2), match.group(3)
        resolved = _lookup(source, name)
        if resolved is None:
            return default or ""
        return resolved

    return _PLACEHOLDER.sub(replacer, value)


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read, parse and resolve placeholders in one config file"""
    fmt = "json" if path.suffix == ".json" else "yaml"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config: {e}", config_file=str(path))

    try:
        data = parse_config_text(text, fmt)
    except ConfigurationError as e:
        raise ConfigurationError(e.message, config_file=str(path))

    return resolve_placeholders(data)


# ============================================================================
# Validation
# ============================================================================

def validate_workflow(workflow: Workflow) -> None:
    """
    Structural checks pydantic cannot express.

    Raises:
        ValidationError: Duplicate step ids, a condition step without an
            expression, or onSuccess/onFailure naming an unknown step
    """
    errors: List[str] = []
    seen = set()

    for step in workflow.steps:
        if step.id in seen:
            errors.append(f"duplicate step id '{step.id}'")
        seen.add(step.id)

    for step in workflow.steps:
        if step.type == StepType.CONDITION and not (step.condition or "").strip():
            errors.append(f"condition step '{step.id}' has no condition")
        for pointer in (step.on_success, step.on_failure):
            if pointer and pointer not in seen:
                errors.append(f"step '{step.id}' points to unknown step '{pointer}'")

    if errors:
        raise ValidationError(
            f"Workflow '{workflow.id}' is invalid: {'; '.join(errors)}",
            field="steps",
            details={"errors": errors}
        )


def _parse_entries(data: Dict[str, Any], source: str, definitions: HubDefinitions) -> None:
    for entry in data.get("connectors") or []:
        try:
            definitions.connectors.append(Connector.model_validate(entry))
        except pydantic.ValidationError as e:
            entry_id = entry.get("id") if isinstance(entry, dict) else None
            logger.error(f"Skipping connector {entry_id!r} in {source}: {e}")

    for entry in data.get("workflows") or []:
        try:
            workflow = Workflow.model_validate(entry)
            validate_workflow(workflow)
        except pydantic.ValidationError as e:
            entry_id = entry.get("id") if isinstance(entry, dict) else None
            logger.error(f"Skipping workflow {entry_id!r} in {source}: {e}")
            continue
        except ValidationError as e:
            logger.error(f"Skipping workflow in {source}: {e.message}")
            continue
        definitions.workflows.append(workflow)


def load_definitions(
    workspace_root: str,
    patterns: Optional[Iterable[str]] = None,
    ignored_dirs: Optional[Iterable[str]] = None
) -> HubDefinitions:
    """
    Load and merge every config file below the workspace root.

    Later files (in path order) win on id collision once handed to the
    registry.
    """
    definitions = HubDefinitions()

    for path in discover_config_files(workspace_root, patterns, ignored_dirs):
        try:
            data = read_config_file(path)
        except ConfigurationError as e:
            logger.error(f"Skipping {path}: {e.message}", extra={"config_file": str(path)})
            continue
        _parse_entries(data, str(path), definitions)

    logger.info(
        f"Parsed {len(definitions.connectors)} connectors, {len(definitions.workflows)} workflows "
        f"from {workspace_root}"
    )
    return definitions


# ============================================================================
# Sample
# ============================================================================

SAMPLE_CONFIG = """\
# Neon MCP connectors and workflows
#
# Placeholders: ${env:NAME}, ${secret:NAME} (reads NEON_SECRET_NAME),
# ${NAME:-default}. Timeouts are in milliseconds.

connectors:
  - id: github-issues
    name: GitHub Issues
    description: Create and manage GitHub issues
    type: api
    config:
      endpoint: https://api.github.com
      headers:
        Accept: application/vnd.github.v3+json
      authentication:
        type: bearer
        credentials:
          token: "${secret:GITHUB_TOKEN}"
    enabled: true
    priority: 100

  - id: slack-notify
    name: Slack Notifications
    description: Send notifications to Slack
    type: webhook
    config:
      webhookUrl: "${secret:SLACK_WEBHOOK_URL}"
      timeout: 5000
    enabled: true
    priority: 90

  - id: git-local
    name: Local Git
    description: Execute local git commands
    type: cli
    config:
      command: git
      timeout: 10000
    enabled: true
    priority: 80

  - id: docs-file
    name: Project Documentation
    description: Read and write project documentation
    type: file
    config:
      filePath: ./docs/README.md
    enabled: true
    priority: 70

workflows:
  - id: create-issue-from-error
    name: Create Issue from Error
    description: Automatically create GitHub issue when code errors are detected
    triggers: [error-detected, test-failure]
    steps:
      - id: analyze-error
        name: Analyze Error with AI
        type: ai
        prompt: "Analyze this error and suggest a solution: {{error_details}}"
        required: true
      - id: check-existing-issues
        name: Check for Existing Issues
        type: connector
        connectorId: github-issues
        action: get
        required: false
      - id: create-issue
        name: Create GitHub Issue
        type: connector
        connectorId: github-issues
        action: post
        required: true
      - id: notify-team
        name: Notify Team
        type: connector
        connectorId: slack-notify
        required: false
    variables:
      repository: "${env:GITHUB_REPO}"
      channel: "#dev-alerts"
    enabled: true

  - id: prepare-code-review
    name: Prepare Code Review
    description: Automated code review preparation with documentation updates
    triggers: [pre-commit, manual]
    steps:
      - id: run-tests
        name: Run Tests
        type: connector
        connectorId: git-local
        required: true
      - id: generate-changelog
        name: Generate Changelog
        type: ai
        prompt: "Generate changelog entry for these changes: {{git_diff}}"
        required: false
      - id: update-docs
        name: Update Documentation
        type: connector
        connectorId: docs-file
        action: write
        required: false
      - id: commit-changes
        name: Commit Documentation Changes
        type: connector
        connectorId: git-local
        required: false
    variables:
      test_command: npm test
      docs_path: ./docs/CHANGELOG.md
    enabled: true

  - id: backup-database
    name: Database Backup
    description: Backup database and notify on completion
    triggers: [scheduled, manual]
    steps:
      - id: create-backup
        name: Create Database Backup
        type: connector
        connectorId: database
        action: query
        required: true
      - id: verify-backup
        name: Verify Backup Integrity
        type: connector
        connectorId: database
        action: schema
        required: true
      - id: upload-to-storage
        name: Upload to Cloud Storage
        type: connector
        connectorId: cloud-storage
        required: false
      - id: notify-success
        name: Notify Success
        type: connector
        connectorId: slack-notify
        required: false
    variables:
      backup_location: "${env:BACKUP_PATH}"
      retention_days: 30
    enabled: false
"""


def write_sample_config(workspace_root: str) -> Path:
    """
    Write the sample config into the workspace root.

    Raises:
        ConfigurationError: If the workspace root is missing or the file exists
    """
    root = Path(workspace_root)
    if not root.is_dir():
        raise ConfigurationError(f"Workspace root does not exist: {workspace_root}")

    target = root / SAMPLE_CONFIG_FILE
    if target.exists():
        raise ConfigurationError(f"{target} already exists", config_file=str(target))

    target.write_text(SAMPLE_CONFIG, encoding="utf-8")
    logger.info(f"Created sample connector config: {target}")
    return target
