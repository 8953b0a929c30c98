# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for core config, errors and logging
"""

import json
import logging
from dataclasses import FrozenInstanceError

import pytest

from mcp_hub.core.config import Config, get_secret, load_config
from mcp_hub.core.errors import (
    ConnectorTimeoutError,
    DispatchError,
    NotFoundError,
    sanitize_error_for_user,
)
from mcp_hub.core.logging import JSONFormatter, get_service_logger, log_event


class TestConfig:
    """Test YAML loading and env overrides"""

    def test_defaults_when_file_missing(self, tmp_path, monkeypatch):
        for name in ("NEON_WORKSPACE_ROOT", "NEON_HUB_PORT", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        config = load_config(str(tmp_path / "absent.yaml"))

        assert config.cache_ttl == 60.0
        assert config.max_workflow_steps == 100
        assert config.get_default_timeout("webhook") == 5000
        assert config.workspace_root is None
        assert config.cors_origins == []

    def test_yaml_values(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("NEON_HUB_PORT", raising=False)
        path = tmp_path / "hub.yaml"
        path.write_text(
            "cache:\n  ttl: 5\n"
            "connectors:\n  timeouts:\n    cli: 1234\n"
            "workflows:\n  max_steps: 7\n"
            "api:\n  port: 9000\n"
            "logging:\n  level: DEBUG\n"
        )

        config = load_config(str(path))

        assert config.cache_ttl == 5.0
        assert config.get_default_timeout("cli") == 1234
        assert config.get_default_timeout("api") == 10000
        assert config.max_workflow_steps == 7
        assert config.api_port == 9000
        assert config.log_level == "DEBUG"

    def test_explicit_zero_kept(self, tmp_path):
        path = tmp_path / "hub.yaml"
        path.write_text(
            "cache:\n  ttl: 0\n"
            "workflows:\n  max_steps: 0\n"
            "api:\n  cors_origins: [\"http://localhost:3000\"]\n"
            "logging:\n  file: null\n"
        )

        config = load_config(str(path))

        assert config.cache_ttl == 0.0
        assert config.max_workflow_steps == 0
        assert config.cors_origins == ["http://localhost:3000"]
        assert config.log_file is None

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NEON_WORKSPACE_ROOT", "/ws")
        monkeypatch.setenv("NEON_HUB_PORT", "9999")
        monkeypatch.setenv("LOG_FORMAT", "text")

        config = load_config(str(tmp_path / "absent.yaml"))

        assert config.workspace_root == "/ws"
        assert config.api_port == 9999
        assert config.log_format == "text"

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            Config().cache_ttl = 1

    def test_secret_lookup(self, monkeypatch):
        monkeypatch.setenv("NEON_SECRET_GITHUB_TOKEN", "t")
        assert get_secret("github_token") == "t"


class TestErrors:
    """Test error conversion to envelopes"""

    def test_to_response(self):
        response = ConnectorTimeoutError("Request timeout", 5000, data={"stdout": "x"}).to_response()

        assert response.success is False
        assert response.error == "Request timeout"
        assert response.data == {"stdout": "x"}
        assert response.metadata == {"timeout": 5000, "errorType": "Timeout"}

    def test_to_dict(self):
        assert NotFoundError("Connector", "gh").to_dict() == {
            "error": "NotFoundError",
            "errorType": "NotFound",
            "message": "Connector 'gh' not found",
            "details": {},
        }

    def test_dispatch_error_type(self):
        assert DispatchError("boom").to_response().error_type == "DispatchFailure"

    def test_sanitize(self):
        assert sanitize_error_for_user(ValueError("bad\nvalue")) == "ValueError: bad value"
        assert sanitize_error_for_user(ValueError("x" * 600), include_type=False).endswith("...")


class TestLogging:
    """Test structured log output"""

    def test_json_formatter_includes_extras(self):
        record = logging.LogRecord("neon.test", logging.INFO, __file__, 1, "hello", None, None)
        record.connector_id = "github"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["connector_id"] == "github"
        assert "msg" not in data

    def test_log_event(self, caplog):
        logger = logging.getLogger("neon.test.events")

        with caplog.at_level(logging.WARNING, logger="neon.test.events"):
            log_event(logger, "connector_failed", "WARNING", connector_id="jira")

        assert caplog.records[0].getMessage() == "connector_failed"
        assert caplog.records[0].connector_id == "jira"

    def test_service_logger_follows_config(self, hub_config):
        logger = get_service_logger("unit", hub_config)

        assert logger.name == "neon.service.unit"
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
