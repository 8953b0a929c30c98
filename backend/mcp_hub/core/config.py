# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Hub Configuration - Single source of truth.
YAML for settings. Env vars for deployment overrides and secrets.
"""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict


DEFAULT_CONFIG_PATH = str(Path(__file__).resolve().parents[3] / "configs" / "hub.yaml")

DEFAULT_TIMEOUTS_MS: Dict[str, int] = {
    "api": 10000,
    "cli": 30000,
    "file": 10000,
    "database": 20000,
    "webhook": 5000,
}


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable hub configuration.
    All values from YAML, with env overrides applied by load_config().
    """

    # -- Cache (seconds) --
    cache_ttl: float = 60.0
    cache_max_age: float = 300.0
    cache_sweep_interval: float = 60.0

    # -- Connectors --
    default_timeouts: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_TIMEOUTS_MS))
    config_file_patterns: List[str] = field(default_factory=lambda: [
        ".neon-connectors.json", ".neon-connectors.yaml", ".neon-connectors.yml"
    ])
    ignored_dirs: List[str] = field(default_factory=lambda: [
        ".git", "node_modules", ".venv", "venv", "__pycache__"
    ])

    # -- Workflows --
    max_workflow_steps: int = 100
    default_step_timeout: int = 300000

    # -- Runtime --
    workspace_root: Optional[str] = None
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    def get_default_timeout(self, connector_type: str) -> int:
        """Default timeout in milliseconds for a connector type."""
        return self.default_timeouts.get(connector_type, DEFAULT_TIMEOUTS_MS.get(connector_type, 10000))


# =============================================================================
# SECRETS - read from environment only
# =============================================================================

def get_secret(name: str) -> Optional[str]:
    """Secrets never live in config files: NEON_SECRET_<NAME>."""
    return os.getenv(f"NEON_SECRET_{name.upper()}")


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults (plus env overrides) if file doesn't exist.
    """
    y = {}
    if Path(path).exists():
        with open(path) as f:
            y = yaml.safe_load(f) or {}

    # Navigate nested dicts; a missing or null key gives the default, 0 is kept
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict) or d.get(k) is None:
                return default
            d = d[k]
        return d

    timeouts = dict(DEFAULT_TIMEOUTS_MS)
    timeouts.update(get(y, "connectors", "timeouts", default={}))

    defaults = Config()
    return Config(
        # Cache
        cache_ttl=float(get(y, "cache", "ttl", default=defaults.cache_ttl)),
        cache_max_age=float(get(y, "cache", "max_age", default=defaults.cache_max_age)),
        cache_sweep_interval=float(get(y, "cache", "sweep_interval", default=defaults.cache_sweep_interval)),

        # Connectors
        default_timeouts={k: int(v) for k, v in timeouts.items()},
        config_file_patterns=get(y, "connectors", "config_files", default=defaults.config_file_patterns),
        ignored_dirs=get(y, "connectors", "ignored_dirs", default=defaults.ignored_dirs),

        # Workflows
        max_workflow_steps=int(get(y, "workflows", "max_steps", default=defaults.max_workflow_steps)),
        default_step_timeout=int(get(y, "workflows", "default_step_timeout", default=defaults.default_step_timeout)),

        # Runtime
        workspace_root=os.getenv("NEON_WORKSPACE_ROOT") or get(y, "workspace", "root"),
        api_host=get(y, "api", "host", default=defaults.api_host),
        api_port=int(os.getenv("NEON_HUB_PORT", "0")) or get(y, "api", "port", default=defaults.api_port),
        cors_origins=list(get(y, "api", "cors_origins", default=defaults.cors_origins)),
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level", default=defaults.log_level),
        log_format=os.getenv("LOG_FORMAT") or get(y, "logging", "format", default=defaults.log_format),
        log_file=get(y, "logging", "file"),
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("NEON_HUB_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
