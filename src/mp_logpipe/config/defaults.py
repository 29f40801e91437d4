"""Config – compiled defaults and per-environment overrides."""
from __future__ import annotations

from typing import Any

ENVIRONMENTS: tuple[str, ...] = ("development", "staging", "production")

DEFAULTS: dict[str, Any] = {
    "environment": "development",
    "features": {
        "sentry_integration": True,
        "file_logging": False,
        "console_logging": True,
        "monitoring": True,
    },
    "log_levels": {"client": "INFO", "server": "INFO"},
    "sentry": {"enabled": True, "traces_sample_rate": 0.1},
    "performance": {
        "max_log_size": 10_000,
        "max_array_length": 100,
        "max_object_depth": 10,
        "flush_interval_ms": 5_000,
    },
    "rollout": {"enabled_components": [], "rollout_percentage": 100, "canary_users": []},
}

ENVIRONMENT_OVERRIDES: dict[str, dict[str, Any]] = {
    "development": {
        "log_levels": {"client": "DEBUG", "server": "DEBUG"},
        "features": {
            "sentry_integration": False,
            "file_logging": True,
            "console_logging": True,
            "monitoring": True,
        },
        "sentry": {"enabled": False, "traces_sample_rate": 0.0},
    },
    "staging": {
        "log_levels": {"client": "INFO", "server": "DEBUG"},
        "features": {
            "sentry_integration": True,
            "file_logging": True,
            "console_logging": True,
            "monitoring": True,
        },
        "sentry": {"enabled": True, "traces_sample_rate": 0.5},
        "rollout": {"enabled_components": [], "rollout_percentage": 50, "canary_users": []},
    },
    "production": {
        "log_levels": {"client": "WARN", "server": "INFO"},
        "features": {
            "sentry_integration": True,
            "file_logging": True,
            "console_logging": False,
            "monitoring": True,
        },
        "sentry": {"enabled": True, "traces_sample_rate": 0.1},
        "rollout": {"enabled_components": [], "rollout_percentage": 100, "canary_users": []},
    },
}

DEFAULT_RELEASE = "1.0.0"

__all__ = ["DEFAULTS", "DEFAULT_RELEASE", "ENVIRONMENTS", "ENVIRONMENT_OVERRIDES"]
