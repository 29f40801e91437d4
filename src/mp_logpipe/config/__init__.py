"""Config – settings, tiered resolution, validation and rollout."""

from mp_logpipe.config.defaults import DEFAULTS, ENVIRONMENT_OVERRIDES, ENVIRONMENTS
from mp_logpipe.config.errors import ConfigError, InvalidSettingValueError
from mp_logpipe.config.loaders import deep_merge, load_config, overrides_from_env, resolve_config
from mp_logpipe.config.rollout import (
    RolloutGate,
    is_canary_user,
    is_component_enabled,
    rollout_bucket,
    stable_hash,
)
from mp_logpipe.config.settings import (
    FeatureSettings,
    LoggingSettings,
    LogLevelSettings,
    PerformanceSettings,
    RolloutSettings,
    SentrySettings,
)
from mp_logpipe.config.validator import config_summary, validate_config

__all__ = [
    "DEFAULTS",
    "ENVIRONMENTS",
    "ENVIRONMENT_OVERRIDES",
    "ConfigError",
    "FeatureSettings",
    "InvalidSettingValueError",
    "LogLevelSettings",
    "LoggingSettings",
    "PerformanceSettings",
    "RolloutGate",
    "RolloutSettings",
    "SentrySettings",
    "config_summary",
    "deep_merge",
    "is_canary_user",
    "is_component_enabled",
    "load_config",
    "overrides_from_env",
    "resolve_config",
    "rollout_bucket",
    "stable_hash",
    "validate_config",
]
