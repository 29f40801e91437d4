"""Config – logging settings dataclasses.

:class:`LoggingSettings` is an immutable tree of section dataclasses.  Its
dict form (``to_dict`` / ``from_dict``) uses the same section and key names
and is what :func:`~mp_logpipe.config.loaders.resolve_config` merges.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Mapping

from mp_logpipe.config.errors import ConfigError, InvalidSettingValueError
from mp_logpipe.core.levels import LogLevel


@dataclasses.dataclass(frozen=True)
class FeatureSettings:
    """Independently toggleable capabilities."""
    sentry_integration: bool = True
    file_logging: bool = False
    console_logging: bool = True
    monitoring: bool = True


@dataclasses.dataclass(frozen=True)
class LogLevelSettings:
    """Minimum level per execution context."""
    client: LogLevel = LogLevel.INFO
    server: LogLevel = LogLevel.INFO

    def __post_init__(self) -> None:
        for field in ("client", "server"):
            value = getattr(self, field)
            try:
                object.__setattr__(self, field, LogLevel.parse(value))
            except ValueError as exc:
                raise InvalidSettingValueError(f"log_levels.{field}", value, str(exc)) from exc


@dataclasses.dataclass(frozen=True)
class SentrySettings:
    """Error-tracking client settings."""
    enabled: bool = True
    dsn: str | None = None
    environment: str | None = None
    release: str | None = None
    traces_sample_rate: float = 0.1


@dataclasses.dataclass(frozen=True)
class PerformanceSettings:
    """Redaction limits and client flush cadence."""
    max_log_size: int = 10_000
    max_array_length: int = 100
    max_object_depth: int = 10
    flush_interval_ms: int = 5_000


@dataclasses.dataclass(frozen=True)
class RolloutSettings:
    """Deterministic component gating."""
    enabled_components: tuple[str, ...] = ()
    rollout_percentage: float = 100
    canary_users: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled_components", tuple(self.enabled_components))
        object.__setattr__(self, "canary_users", tuple(self.canary_users))


_SECTIONS: dict[str, type] = {
    "features": FeatureSettings,
    "log_levels": LogLevelSettings,
    "sentry": SentrySettings,
    "performance": PerformanceSettings,
    "rollout": RolloutSettings,
}


@dataclasses.dataclass(frozen=True)
class LoggingSettings:
    """Fully resolved logging configuration."""

    environment: str = "development"
    features: FeatureSettings = dataclasses.field(default_factory=FeatureSettings)
    log_levels: LogLevelSettings = dataclasses.field(default_factory=LogLevelSettings)
    sentry: SentrySettings = dataclasses.field(default_factory=SentrySettings)
    performance: PerformanceSettings = dataclasses.field(default_factory=PerformanceSettings)
    rollout: RolloutSettings = dataclasses.field(default_factory=RolloutSettings)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["log_levels"] = {k: LogLevel(v).name for k, v in data["log_levels"].items()}
        data["rollout"] = {k: list(v) if isinstance(v, tuple) else v for k, v in data["rollout"].items()}
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoggingSettings":
        """Build settings from a (possibly partial) nested mapping.

        Raises
        ------
        ConfigError
            On unknown section keys or values of the wrong shape.
        """
        kwargs: dict[str, Any] = {}
        if "environment" in data:
            kwargs["environment"] = str(data["environment"])
        for name, section_cls in _SECTIONS.items():
            if name not in data:
                continue
            section = data[name]
            if isinstance(section, section_cls):
                kwargs[name] = section
                continue
            if not isinstance(section, Mapping):
                raise InvalidSettingValueError(name, section, "expected a mapping")
            known = {f.name for f in dataclasses.fields(section_cls)}
            unknown = set(section) - known
            if unknown:
                raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")
            kwargs[name] = section_cls(**section)
        unknown_sections = set(data) - set(_SECTIONS) - {"environment"}
        if unknown_sections:
            raise ConfigError(f"Unknown settings sections: {', '.join(sorted(unknown_sections))}")
        return cls(**kwargs)


__all__ = [
    "FeatureSettings",
    "LogLevelSettings",
    "LoggingSettings",
    "PerformanceSettings",
    "RolloutSettings",
    "SentrySettings",
]
