"""Config – startup validation and a human-readable summary."""
from __future__ import annotations

from mp_logpipe.config.defaults import ENVIRONMENTS
from mp_logpipe.config.settings import LoggingSettings


def validate_config(settings: LoggingSettings) -> list[str]:
    """Return a list of validation problems; empty means valid."""
    errors: list[str] = []
    if settings.environment not in ENVIRONMENTS:
        errors.append(
            f"Unknown environment '{settings.environment}' "
            f"(expected one of: {', '.join(ENVIRONMENTS)})"
        )
    if settings.sentry.enabled and settings.features.sentry_integration and not settings.sentry.dsn:
        errors.append("Sentry is enabled but no DSN provided")
    if not 0 <= settings.sentry.traces_sample_rate <= 1:
        errors.append("Sentry traces sample rate must be between 0 and 1")
    if not 0 <= settings.rollout.rollout_percentage <= 100:
        errors.append("Rollout percentage must be between 0 and 100")
    perf = settings.performance
    if perf.max_log_size <= 0:
        errors.append("Max log size must be positive")
    if perf.max_array_length <= 0:
        errors.append("Max array length must be positive")
    if perf.max_object_depth <= 0:
        errors.append("Max object depth must be positive")
    if perf.flush_interval_ms <= 0:
        errors.append("Flush interval must be positive")
    return errors


def _flag(value: bool) -> str:
    return "ENABLED" if value else "DISABLED"


def config_summary(settings: LoggingSettings) -> str:
    """Render *settings* and their validation result for debugging."""
    problems = validate_config(settings)
    features = settings.features
    sentry = settings.sentry
    rollout = settings.rollout
    lines = [
        "Logging System Configuration",
        "============================",
        f"Environment: {settings.environment}",
        f"Validation: {'VALID' if not problems else 'ERRORS: ' + ', '.join(problems)}",
        "",
        "Features:",
        f"- Sentry Integration: {_flag(features.sentry_integration)}",
        f"- File Logging: {_flag(features.file_logging)}",
        f"- Console Logging: {_flag(features.console_logging)}",
        f"- Monitoring: {_flag(features.monitoring)}",
        "",
        "Log Levels:",
        f"- Client: {settings.log_levels.client.name}",
        f"- Server: {settings.log_levels.server.name}",
        "",
        "Sentry:",
        f"- Enabled: {sentry.enabled}",
        f"- DSN: {'SET' if sentry.dsn else 'NOT SET'}",
        f"- Environment: {sentry.environment}",
        f"- Traces Sample Rate: {sentry.traces_sample_rate}",
        "",
        "Rollout:",
        f"- Percentage: {rollout.rollout_percentage:g}%",
        f"- Canary Users: {len(rollout.canary_users)}",
        f"- Enabled Components: {len(rollout.enabled_components) or 'ALL'}",
    ]
    return "\n".join(lines)


__all__ = ["config_summary", "validate_config"]
