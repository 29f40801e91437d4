"""Factories – pieces shared by the server and client factories."""
from __future__ import annotations

import os
import secrets

from mp_logpipe.config.errors import ConfigError
from mp_logpipe.config.loaders import environment_from, load_config, resolve_config
from mp_logpipe.config.rollout import is_component_enabled
from mp_logpipe.config.settings import LoggingSettings
from mp_logpipe.config.validator import validate_config
from mp_logpipe.core.logger import MultiSinkLogger
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.time import Clock, epoch_millis
from mp_logpipe.redaction.redactor import RedactionLimits, Redactor
from mp_logpipe.sinks.console import ConsoleSink

_log = get_logger(__name__)


def new_session_id(prefix: str, clock: Clock | None = None) -> str:
    """``<prefix>_<epoch ms>_<9 hex chars>``."""
    return f"{prefix}_{epoch_millis(clock)}_{secrets.token_hex(5)[:9]}"


def load_settings(settings: LoggingSettings | None) -> tuple[LoggingSettings, list[str]]:
    """Return *settings*, or the loaded configuration and any load problem.

    A configuration that cannot be loaded falls back to the defaults of
    the environment tier; the problem is returned so the caller can degrade.
    """
    if settings is not None:
        return settings, []
    try:
        return load_config(), []
    except ConfigError as exc:
        return resolve_config(environment_from(os.environ)), [f"Configuration could not be loaded: {exc.message}"]


def build_redactor(settings: LoggingSettings) -> Redactor:
    perf = settings.performance
    return Redactor(
        RedactionLimits(
            max_string_length=perf.max_log_size,
            max_array_length=perf.max_array_length,
            max_object_depth=perf.max_object_depth,
        )
    )


def check_settings(settings: LoggingSettings) -> tuple[list[str], Redactor]:
    """Validate *settings*; return the problems and a usable redactor."""
    problems = validate_config(settings)
    try:
        redactor = build_redactor(settings)
    except ValueError as exc:
        problems.append(f"Invalid redaction limits: {exc}")
        redactor = Redactor()
    return problems, redactor


def console_only(
    logger: MultiSinkLogger,
    redactor: Redactor,
    *,
    colorize: bool,
    reason: str,
    **details: object,
) -> MultiSinkLogger:
    """Degrade *logger* to a single console sink and say why."""
    _log.warning("logger_degraded", reason=reason, fallback="console", **details)
    logger.add_sink(ConsoleSink(colorize=colorize, redactor=redactor))
    return logger


def outside_rollout(settings: LoggingSettings, component: str | None, user_id: str | None) -> bool:
    return component is not None and not is_component_enabled(component, settings.rollout, user_id)


__all__ = [
    "build_redactor",
    "check_settings",
    "console_only",
    "load_settings",
    "new_session_id",
    "outside_rollout",
]
