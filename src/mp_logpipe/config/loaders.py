"""Config – resolution of defaults, environment tier and overrides.

:func:`resolve_config` is pure: it never reads the process environment.
:func:`load_config` gathers environment variables (from an injected mapping,
``os.environ`` by default, optionally layered over a ``.env`` file) into an
override dict and hands everything to :func:`resolve_config`.

Recognised variables:

=============================== =====================================
``LOGPIPE_ENVIRONMENT``         tier (falls back to ``ENVIRONMENT``)
``LOGPIPE_CLIENT_LEVEL``        ``log_levels.client``
``LOGPIPE_SERVER_LEVEL``        ``log_levels.server``
``LOGPIPE_ROLLOUT_PERCENTAGE``  ``rollout.rollout_percentage``
``LOGPIPE_ENABLED_COMPONENTS``  comma separated allow-list
``LOGPIPE_CANARY_USERS``        comma separated user ids
``SENTRY_DSN``                  ``sentry.dsn``
``SENTRY_ENVIRONMENT``          ``sentry.environment`` (default: tier)
``SENTRY_RELEASE``              ``sentry.release`` (default ``1.0.0``)
``SENTRY_TRACES_SAMPLE_RATE``   ``sentry.traces_sample_rate``
=============================== =====================================
"""
from __future__ import annotations

import copy
import os
from typing import Any, Mapping

from dotenv import dotenv_values

from mp_logpipe.config.defaults import DEFAULT_RELEASE, DEFAULTS, ENVIRONMENT_OVERRIDES
from mp_logpipe.config.errors import InvalidSettingValueError
from mp_logpipe.config.settings import LoggingSettings

# env var -> (section, key, type)
_ENV_KEYS: dict[str, tuple[str, str, type]] = {
    "LOGPIPE_CLIENT_LEVEL": ("log_levels", "client", str),
    "LOGPIPE_SERVER_LEVEL": ("log_levels", "server", str),
    "LOGPIPE_ROLLOUT_PERCENTAGE": ("rollout", "rollout_percentage", float),
    "LOGPIPE_ENABLED_COMPONENTS": ("rollout", "enabled_components", list),
    "LOGPIPE_CANARY_USERS": ("rollout", "canary_users", list),
    "SENTRY_DSN": ("sentry", "dsn", str),
    "SENTRY_ENVIRONMENT": ("sentry", "environment", str),
    "SENTRY_RELEASE": ("sentry", "release", str),
    "SENTRY_TRACES_SAMPLE_RATE": ("sentry", "traces_sample_rate", float),
}


def deep_merge(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge mappings left to right; nested mappings merge key by key."""
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in (layer or {}).items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
                merged[key] = deep_merge(merged[key], value)
            elif isinstance(value, Mapping):
                merged[key] = deep_merge(value)
            else:
                merged[key] = copy.copy(value)
    return merged


def resolve_config(
    environment: str = "development",
    overrides: Mapping[str, Any] | None = None,
    *,
    defaults: Mapping[str, Any] = DEFAULTS,
    tiers: Mapping[str, Mapping[str, Any]] = ENVIRONMENT_OVERRIDES,
) -> LoggingSettings:
    """``(defaults, environment tier, overrides) -> LoggingSettings``.

    An unknown tier contributes no overrides; :func:`validate_config`
    reports it.  ``sentry.environment`` defaults to the tier name.
    """
    merged = deep_merge(defaults, tiers.get(environment), overrides)
    merged["environment"] = environment
    sentry = merged.setdefault("sentry", {})
    if not sentry.get("environment"):
        sentry["environment"] = environment
    return LoggingSettings.from_dict(merged)


def _coerce(name: str, raw: str, type_hint: type) -> Any:
    if type_hint is list:
        return [v.strip() for v in raw.split(",") if v.strip()]
    if type_hint is float:
        try:
            return float(raw)
        except ValueError as exc:
            raise InvalidSettingValueError(name, raw, "expected a number") from exc
    return raw


def overrides_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate recognised environment variables into an override dict."""
    overrides: dict[str, Any] = {}
    for name, (section, key, type_hint) in _ENV_KEYS.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        overrides.setdefault(section, {})[key] = _coerce(name, raw, type_hint)
    if "release" not in overrides.get("sentry", {}):
        overrides.setdefault("sentry", {})["release"] = DEFAULT_RELEASE
    return overrides


def environment_from(environ: Mapping[str, str]) -> str:
    return environ.get("LOGPIPE_ENVIRONMENT") or environ.get("ENVIRONMENT") or "development"


def load_config(
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    env_file: str | os.PathLike[str] | None = None,
) -> LoggingSettings:
    """Resolve settings from the environment plus explicit *overrides*.

    Parameters
    ----------
    overrides:
        Nested override mapping; wins over everything else.
    environ:
        Variables to read; defaults to ``os.environ``.
    env_file:
        Optional ``.env`` file whose values sit *below* *environ*.  The
        process environment is never modified.
    """
    source: dict[str, str] = {}
    if env_file is not None:
        source.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    source.update(os.environ if environ is None else environ)
    environment = environment_from(source)
    return resolve_config(environment, deep_merge(overrides_from_env(source), overrides))


__all__ = [
    "deep_merge",
    "environment_from",
    "load_config",
    "overrides_from_env",
    "resolve_config",
]
