"""Redaction – pre-send hooks for the error-tracking client.

``make_before_send`` builds the callable handed to the vendor SDK as its
``before_send`` option: every outbound event goes through the redaction
engine before it leaves the process.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from mp_logpipe.redaction.patterns import USER_PII_REDACTED
from mp_logpipe.redaction.redactor import Redactor

MAX_EVENT_SIZE = 50_000

# Contexts filled in by the SDK itself; their ids must survive.
_SDK_CONTEXTS = frozenset({"trace", "runtime", "os", "device", "browser", "app"})

# Logger session ids attached by the sinks at the top of tags, user, extra
# and contexts; they correlate events and are not credentials.
_SESSION_KEYS = ("session_id", "sessionId")

Event = dict[str, Any]
Hook = Callable[[Event, Any], Event | None]


def _event_size(event: Mapping[str, Any]) -> int:
    return len(json.dumps(event, default=str))


def _redact_keeping_session(redactor: Redactor, value: Any) -> Any:
    redacted = redactor.redact(value)
    if not isinstance(value, Mapping) or not isinstance(redacted, dict):
        return redacted
    for key in _SESSION_KEYS:
        session_id = value.get(key)
        if isinstance(session_id, str) and key in redacted:
            redacted[key] = redactor.redact_text(session_id)
    return redacted


def _redact_breadcrumb(redactor: Redactor, crumb: Mapping[str, Any]) -> dict[str, Any]:
    redacted = dict(crumb)
    if isinstance(redacted.get("message"), str):
        redacted["message"] = redactor.redact_text(redacted["message"])
    if redacted.get("data") is not None:
        redacted["data"] = redactor.redact(redacted["data"])
    return redacted


def _redact_user(redactor: Redactor, user: Mapping[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}
    for key, value in user.items():
        if key == "id":
            redacted[key] = value
        elif key in _SESSION_KEYS and isinstance(value, str):
            redacted[key] = redactor.redact_text(value)
        elif redactor.is_sensitive_field(key):
            redacted[key] = USER_PII_REDACTED
        else:
            redacted[key] = redactor.redact(value)
    return redacted


def _redact_exception(redactor: Redactor, exception: Mapping[str, Any]) -> dict[str, Any]:
    redacted = dict(exception)
    if isinstance(redacted.get("value"), str):
        redacted["value"] = redactor.redact_text(redacted["value"])
    stacktrace = redacted.get("stacktrace")
    if isinstance(stacktrace, Mapping):
        frames = []
        for frame in stacktrace.get("frames") or ():
            frame = dict(frame)
            if isinstance(frame.get("filename"), str):
                frame["filename"] = redactor.redact_url(frame["filename"])
            if frame.get("vars") is not None:
                frame["vars"] = redactor.redact(frame["vars"])
            frames.append(frame)
        redacted["stacktrace"] = {**stacktrace, "frames": frames}
    return redacted


def redact_event(redactor: Redactor, event: Event) -> Event:
    """Redact a vendor event dict in place and return it."""
    if isinstance(event.get("request"), Mapping):
        event["request"] = redactor.redact_http_context(event["request"])

    contexts = event.get("contexts")
    if isinstance(contexts, Mapping):
        event["contexts"] = {
            key: value if key in _SDK_CONTEXTS
            else redactor.redact_http_context(value) if key == "response"
            else _redact_keeping_session(redactor, value)
            for key, value in contexts.items()
        }

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, Mapping) and "values" in breadcrumbs:
        event["breadcrumbs"] = {
            **breadcrumbs,
            "values": [_redact_breadcrumb(redactor, c) for c in breadcrumbs["values"] or ()],
        }
    elif isinstance(breadcrumbs, list):
        event["breadcrumbs"] = [_redact_breadcrumb(redactor, c) for c in breadcrumbs]

    if event.get("extra") is not None:
        event["extra"] = _redact_keeping_session(redactor, event["extra"])
    if isinstance(event.get("tags"), Mapping):
        event["tags"] = _redact_keeping_session(redactor, event["tags"])
    if isinstance(event.get("user"), Mapping):
        event["user"] = _redact_user(redactor, event["user"])
    if isinstance(event.get("message"), str):
        event["message"] = redactor.redact_text(event["message"])
    logentry = event.get("logentry")
    if isinstance(logentry, Mapping):
        event["logentry"] = redactor.redact(logentry)

    exception = event.get("exception")
    if isinstance(exception, Mapping) and exception.get("values"):
        event["exception"] = {
            **exception,
            "values": [_redact_exception(redactor, e) for e in exception["values"]],
        }

    if _event_size(event) > MAX_EVENT_SIZE:
        event.pop("modules", None)
        if isinstance(event.get("contexts"), dict):
            event["contexts"].pop("device", None)
            event["contexts"].pop("os", None)
        if _event_size(event) > MAX_EVENT_SIZE:
            event["extra"] = {"[EXTRA_TRUNCATED]": "Event too large, extra data removed"}
    return event


def make_before_send(redactor: Redactor | None = None) -> Hook:
    """Return a ``before_send(event, hint)`` hook bound to *redactor*."""
    engine = redactor or Redactor()

    def before_send(event: Event, hint: Any) -> Event | None:  # noqa: ARG001
        if not event:
            return event
        return redact_event(engine, event)

    return before_send


def make_before_breadcrumb(redactor: Redactor | None = None) -> Hook:
    """Return a ``before_breadcrumb(crumb, hint)`` hook bound to *redactor*."""
    engine = redactor or Redactor()

    def before_breadcrumb(crumb: Event, hint: Any) -> Event | None:  # noqa: ARG001
        if not crumb:
            return crumb
        return _redact_breadcrumb(engine, crumb)

    return before_breadcrumb


__all__ = ["MAX_EVENT_SIZE", "make_before_breadcrumb", "make_before_send", "redact_event"]
