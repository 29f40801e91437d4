"""Redaction – the recursive PII redaction engine.

:class:`Redactor` combines two passes on every value it walks:

* **pattern pass** – string values are scanned for e-mails, card numbers,
  SSNs, phone numbers, IPv4 addresses, URL tokens and long API-key-like
  tokens (see :mod:`mp_logpipe.redaction.patterns`);
* **field pass** – the value of any mapping key whose name is sensitive is
  replaced wholesale, whatever its type.

The output is always JSON-serialisable, and redacting an already redacted
value returns it unchanged.
"""
from __future__ import annotations

import dataclasses
import enum
import io
import json
import math
import os
from collections import deque
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from mp_logpipe.core.entry import ErrorInfo, LogEntry, describe_error
from mp_logpipe.redaction.patterns import (
    CIRCULAR,
    DEFAULT_SENSITIVE_FIELDS,
    FIELD_CATEGORIES,
    FUNCTION,
    HEADER_REDACTED,
    MAX_DEPTH,
    PII_REDACTED,
    QUERY_REDACTED,
    STRONG_SUFFIXES,
    TEXT_PATTERNS,
    TRUNCATED,
    array_truncated,
    normalize_field_name,
    placeholder,
)

_SEQUENCE_TYPES = (list, tuple, set, frozenset, deque)
_BINARY_TYPES = (bytes, bytearray, memoryview)
_SENSITIVE_HEADER_PARTS = ("authorization", "cookie", "xapikey")


@dataclasses.dataclass(frozen=True)
class RedactionLimits:
    """Traversal limits.

    Parameters
    ----------
    max_string_length:
        Longer strings are cut to at most this length, ending in
        ``...[TRUNCATED]``.
    max_array_length:
        Longer sequences keep ``max_array_length - 1`` items plus one
        ``[ARRAY_TRUNCATED: n more]`` marker.
    max_object_depth:
        Containers nested this deep collapse to ``[MAX_DEPTH_REACHED]``.
    """

    max_string_length: int = 10_000
    max_array_length: int = 100
    max_object_depth: int = 10

    def __post_init__(self) -> None:
        if self.max_string_length <= len(TRUNCATED):
            raise ValueError(f"max_string_length must exceed {len(TRUNCATED)}")
        if self.max_array_length < 1:
            raise ValueError("max_array_length must be >= 1")
        if self.max_object_depth < 1:
            raise ValueError("max_object_depth must be >= 1")


def _is_file_like(value: Any) -> bool:
    return isinstance(value, io.IOBase) or (
        callable(getattr(value, "read", None)) and hasattr(value, "seek")
    )


def _binary_size(value: Any) -> int | None:
    if isinstance(value, memoryview):
        return value.nbytes
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    getbuffer = getattr(value, "getbuffer", None)
    if callable(getbuffer):
        try:
            return getbuffer().nbytes
        except (ValueError, TypeError):
            return None
    try:
        return os.fstat(value.fileno()).st_size
    except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
        return None


class Redactor:
    """Recursive, idempotent PII redactor.

    Parameters
    ----------
    limits:
        Traversal limits; defaults to :class:`RedactionLimits`.
    sensitive_fields:
        Field names (normalised with
        :func:`~mp_logpipe.redaction.patterns.normalize_field_name`) whose
        values are always replaced.
    """

    def __init__(
        self,
        limits: RedactionLimits | None = None,
        sensitive_fields: frozenset[str] | None = None,
    ) -> None:
        self.limits = limits or RedactionLimits()
        self._sensitive_fields = frozenset(
            normalize_field_name(name) for name in (sensitive_fields or DEFAULT_SENSITIVE_FIELDS)
        )

    # ------------------------------------------------------------------
    # Field names
    # ------------------------------------------------------------------

    def field_placeholder(self, name: str) -> str | None:
        """Return the placeholder for a sensitive field, ``None`` otherwise."""
        key = normalize_field_name(name)
        if key in self._sensitive_fields:
            category = FIELD_CATEGORIES.get(key)
            return placeholder(category) if category else PII_REDACTED
        for suffix in STRONG_SUFFIXES:
            if key.endswith(suffix):
                category = FIELD_CATEGORIES.get(suffix)
                return placeholder(category) if category else PII_REDACTED
        return None

    def is_sensitive_field(self, name: str) -> bool:
        return self.field_placeholder(name) is not None

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_patterns(text: str) -> str:
        # A trailing truncation marker is never part of a match.
        if text.endswith(TRUNCATED):
            return Redactor._apply_patterns(text[: -len(TRUNCATED)]) + TRUNCATED
        for _, pattern, replacement in TEXT_PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def redact_text(self, text: str) -> str:
        """Pattern-redact *text* and cap it at ``max_string_length``."""
        text = self._apply_patterns(text)
        if len(text) <= self.limits.max_string_length:
            return text
        room = self.limits.max_string_length - len(TRUNCATED)
        cut = room
        while True:
            # Cutting through a placeholder can make the head grow again.
            head = self._apply_patterns(text[:cut])
            if len(head) <= room:
                return head + TRUNCATED
            cut -= len(head) - room

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def redact(self, value: Any) -> Any:
        """Return a redacted, JSON-serialisable copy of *value*."""
        return self._walk(value, 0, frozenset())

    def _is_container(self, value: Any) -> bool:
        return (
            isinstance(value, (Mapping, *_SEQUENCE_TYPES, *_BINARY_TYPES, BaseException))
            or (dataclasses.is_dataclass(value) and not isinstance(value, type))
            or _is_file_like(value)
        )

    def _walk(self, value: Any, depth: int, ancestors: frozenset[int]) -> Any:
        if value is None or isinstance(value, (bool, int)):
            return value.value if isinstance(value, enum.Enum) else value
        if isinstance(value, float):
            return value if math.isfinite(value) else str(value)
        if isinstance(value, str):
            return self.redact_text(value)
        if isinstance(value, enum.Enum):
            return self._walk(value.value, depth, ancestors)
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()

        if not self._is_container(value):
            if callable(value):
                return FUNCTION
            try:
                text = str(value)
            except Exception:  # noqa: BLE001
                text = f"<{type(value).__name__}>"
            return self.redact_text(text)

        if depth >= self.limits.max_object_depth:
            return MAX_DEPTH
        if id(value) in ancestors:
            return CIRCULAR
        ancestors = ancestors | {id(value)}

        if isinstance(value, _BINARY_TYPES) or _is_file_like(value):
            return {"type": type(value).__name__, "size": _binary_size(value)}
        if isinstance(value, BaseException):
            return {"type": type(value).__name__, "message": self.redact_text(str(value))}
        if isinstance(value, Mapping):
            return self._walk_mapping(value.items(), depth, ancestors)
        if isinstance(value, _SEQUENCE_TYPES):
            return self._walk_sequence(list(value), depth, ancestors)
        fields = ((f.name, getattr(value, f.name)) for f in dataclasses.fields(value))
        return self._walk_mapping(fields, depth, ancestors)

    def _walk_mapping(self, items: Any, depth: int, ancestors: frozenset[int]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, item in items:
            name = self.redact_text(str(key))
            hidden = self.field_placeholder(str(key))
            result[name] = hidden if hidden is not None else self._walk(item, depth + 1, ancestors)
        return result

    def _walk_sequence(self, items: list[Any], depth: int, ancestors: frozenset[int]) -> list[Any]:
        limit = self.limits.max_array_length
        if len(items) <= limit:
            return [self._walk(item, depth + 1, ancestors) for item in items]
        kept = [self._walk(item, depth + 1, ancestors) for item in items[: limit - 1]]
        kept.append(array_truncated(len(items) - (limit - 1)))
        return kept

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def redact_error(self, error: BaseException | ErrorInfo | None) -> ErrorInfo | None:
        info = describe_error(error)
        if info is None:
            return None
        return ErrorInfo(
            type=info.type,
            message=self.redact_text(info.message),
            stack=self.redact_text(info.stack) if info.stack is not None else None,
        )

    def redact_entry(self, entry: LogEntry) -> LogEntry:
        """Return a copy of *entry* safe to leave the process.

        Level, timestamp and correlation ids are kept as they are.
        """
        return entry.replace(
            message=self.redact_text(entry.message),
            context=self.redact(dict(entry.context)),
            error=self.redact_error(entry.error),
            tags=tuple(self.redact_text(tag) for tag in entry.tags),
            data=self.redact(entry.data),
        )

    # ------------------------------------------------------------------
    # HTTP shapes
    # ------------------------------------------------------------------

    def redact_url(self, url: str) -> str:
        """Drop query string and fragment; mark a dropped query.

        ``https://x.io/cb?token=abc#top`` becomes
        ``https://x.io/cb?[QUERY_REDACTED]``.  Credentials in the authority
        part are removed as well.
        """
        if not isinstance(url, str) or not url:
            return url
        had_query = "?" in url
        base = url.split("#", 1)[0].split("?", 1)[0]
        scheme, sep, rest = base.partition("://")
        if sep:
            authority, slash, path = rest.partition("/")
            if "@" in authority:
                authority = "[CREDENTIALS_REDACTED]@" + authority.rsplit("@", 1)[1]
            base = f"{scheme}{sep}{authority}{slash}{path}"
        return f"{base}?{QUERY_REDACTED}" if had_query else base

    def _redact_body(self, body: Any) -> Any:
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8", errors="replace")
        if isinstance(body, str):
            try:
                parsed = json.loads(body)
            except ValueError:
                return self.redact_text(body)
            return json.dumps(self.redact(parsed))
        return self.redact(body)

    def redact_headers(self, headers: Mapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name, value in headers.items():
            key = normalize_field_name(str(name))
            if self.is_sensitive_field(key) or any(part in key for part in _SENSITIVE_HEADER_PARTS):
                result[name] = HEADER_REDACTED
            else:
                result[name] = self.redact(value)
        return result

    def redact_http_context(self, context: Any) -> Any:
        """Redact an HTTP request/response description.

        Handles ``url``, ``headers``, ``cookies``, ``query_string``,
        ``data``/``body`` (JSON bodies are parsed, redacted and re-encoded)
        and ``env``; other keys are copied as they are.
        """
        if not isinstance(context, Mapping):
            return context
        redacted = dict(context)
        if isinstance(redacted.get("url"), str):
            redacted["url"] = self.redact_url(redacted["url"])
        if isinstance(redacted.get("headers"), Mapping):
            redacted["headers"] = self.redact_headers(redacted["headers"])
        if redacted.get("cookies"):
            redacted["cookies"] = HEADER_REDACTED
        if redacted.get("query_string"):
            redacted["query_string"] = QUERY_REDACTED
        body = redacted.pop("body", None)
        if redacted.get("data") is not None:
            body = redacted["data"]
        if body is not None:
            redacted["data"] = self._redact_body(body)
        if "env" in redacted:
            redacted["env"] = self.redact(redacted["env"])
        return redacted


__all__ = ["RedactionLimits", "Redactor"]
