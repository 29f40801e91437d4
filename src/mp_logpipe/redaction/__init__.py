"""Redaction – PII removal applied before entries leave the process."""

from mp_logpipe.redaction.hooks import make_before_breadcrumb, make_before_send, redact_event
from mp_logpipe.redaction.patterns import DEFAULT_SENSITIVE_FIELDS, normalize_field_name
from mp_logpipe.redaction.redactor import RedactionLimits, Redactor

__all__ = [
    "DEFAULT_SENSITIVE_FIELDS",
    "RedactionLimits",
    "Redactor",
    "make_before_breadcrumb",
    "make_before_send",
    "normalize_field_name",
    "redact_event",
]
