"""Redaction – inline PII patterns and sensitive field names.

Patterns run in the order listed; each match is replaced in place by a typed
placeholder.  No placeholder can itself match a pattern, which keeps the
pattern pass idempotent.
"""
from __future__ import annotations

import re

CIRCULAR = "[CIRCULAR]"
MAX_DEPTH = "[MAX_DEPTH_REACHED]"
FUNCTION = "[FUNCTION]"
TRUNCATED = "...[TRUNCATED]"
PII_REDACTED = "[PII_REDACTED]"
TOKEN_REDACTED = "[TOKEN_REDACTED]"
HEADER_REDACTED = "[HEADER_REDACTED]"
QUERY_REDACTED = "[QUERY_REDACTED]"
USER_PII_REDACTED = "[USER_PII_REDACTED]"


def placeholder(kind: str) -> str:
    """``placeholder("email") -> "[EMAIL_REDACTED]"``."""
    return f"[{kind.upper()}_REDACTED]"


def array_truncated(remaining: int) -> str:
    return f"[ARRAY_TRUNCATED: {remaining} more]"


# (kind, compiled regex, replacement)
TEXT_PATTERNS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    (
        "creditcard",
        re.compile(r"\b(?:\d{4}[-.\s]?){3}\d{4}\b"),
        placeholder("creditcard"),
    ),
    (
        "email",
        re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),
        placeholder("email"),
    ),
    (
        "ssn",
        re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
        placeholder("ssn"),
    ),
    (
        "phone",
        re.compile(r"(?<!\w)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
        placeholder("phone"),
    ),
    (
        "ipaddress",
        re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
        placeholder("ipaddress"),
    ),
    (
        "urltoken",
        re.compile(
            r"([?&](?:token|key|secret|auth|api_key|access_token|refresh_token)=)[^&\s#]+",
            re.IGNORECASE,
        ),
        r"\1" + TOKEN_REDACTED,
    ),
    (
        "apikey",
        re.compile(r"\b[A-Za-z0-9]{32,}\b"),
        placeholder("apikey"),
    ),
)


def normalize_field_name(name: str) -> str:
    """Lower-case and strip ``_``/``-`` so ``api_key``, ``apiKey`` and ``API-KEY`` agree."""
    return name.lower().replace("_", "").replace("-", "")


DEFAULT_SENSITIVE_FIELDS: frozenset[str] = frozenset(
    normalize_field_name(name)
    for name in (
        "password", "passwd", "pwd",
        "secret", "key", "token", "auth", "authorization",
        "api_key", "access_token", "refresh_token",
        "session", "session_id",
        "credit_card", "cc_number", "card_number",
        "ssn", "social_security", "social_security_number",
        "email", "phone", "telephone", "mobile",
        "address", "street", "city", "zip", "zipcode", "postal",
        "name", "first_name", "last_name", "full_name",
        "dob", "date_of_birth", "birthday",
        "signature", "pin", "cvv", "cvc",
    )
)

# Compound keys ending in one of these (``userEmail``, ``db_password``) are
# sensitive as well.
STRONG_SUFFIXES: tuple[str, ...] = (
    "password", "passwd", "secret", "token", "apikey",
    "email", "phone", "ssn", "creditcard",
)

# Field hits in these categories get the category placeholder instead of
# the generic one.
FIELD_CATEGORIES: dict[str, str] = {
    "email": "email",
    "phone": "phone",
    "telephone": "phone",
    "mobile": "phone",
    "ssn": "ssn",
    "socialsecurity": "ssn",
    "socialsecuritynumber": "ssn",
    "creditcard": "creditcard",
    "ccnumber": "creditcard",
    "cardnumber": "creditcard",
}

__all__ = [
    "CIRCULAR",
    "DEFAULT_SENSITIVE_FIELDS",
    "FIELD_CATEGORIES",
    "FUNCTION",
    "HEADER_REDACTED",
    "MAX_DEPTH",
    "PII_REDACTED",
    "QUERY_REDACTED",
    "STRONG_SUFFIXES",
    "TEXT_PATTERNS",
    "TOKEN_REDACTED",
    "TRUNCATED",
    "USER_PII_REDACTED",
    "array_truncated",
    "normalize_field_name",
    "placeholder",
]
