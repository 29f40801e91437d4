"""Unit tests for the Redactor engine."""

from __future__ import annotations

import dataclasses
import enum
import io
import json
from datetime import UTC, datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mp_logpipe.core import LogEntry, LogLevel
from mp_logpipe.redaction import RedactionLimits, Redactor


class Color(enum.Enum):
    RED = "red"


@dataclasses.dataclass
class Account:
    owner: str
    password: str


class TestTextPatterns:
    def setup_method(self) -> None:
        self.redactor = Redactor()

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("mail a@b.com now", "mail [EMAIL_REDACTED] now"),
            ("card 4111 1111 1111 1111", "card [CREDITCARD_REDACTED]"),
            ("ssn 123-45-6789", "ssn [SSN_REDACTED]"),
            ("call 555-123-4567", "call [PHONE_REDACTED]"),
            ("call (555) 123-4567", "call [PHONE_REDACTED]"),
            ("from 10.0.0.1", "from [IPADDRESS_REDACTED]"),
            ("key " + "a1" * 20, "key [APIKEY_REDACTED]"),
            (
                "GET /cb?token=abc123&page=2",
                "GET /cb?token=[TOKEN_REDACTED]&page=2",
            ),
        ],
    )
    def test_patterns(self, text: str, expected: str) -> None:
        assert self.redactor.redact_text(text) == expected

    def test_plain_text_unchanged(self) -> None:
        assert self.redactor.redact_text("order 42 shipped") == "order 42 shipped"

    def test_uuid_correlation_id_survives(self) -> None:
        rid = "0f8fad5b-d9cb-469f-a165-70867728950e"
        assert self.redactor.redact_text(rid) == rid

    def test_long_string_is_cut_to_limit(self) -> None:
        redactor = Redactor(RedactionLimits(max_string_length=50))
        result = redactor.redact_text("x " * 100)
        assert len(result) == 50
        assert result.endswith("...[TRUNCATED]")

    def test_cut_through_placeholder_stays_within_limit(self) -> None:
        redactor = Redactor(RedactionLimits(max_string_length=40))
        result = redactor.redact_text("hello /cb?token=abc and some more text here")
        assert len(result) <= 40
        assert result.endswith("...[TRUNCATED]")
        assert redactor.redact_text(result) == result


class TestFieldNames:
    def setup_method(self) -> None:
        self.redactor = Redactor()

    def test_email_field_gets_typed_placeholder(self) -> None:
        assert self.redactor.redact({"email": "a@b.com"}) == {"email": "[EMAIL_REDACTED]"}

    @pytest.mark.parametrize("key", ["password", "apiKey", "api-key", "db_password", "Authorization"])
    def test_generic_sensitive_fields(self, key: str) -> None:
        assert self.redactor.redact({key: "value"}) == {key: "[PII_REDACTED]"}

    def test_compound_typed_field(self) -> None:
        assert self.redactor.redact({"userEmail": 7}) == {"userEmail": "[EMAIL_REDACTED]"}

    def test_non_sensitive_field_kept(self) -> None:
        assert self.redactor.redact({"orderId": "A-17", "count": 3}) == {"orderId": "A-17", "count": 3}

    def test_sensitive_field_hides_whole_subtree(self) -> None:
        assert self.redactor.redact({"secret": {"nested": [1, 2]}}) == {"secret": "[PII_REDACTED]"}

    def test_custom_field_list(self) -> None:
        redactor = Redactor(sensitive_fields=frozenset({"internal_note"}))
        assert redactor.redact({"internalNote": "x", "password_hint": "y"}) == {
            "internalNote": "[PII_REDACTED]",
            "password_hint": "y",
        }


class TestTraversal:
    def setup_method(self) -> None:
        self.redactor = Redactor(RedactionLimits(max_array_length=5, max_object_depth=2))

    def test_depth_limit(self) -> None:
        assert self.redactor.redact({"a": {"b": {"c": 1}}}) == {"a": {"b": "[MAX_DEPTH_REACHED]"}}

    def test_array_truncation(self) -> None:
        assert self.redactor.redact(list(range(10))) == [0, 1, 2, 3, "[ARRAY_TRUNCATED: 6 more]"]

    def test_array_at_limit_is_kept(self) -> None:
        assert self.redactor.redact([1, 2, 3, 4, 5]) == [1, 2, 3, 4, 5]

    def test_cycle(self) -> None:
        data: dict[str, object] = {"id": 1}
        data["self"] = data
        assert Redactor().redact(data) == {"id": 1, "self": "[CIRCULAR]"}

    def test_shared_reference_is_not_a_cycle(self) -> None:
        shared = [1]
        assert Redactor().redact({"a": shared, "b": shared}) == {"a": [1], "b": [1]}

    def test_special_values(self) -> None:
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        result = Redactor().redact(
            {
                "when": moment,
                "color": Color.RED,
                "level": LogLevel.WARN,
                "blob": b"abc",
                "stream": io.BytesIO(b"12345"),
                "callback": lambda: None,
                "ratio": float("nan"),
                "failure": ValueError("mail a@b.com"),
                "account": Account(owner="bob", password="pw"),
                "ids": {1},
            }
        )
        assert result == {
            "when": "2024-01-01T00:00:00+00:00",
            "color": "red",
            "level": 2,
            "blob": {"type": "bytes", "size": 3},
            "stream": {"type": "BytesIO", "size": 5},
            "callback": "[FUNCTION]",
            "ratio": "nan",
            "failure": {"type": "ValueError", "message": "mail [EMAIL_REDACTED]"},
            "account": {"owner": "bob", "password": "[PII_REDACTED]"},
            "ids": [1],
        }
        json.dumps(result)

    def test_keys_are_pattern_redacted(self) -> None:
        assert Redactor().redact({"a@b.com": 1}) == {"[EMAIL_REDACTED]": 1}


_FRAGMENTS = st.sampled_from(
    [
        "hello",
        "a@b.com",
        "555-123-4567",
        "123-45-6789",
        "4111 1111 1111 1111",
        "10.0.0.1",
        "/cb?token=abc",
        "z" * 40,
        "42",
    ]
)
_TEXT = st.lists(_FRAGMENTS, max_size=6).map(" ".join)
_KEYS = st.sampled_from(["id", "note", "email", "password", "userEmail", "items", "a@b.com"])
_VALUES = st.recursive(
    st.none() | st.booleans() | st.integers() | _TEXT,
    lambda children: st.lists(children, max_size=8) | st.dictionaries(_KEYS, children, max_size=5),
    max_leaves=25,
)


class TestIdempotence:
    @settings(max_examples=150)
    @given(_VALUES)
    def test_redact_twice_equals_once(self, value: object) -> None:
        redactor = Redactor(RedactionLimits(max_string_length=40, max_array_length=4, max_object_depth=3))
        once = redactor.redact(value)
        assert redactor.redact(once) == once

    @given(_VALUES)
    def test_output_is_json_serialisable(self, value: object) -> None:
        json.dumps(Redactor().redact(value))


class TestRedactEntry:
    def test_scenario_email_never_leaves(self) -> None:
        entry = LogEntry(
            level=LogLevel.INFO,
            message="signup a@b.com",
            context={"email": "a@b.com"},
            data={"contact": "a@b.com"},
            error=RuntimeError("a@b.com rejected"),
            session_id="s-1",
        )
        rendered = json.dumps(Redactor().redact_entry(entry).to_dict())
        assert "a@b.com" not in rendered
        assert "[EMAIL_REDACTED]" in rendered

    def test_ids_and_level_kept(self) -> None:
        entry = LogEntry(level=LogLevel.WARN, message="m", user_id="u-1", session_id="s-1")
        redacted = Redactor().redact_entry(entry)
        assert (redacted.level, redacted.user_id, redacted.session_id) == (LogLevel.WARN, "u-1", "s-1")
        assert redacted.timestamp == entry.timestamp


class TestHttpShapes:
    def setup_method(self) -> None:
        self.redactor = Redactor()

    def test_redact_url_drops_query_and_fragment(self) -> None:
        assert self.redactor.redact_url("https://x.io/cb?token=abc#top") == "https://x.io/cb?[QUERY_REDACTED]"

    def test_redact_url_drops_credentials(self) -> None:
        assert self.redactor.redact_url("https://user:pw@x.io/a") == "https://[CREDENTIALS_REDACTED]@x.io/a"

    def test_redact_url_without_query(self) -> None:
        assert self.redactor.redact_url("https://x.io/a") == "https://x.io/a"

    def test_redact_headers(self) -> None:
        headers = {"Authorization": "Bearer t", "Cookie": "a=b", "X-Api-Key": "k", "Accept": "json"}
        assert self.redactor.redact_headers(headers) == {
            "Authorization": "[HEADER_REDACTED]",
            "Cookie": "[HEADER_REDACTED]",
            "X-Api-Key": "[HEADER_REDACTED]",
            "Accept": "json",
        }

    def test_redact_http_context_json_body(self) -> None:
        result = self.redactor.redact_http_context(
            {"url": "https://x.io/login?next=/", "body": '{"password": "p", "note": "a@b.com"}'}
        )
        assert result["url"] == "https://x.io/login?[QUERY_REDACTED]"
        assert "body" not in result
        assert json.loads(result["data"]) == {"password": "[PII_REDACTED]", "note": "[EMAIL_REDACTED]"}

    def test_redact_http_context_text_body(self) -> None:
        result = self.redactor.redact_http_context({"data": "call 555-123-4567"})
        assert result["data"] == "call [PHONE_REDACTED]"


class TestLimits:
    def test_invalid_limits_rejected(self) -> None:
        with pytest.raises(ValueError):
            RedactionLimits(max_string_length=5)
        with pytest.raises(ValueError):
            RedactionLimits(max_array_length=0)
