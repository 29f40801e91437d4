"""Unit tests for the error hierarchy."""

from __future__ import annotations

import json

import pytest

from mp_logpipe.config import ConfigError, InvalidSettingValueError
from mp_logpipe.kernel.errors import (
    BaseError,
    InfrastructureError,
    LoggedError,
    SinkDeliveryError,
    TransportError,
)


class TestBaseError:
    def test_defaults(self) -> None:
        err = BaseError("something broke")
        assert str(err) == "something broke"
        assert err.code == "base_error"
        assert err.detail == {}
        assert repr(err) == "BaseError(code='base_error', message='something broke')"

    def test_cause_is_chained(self) -> None:
        cause = OSError("disk full")
        err = BaseError("write failed", code="write_failed", detail={"path": "/x"}, cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict() == {
            "code": "write_failed",
            "message": "write failed",
            "detail": {"path": "/x"},
            "cause": "OSError('disk full')",
        }
        assert json.loads(err.to_json())["code"] == "write_failed"


class TestDeliveryErrors:
    def test_sink_delivery_error(self) -> None:
        err = SinkDeliveryError("server-file")
        assert isinstance(err, InfrastructureError)
        assert err.sink == "server-file"
        assert err.message == "Sink 'server-file' failed to deliver"
        assert err.code == "sink_delivery_error"

    def test_transport_error(self) -> None:
        err = TransportError("https://logs.example.com", status_code=502)
        assert err.endpoint == "https://logs.example.com"
        assert err.status_code == 502
        assert err.message == "Delivery to 'https://logs.example.com' failed"

    def test_logged_error_is_not_infrastructure(self) -> None:
        assert not isinstance(LoggedError("x"), InfrastructureError)

    def test_invalid_setting_value(self) -> None:
        err = InvalidSettingValueError("sentry.traces_sample_rate", "abc", "not a float")
        assert isinstance(err, ConfigError)
        assert err.setting_name == "sentry.traces_sample_rate"
        with pytest.raises(ConfigError, match="has invalid value 'abc'"):
            raise err
