"""Adapters – one parser for every historical positional call shape.

Arguments are classified by arity and runtime type.  ``exc`` means an
exception instance, ``str`` a string, ``any`` anything else (``None``
included unless the row says otherwise).

======  ===============================  ==================================
arity   argument types                   meaning
======  ===============================  ==================================
1       (str)                            message
2       (str, exc)                       message, error
2       (str, str)                       component, message
2       (str, any)                       message, data
3       (str, str, exc)                  component, message, error
3       (str, str, any)                  component, message, data
3       (str, exc | None, any)           message, error, data
3       (str, any, any)                  message, errorData, data
4       (str, str, exc | None, any)      component, message, error, data
4       (str, str, any, any)             component, message, errorData, data
*       anything else                    unrecognised: arguments joined
======  ===============================  ==================================

:func:`parse_call` never raises.
"""
from __future__ import annotations

import dataclasses
import enum
from typing import Any, Sequence


class CallKind(enum.Enum):
    MESSAGE = "message"
    MESSAGE_ERROR = "message_error"
    MESSAGE_DATA = "message_data"
    COMPONENT_MESSAGE = "component_message"
    COMPONENT_MESSAGE_ERROR = "component_message_error"
    COMPONENT_MESSAGE_DATA = "component_message_data"
    MESSAGE_ERROR_DATA = "message_error_data"
    MESSAGE_ERROR_DATA_DATA = "message_errordata_data"
    COMPONENT_MESSAGE_ERROR_DATA = "component_message_error_data"
    COMPONENT_MESSAGE_ERROR_DATA_DATA = "component_message_errordata_data"
    UNRECOGNIZED = "unrecognized"


@dataclasses.dataclass(frozen=True)
class CallShape:
    kind: CallKind
    message: str
    component: str | None = None
    error: BaseException | None = None
    error_data: Any = None
    data: Any = None


def _safe_str(value: Any) -> str:
    try:
        return value if isinstance(value, str) else repr(value)
    except Exception:  # noqa: BLE001
        return f"<{type(value).__name__}>"


def _unrecognized(args: Sequence[Any]) -> CallShape:
    return CallShape(CallKind.UNRECOGNIZED, " ".join(_safe_str(a) for a in args))


def parse_call(args: Sequence[Any]) -> CallShape:
    """Classify positional legacy arguments; see the module table."""
    if not args or not isinstance(args[0], str):
        return _unrecognized(args)
    first = args[0]
    arity = len(args)

    if arity == 1:
        return CallShape(CallKind.MESSAGE, first)

    if arity == 2:
        second = args[1]
        if isinstance(second, BaseException):
            return CallShape(CallKind.MESSAGE_ERROR, first, error=second)
        if isinstance(second, str):
            return CallShape(CallKind.COMPONENT_MESSAGE, second, component=first)
        return CallShape(CallKind.MESSAGE_DATA, first, data=second)

    if arity == 3:
        second, third = args[1], args[2]
        if isinstance(second, str):
            if isinstance(third, BaseException):
                return CallShape(CallKind.COMPONENT_MESSAGE_ERROR, second, component=first, error=third)
            return CallShape(CallKind.COMPONENT_MESSAGE_DATA, second, component=first, data=third)
        if second is None or isinstance(second, BaseException):
            return CallShape(CallKind.MESSAGE_ERROR_DATA, first, error=second, data=third)
        return CallShape(CallKind.MESSAGE_ERROR_DATA_DATA, first, error_data=second, data=third)

    if arity == 4 and isinstance(args[1], str):
        second, third, fourth = args[1], args[2], args[3]
        if third is None or isinstance(third, BaseException):
            return CallShape(
                CallKind.COMPONENT_MESSAGE_ERROR_DATA, second, component=first, error=third, data=fourth
            )
        return CallShape(
            CallKind.COMPONENT_MESSAGE_ERROR_DATA_DATA,
            second,
            component=first,
            error_data=third,
            data=fourth,
        )

    return _unrecognized(args)


__all__ = ["CallKind", "CallShape", "parse_call"]
