"""Sinks – HTTP transports for the batched client sink.

Two capabilities are kept apart:

* :class:`HttpxBatchTransport` posts a batch asynchronously and raises
  :class:`~mp_logpipe.kernel.errors.TransportError` on any failure, so the
  retry policy can decide what to do;
* a :class:`BeaconTransport` is the fire-and-forget primitive used at
  teardown.  It must not block for long and never raises.
  :class:`HttpxBeaconTransport` substitutes a short, hard-timeout synchronous
  POST for the browser's ``sendBeacon``.
"""
from __future__ import annotations

import json
from typing import Any, Protocol

import httpx

from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.errors import TransportError

_log = get_logger(__name__)

_JSON_HEADERS = {"Content-Type": "application/json"}


def encode_payload(payload: Any) -> bytes:
    return json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8")


class BatchTransport(Protocol):
    async def send(self, url: str, payload: dict[str, Any]) -> None: ...


class BeaconTransport(Protocol):
    def send(self, url: str, body: bytes) -> bool: ...


class HttpxBatchTransport:
    """Async POST of one JSON batch.

    A shared ``httpx.AsyncClient`` may be injected; otherwise one is opened
    per send, which keeps the transport usable across event loops.
    """

    def __init__(self, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client

    async def send(self, url: str, payload: dict[str, Any]) -> None:
        body = encode_payload(payload)
        try:
            if self._client is not None:
                response = await self._client.post(url, content=body, headers=_JSON_HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, content=body, headers=_JSON_HEADERS)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                url,
                f"HTTP {exc.response.status_code} from POST {url}",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(url, str(exc) or type(exc).__name__, cause=exc) from exc


class HttpxBeaconTransport:
    """Best-effort synchronous POST bounded by a short timeout."""

    def __init__(self, timeout: float = 2.0) -> None:
        self._timeout = timeout

    def send(self, url: str, body: bytes) -> bool:
        try:
            response = httpx.post(url, content=body, headers=_JSON_HEADERS, timeout=self._timeout)
        except httpx.HTTPError as exc:
            _log.warning("beacon_failed", url=url, error=repr(exc))
            return False
        return response.is_success


__all__ = [
    "BatchTransport",
    "BeaconTransport",
    "HttpxBatchTransport",
    "HttpxBeaconTransport",
    "encode_payload",
]
