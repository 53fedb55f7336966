"""Errors raised by the protocol layer."""

from __future__ import annotations


class DuplexRpcError(Exception):
    """Base class for duplex-rpc errors."""

    pass


class RequestTimeoutError(DuplexRpcError, TimeoutError):
    """Raised when a correlated request gets no reply within the timeout."""

    def __init__(self, request_id: str, timeout_ms: float) -> None:
        super().__init__(f"Request timed out: no reply to {request_id} within {timeout_ms:g}ms")
        self.request_id = request_id
        self.timeout_ms = timeout_ms
