"""Requester - request/response correlation over a one-way channel.

Turns a fire-and-forget message stream into awaitable exchanges. The
channel itself is supplied by the caller as two functions:

- send(envelope, context): push an envelope to the other party
- respond(data): handle an inbound request/post, return the reply data

Both may be plain functions or coroutine functions.

Usage:
    requester = Requester(send=channel.send, respond=handle)

    # Outbound
    await requester.post({"op": "log"})
    reply = await requester.request({"op": "ping"})

    # Inbound, for everything arriving on the channel
    await requester.on_message(raw)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from ..config import RequesterConfig
from .correlation import CorrelationTable
from .envelope import NO_REPLY_ID, Envelope, parse_envelope
from .errors import RequestTimeoutError

logger = logging.getLogger(__name__)

C = TypeVar("C")


class DropReason(str, Enum):
    """Why an inbound message was ignored."""

    MALFORMED = "malformed"  # Not an envelope (foreign traffic)
    STALE_REPLY = "stale_reply"  # Reply to an unknown, consumed, or timed-out id


DropCallback = Callable[[DropReason, Any], None]


async def _resolve(result: Any) -> Any:
    """Await a collaborator's result if it is awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


def _default_id() -> str:
    return uuid.uuid4().hex


class Requester(Generic[C]):
    """Request/response engine for a single channel.

    Owns one CorrelationTable. `C` is the type of the optional context
    passed through to `send` untouched.

    Inbound classification in `on_message`:
        - not an envelope:            ignored
        - role=True, id="-1":         post, respond() called, no reply
        - role=True, any other id:    request, respond() result sent back
        - role=False:                 reply, delivered to the waiting request
    """

    def __init__(
        self,
        send: Callable[[Envelope, C | None], Any],
        respond: Callable[[Any], Any],
        timeout_ms: float | None = None,
        *,
        on_drop: DropCallback | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the requester.

        Args:
            send: Called with every outbound envelope (posts, requests, replies)
            respond: Called with the data of inbound requests and posts
            timeout_ms: Reply timeout (default from RequesterConfig)
            on_drop: Optional callback for ignored inbound messages
            id_factory: Request id generator (default: 128-bit random hex)
        """
        self._config = RequesterConfig.from_env(timeout_ms)
        self._send = send
        self._respond = respond
        self._on_drop = on_drop
        self._id_factory = id_factory or _default_id
        self._table = CorrelationTable()

    @classmethod
    def from_config(
        cls,
        send: Callable[[Envelope, C | None], Any],
        respond: Callable[[Any], Any],
        config: RequesterConfig,
        **kwargs: Any,
    ) -> Requester[C]:
        """Create a requester from an explicit config."""
        return cls(send, respond, config.timeout_ms, **kwargs)

    @property
    def timeout_ms(self) -> float:
        """Reply timeout in milliseconds."""
        return self._config.timeout_ms

    @property
    def pending(self) -> int:
        """Number of outstanding correlated requests."""
        return len(self._table)

    async def post(self, data: Any, context: C | None = None) -> None:
        """Send a one-way message. No reply is expected or awaited."""
        await _resolve(self._send(Envelope.post(data), context))

    async def request(self, data: Any, context: C | None = None) -> Any:
        """Send a correlated request and wait for its reply.

        Args:
            data: Request payload
            context: Passed through to `send`

        Returns:
            The reply payload

        Raises:
            RequestTimeoutError: If no reply arrives within `timeout_ms`
        """
        request_id = self._new_id()
        # Reserve before sending so an immediate reply has somewhere to land
        record = self._table.reserve(request_id)

        try:
            await _resolve(self._send(Envelope.request(request_id, data), context))
            logger.debug(f"Sent request {request_id}, waiting up to {self.timeout_ms:g}ms")

            try:
                await asyncio.wait_for(
                    self._table.wait(request_id),
                    timeout=self._config.timeout_seconds,
                )
            except TimeoutError:
                age_ms = (asyncio.get_running_loop().time() - record.created_at) * 1000.0
                logger.warning(
                    f"Request {request_id} timed out after {self.timeout_ms:g}ms "
                    f"({age_ms:.0f}ms since reserved)"
                )
                raise RequestTimeoutError(request_id, self.timeout_ms) from None

            # wait() only returns once the future holds a result
            reply = self._table.consume(request_id)
            assert reply is not None

            logger.debug(f"Received reply for {request_id}")
            return reply.payload
        finally:
            self._table.discard(request_id)

    async def on_message(self, raw: Any, context: C | None = None) -> None:
        """Process anything that arrived on the channel.

        Args:
            raw: Candidate envelope (Envelope, mapping, or JSON str/bytes)
            context: Passed through to `send` when replying
        """
        envelope = parse_envelope(raw)
        if envelope is None:
            self._drop(DropReason.MALFORMED, raw)
            return

        if envelope.is_reply():
            if not self._table.fulfill(envelope.id, envelope.data):
                self._drop(DropReason.STALE_REPLY, raw)
            return

        if envelope.id == NO_REPLY_ID:
            logger.debug("Handling post")
            await _resolve(self._respond(envelope.data))
            return

        logger.debug(f"Handling request {envelope.id}")
        result = await _resolve(self._respond(envelope.data))
        await _resolve(self._send(Envelope.reply(envelope.id, result), context))

    def _new_id(self) -> str:
        """Generate an id that collides with no outstanding request."""
        while True:
            request_id = self._id_factory()
            if request_id != NO_REPLY_ID and not self._table.exists(request_id):
                return request_id
            logger.debug(f"Request id collision on {request_id}, regenerating")

    def _drop(self, reason: DropReason, raw: Any) -> None:
        logger.debug(f"Ignoring inbound message ({reason.value})")
        if self._on_drop is not None:
            self._on_drop(reason, raw)
