"""In-memory loopback channel.

Wires two Requesters back to back without any real I/O. Useful for tests,
demos, and the CLI's ping diagnostics.

Each envelope is serialized to JSON and delivered to the peer's
`on_message` on its own asyncio task, so delivery interleaves with the
sender the way a real channel would.

Usage:
    channel = create_loopback_pair(respond_a=handle_a, respond_b=handle_b)
    reply = await channel.a.request({"op": "ping"})

    channel.drop_next()  # lose the next envelope
    await channel.drain()  # wait for in-flight deliveries
    assert channel.sent_by_a[0].data == {"op": "ping"}
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Literal

from .protocol.envelope import Envelope
from .protocol.requester import Requester

logger = logging.getLogger(__name__)

Side = Literal["a", "b"]


class LoopbackChannel:
    """Two Requesters connected through an in-memory channel.

    Records every envelope each side sends, including dropped ones.
    Errors raised while a side handles a delivered envelope are logged and
    collected in `errors` (there is no caller to propagate them to).
    """

    def __init__(
        self,
        respond_a: Callable[[Any], Any],
        respond_b: Callable[[Any], Any],
        timeout_ms: float | None = None,
    ) -> None:
        self.sent_by_a: list[Envelope] = []
        self.sent_by_b: list[Envelope] = []
        self.errors: list[Exception] = []
        self._drop_remaining = 0
        self._deliveries: set[asyncio.Task[None]] = set()

        self.a: Requester[Any] = Requester(self._sender("a"), respond_a, timeout_ms)
        self.b: Requester[Any] = Requester(self._sender("b"), respond_b, timeout_ms)

    @property
    def in_flight(self) -> int:
        """Number of envelopes sent but not yet handled by the peer."""
        return len(self._deliveries)

    def drop_next(self, count: int = 1) -> None:
        """Silently lose the next `count` envelopes, from either side."""
        self._drop_remaining += count

    async def drain(self) -> None:
        """Wait until every in-flight envelope has been handled."""
        while self._deliveries:
            await asyncio.gather(*self._deliveries)

    def _sender(self, side: Side) -> Callable[[Envelope, Any], None]:
        sent = self.sent_by_a if side == "a" else self.sent_by_b

        def send(envelope: Envelope, context: Any = None) -> None:
            sent.append(envelope)
            if self._drop_remaining > 0:
                self._drop_remaining -= 1
                logger.debug(f"Dropped envelope {envelope.id} from side {side}")
                return

            peer = self.b if side == "a" else self.a
            task = asyncio.create_task(self._deliver(peer, envelope.model_dump_json(), context))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)

        return send

    async def _deliver(self, peer: Requester[Any], wire: str, context: Any) -> None:
        try:
            await peer.on_message(wire, context)
        except Exception as e:
            logger.exception(f"Error handling delivered envelope: {e}")
            self.errors.append(e)


def create_loopback_pair(
    respond_a: Callable[[Any], Any],
    respond_b: Callable[[Any], Any],
    timeout_ms: float | None = None,
) -> LoopbackChannel:
    """Create two connected Requesters.

    Args:
        respond_a: Handles requests and posts that arrive at side `a`
        respond_b: Handles requests and posts that arrive at side `b`
        timeout_ms: Reply timeout for both sides (default from config)

    Returns:
        LoopbackChannel exposing the requesters as `.a` and `.b`
    """
    return LoopbackChannel(respond_a, respond_b, timeout_ms)
