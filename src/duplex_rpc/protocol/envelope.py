"""Envelope definitions for the protocol layer.

Every message that crosses the channel, in either direction, is an Envelope.
The `role` flag tells the receiver which way the exchange runs:

- role=True: the sender originated it (a request, or a post when `id` is
  the sentinel)
- role=False: the sender is replying to one of the receiver's requests

Example (request, then its reply):
    {"id": "5f0c1e...", "role": true, "data": {"op": "ping"}}
    {"id": "5f0c1e...", "role": false, "data": "pong"}

Example (one-way post):
    {"id": "-1", "role": true, "data": {"op": "log"}}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

# Reserved id meaning "no reply expected"
NO_REPLY_ID = "-1"

CALLER = True
RESPONDER = False


class Envelope(BaseModel):
    """The unit exchanged in both directions.

    `data` is opaque and never inspected. `id` and `role` are validated
    strictly so that look-alike foreign traffic (e.g. `"role": "true"`)
    is not mistaken for protocol messages.
    """

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    id: str
    role: bool
    data: Any = None

    def is_post(self) -> bool:
        """Check if this is a one-way post (no reply expected)."""
        return self.role is CALLER and self.id == NO_REPLY_ID

    def is_request(self) -> bool:
        """Check if this is a request that expects a correlated reply."""
        return self.role is CALLER and self.id != NO_REPLY_ID

    def is_reply(self) -> bool:
        """Check if this is a reply to one of our requests."""
        return self.role is RESPONDER

    @classmethod
    def post(cls, data: Any) -> Envelope:
        """Create a one-way post envelope."""
        return cls(id=NO_REPLY_ID, role=CALLER, data=data)

    @classmethod
    def request(cls, request_id: str, data: Any) -> Envelope:
        """Create a correlated request envelope."""
        return cls(id=request_id, role=CALLER, data=data)

    @classmethod
    def reply(cls, request_id: str, data: Any) -> Envelope:
        """Create a reply envelope for an inbound request."""
        return cls(id=request_id, role=RESPONDER, data=data)


def parse_envelope(raw: Any) -> Envelope | None:
    """Parse an inbound value into an Envelope, or None if it isn't one.

    Accepts an Envelope instance, a mapping, or a JSON document (str/bytes).
    Never raises: the channel may carry foreign traffic.
    """
    if isinstance(raw, Envelope):
        return raw

    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return Envelope.model_validate_json(raw)
        if isinstance(raw, Mapping):
            return Envelope.model_validate(dict(raw))
    except ValidationError as e:
        logger.debug(f"Not an envelope: {e.error_count()} validation error(s)")
        return None

    return None
