"""Transport-agnostic protocol layer.

Adds request/response correlation to any one-way message channel.

Key concepts:
- Envelope: the wire shape shared by both directions ({id, role, data})
- CorrelationTable: outstanding requests keyed by id
- Requester: post / request / on_message over caller-supplied send/respond

This enables:
- Request/response patterns (request -> single correlated reply)
- One-way notifications (post, sentinel id, no reply)
- Either party acting as requester and responder on the same channel
- Silent handling of foreign or stale traffic on a shared channel
"""

from .correlation import CorrelationTable, PendingRequest, Reply
from .envelope import CALLER, NO_REPLY_ID, RESPONDER, Envelope, parse_envelope
from .errors import DuplexRpcError, RequestTimeoutError
from .requester import DropReason, Requester

__all__ = [
    "CALLER",
    "NO_REPLY_ID",
    "RESPONDER",
    "CorrelationTable",
    "DropReason",
    "DuplexRpcError",
    "Envelope",
    "PendingRequest",
    "Reply",
    "RequestTimeoutError",
    "Requester",
    "parse_envelope",
]
