"""duplex-rpc - request/response correlation over one-way message channels."""

from .config import RequesterConfig
from .loopback import LoopbackChannel, create_loopback_pair
from .protocol import (
    NO_REPLY_ID,
    DropReason,
    DuplexRpcError,
    Envelope,
    RequestTimeoutError,
    Requester,
    parse_envelope,
)

__version__ = "0.1.0"

__all__ = [
    "NO_REPLY_ID",
    "DropReason",
    "DuplexRpcError",
    "Envelope",
    "LoopbackChannel",
    "RequestTimeoutError",
    "Requester",
    "RequesterConfig",
    "create_loopback_pair",
    "parse_envelope",
]
