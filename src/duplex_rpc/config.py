"""Requester configuration.

Defaults can be overridden from the environment:
- DUPLEX_RPC_TIMEOUT_MS: reply timeout in milliseconds (default 30000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_MS = 30_000.0

TIMEOUT_ENV_VAR = "DUPLEX_RPC_TIMEOUT_MS"


def _parse_timeout(value: str | float, source: str) -> float:
    try:
        timeout_ms = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid timeout in {source}: {value!r}") from e
    if not timeout_ms > 0:
        raise ValueError(f"Timeout in {source} must be positive, got {value!r}")
    return timeout_ms


@dataclass
class RequesterConfig:
    """Construction-time settings for a Requester."""

    # How long `request` waits for a reply, measured from when the wait begins
    timeout_ms: float = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        self.timeout_ms = _parse_timeout(self.timeout_ms, "timeout_ms")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls, timeout_ms: float | None = None) -> RequesterConfig:
        """Build a config from the environment.

        Explicit arguments take precedence over environment variables.
        """
        if timeout_ms is not None:
            return cls(timeout_ms=timeout_ms)

        raw = os.environ.get(TIMEOUT_ENV_VAR, "").strip()
        if not raw:
            return cls()
        return cls(timeout_ms=_parse_timeout(raw, TIMEOUT_ENV_VAR))
