"""duplex-rpc CLI.

Diagnostics for the request/response layer over an in-memory channel.

Usage:
    duplex-rpc ping                          # One ping over a loopback pair
    duplex-rpc ping --count 5                # Several sequential pings
    duplex-rpc ping --drop 1 --timeout-ms 50 # Lose the first ping, watch it time out
    duplex-rpc ping --format json            # JSON output for scripting
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .config import RequesterConfig
from .loopback import create_loopback_pair
from .protocol.errors import RequestTimeoutError

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


def _configure_logging(verbose: bool) -> None:
    # Diagnostics go to stderr so JSON output stays clean
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def run_pings(count: int, timeout_ms: float | None, drop: int) -> list[dict[str, Any]]:
    """Issue `count` pings from side a to side b and time each one."""
    channel = create_loopback_pair(
        respond_a=lambda data: None,
        respond_b=lambda data: "pong" if data == {"op": "ping"} else None,
        timeout_ms=timeout_ms,
    )
    channel.drop_next(drop)

    loop = asyncio.get_running_loop()
    results: list[dict[str, Any]] = []
    for seq in range(count):
        started = loop.time()
        try:
            reply = await channel.a.request({"op": "ping"})
            status = "ok"
        except RequestTimeoutError:
            reply = None
            status = "timeout"
        results.append(
            {
                "seq": seq,
                "status": status,
                "reply": reply,
                "rtt_ms": round((loop.time() - started) * 1000.0, 3),
            }
        )

    await channel.drain()
    return results


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
def main(verbose: bool) -> None:
    """duplex-rpc - request/response correlation over one-way channels."""
    _configure_logging(verbose)


@main.command("ping")
@click.option("--count", "-c", default=1, type=click.IntRange(min=1), help="Number of pings")
@click.option(
    "--timeout-ms",
    type=float,
    default=None,
    help="Reply timeout in milliseconds (default: $DUPLEX_RPC_TIMEOUT_MS or 30000)",
)
@click.option(
    "--drop",
    default=0,
    type=click.IntRange(min=0),
    help="Lose this many envelopes before delivering",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
def ping(count: int, timeout_ms: float | None, drop: int, output_format: str) -> None:
    """Ping over a loopback pair and report round-trip times.

    Exits with status 1 if any ping timed out.

    Examples:

        # Five pings
        duplex-rpc ping --count 5

        # Simulate a lost request
        duplex-rpc ping --count 2 --drop 1 --timeout-ms 100
    """
    try:
        config = RequesterConfig.from_env(timeout_ms)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--timeout-ms") from e

    results = asyncio.run(run_pings(count, config.timeout_ms, drop))

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(results, indent=2))
    else:
        click.echo(f"{'Seq':>4} {'Status':<8} {'Reply':<8} {'RTT (ms)':>10}")
        click.echo("-" * 33)
        for r in results:
            reply = "-" if r["reply"] is None else str(r["reply"])
            click.echo(f"{r['seq']:>4} {r['status']:<8} {reply:<8} {r['rtt_ms']:>10.3f}")

        ok = sum(1 for r in results if r["status"] == "ok")
        click.echo(f"\n{ok}/{len(results)} ping(s) answered (timeout {config.timeout_ms:g}ms)")

    if any(r["status"] == "timeout" for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
