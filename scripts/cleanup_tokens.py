#!/usr/bin/env python3
"""Refresh expired provider tokens on a schedule.

Usage:
    python scripts/cleanup_tokens.py            # every hour
    python scripts/cleanup_tokens.py --once     # single sweep
"""

import argparse
import asyncio
import sys

import logfire

from studyhall.config import Settings
from studyhall.domain.service import TokenLifecycleManager
from studyhall.util.di.container import create_container
from studyhall.util.logging import setup_logging
from studyhall.util.observability import configure_logfire

DEFAULT_INTERVAL_SECONDS = 3600


async def sweep_forever(interval_seconds: int, once: bool) -> None:
    """Run the cleanup sweep, each sweep in its own request scope."""
    container = create_container()
    try:
        while True:
            async with container() as request_container:
                lifecycle = await request_container.get(TokenLifecycleManager)
                report = await lifecycle.cleanup_expired_tokens()

            logfire.info(
                "Scheduled token cleanup finished",
                cleaned=report.cleaned,
                errors=len(report.errors),
            )
            if once:
                return
            await asyncio.sleep(interval_seconds)
    finally:
        await container.close()


def main() -> int:
    """Parse arguments and run the sweep loop."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--once", action="store_true", help="run a single sweep")
    parser.add_argument(
        "--interval",
        type=int,
        default=DEFAULT_INTERVAL_SECONDS,
        help="seconds between sweeps",
    )
    args = parser.parse_args()

    settings = Settings()
    setup_logging(settings)
    configure_logfire(settings)

    try:
        asyncio.run(sweep_forever(args.interval, args.once))
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logfire.error(
            "Token cleanup job failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
