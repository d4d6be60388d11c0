"""API health check against a running Better Bets server.

Calls the health, odds and scan endpoints and reports status and latency
for each. Exits non-zero if any check fails.

Usage:
    python -m betterbets.operations.health_check --base-url http://localhost:4000
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_PATHS = [
    "/api/health",
    "/api/odds?sport=basketball_nba",
    "/api/scan?sport=basketball_nba&minEdge=0",
]


@dataclass
class CheckResult:
    path: str
    status: int | None
    ms: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status == 200


async def check(
    session: aiohttp.ClientSession,
    base_url: str,
    path: str,
    api_key: str | None = None,
) -> CheckResult:
    """Request one path and record its status and latency; never raises on HTTP errors."""
    url = base_url.rstrip("/") + path
    headers = {"x-betterbets-key": api_key} if api_key else {}
    start = time.monotonic()
    try:
        async with session.get(url, headers=headers) as resp:
            await resp.read()
            return CheckResult(
                path=url,
                status=resp.status,
                ms=int((time.monotonic() - start) * 1000),
            )
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        return CheckResult(
            path=url,
            status=None,
            ms=int((time.monotonic() - start) * 1000),
            error=str(e) or type(e).__name__,
        )


async def run_checks(
    base_url: str,
    paths: list[str],
    api_key: str | None = None,
    timeout_seconds: float = 30.0,
) -> list[CheckResult]:
    """Run every check sequentially against base_url."""
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        results = []
        for path in paths:
            results.append(await check(session, base_url, path, api_key))
        return results


def main() -> None:
    """CLI entry point for the API health check."""
    parser = argparse.ArgumentParser(
        description="Better Bets API health check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Example:\n"
            "  python -m betterbets.operations.health_check --base-url http://localhost:4000"
        ),
    )
    parser.add_argument(
        "--base-url",
        default=os.environ.get("BETTERBETS_BASE_URL", "http://localhost:4000"),
        help="Server base URL (default: $BETTERBETS_BASE_URL or http://localhost:4000)",
    )
    parser.add_argument(
        "--api-key",
        default=os.environ.get("BETTERBETS_API_KEY"),
        help="Value for the x-betterbets-key header (default: $BETTERBETS_API_KEY)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Per-run total timeout in seconds",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(f"Running Better Bets API health checks against {args.base_url}")

    results = asyncio.run(
        run_checks(args.base_url, DEFAULT_PATHS, args.api_key, args.timeout)
    )
    print(json.dumps([asdict(r) for r in results], indent=2))

    failures = [r for r in results if not r.ok]
    if failures:
        logger.error(f"{len(failures)} health check(s) failed")
        sys.exit(1)

    logger.info("All health checks passed")


if __name__ == "__main__":
    main()
