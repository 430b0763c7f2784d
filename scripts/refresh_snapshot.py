#!/usr/bin/env python3
"""
Fetch the upstream resource once and write the local snapshot.

Runs the same refresh the proxy performs on its REFRESH_INTERVAL schedule, so
it can be driven from cron or a CI job instead of the running service.
"""

import argparse
import asyncio
import json
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_config  # noqa: E402
from shared.logging import configure_logging  # noqa: E402
from service_proxy.app.adapters import SnapshotStore, UpstreamClient  # noqa: E402
from service_proxy.app.refresh import SnapshotRefresher  # noqa: E402


async def refresh(*, api_url: str, snapshot_path: str, timeout: float) -> bool:
    """Execute a single refresh and report whether the snapshot was written."""
    refresher = SnapshotRefresher(
        UpstreamClient(api_url, timeout=timeout),
        SnapshotStore(snapshot_path),
        interval_seconds=0,
    )
    return await refresher.refresh_once()


def _parse_args() -> argparse.Namespace:
    config = get_config("proxy")
    parser = argparse.ArgumentParser(description="Refresh the proxy's local snapshot from the upstream API.")
    parser.add_argument("--api-url", default=config.api_url, help="Upstream API URL")
    parser.add_argument("--snapshot-path", default=config.snapshot_path, help="Snapshot file to write")
    parser.add_argument("--timeout", type=float, default=config.upstream_timeout, help="Upstream timeout in seconds")
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("proxy", args.log_level)
    try:
        ok = asyncio.run(refresh(api_url=args.api_url, snapshot_path=args.snapshot_path, timeout=args.timeout))
    except KeyboardInterrupt:
        return 130

    print(json.dumps({"snapshot_path": args.snapshot_path, "refreshed": ok}, indent=2))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
