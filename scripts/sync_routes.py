#!/usr/bin/env python3
"""Print the route definitions stored in etcd, optionally following changes.

Usage
-----
::

    export ETCDROUTES_ENDPOINTS="http://127.0.0.1:2379"
    export ETCDROUTES_STORAGE_ROOT="/skipper"
    python scripts/sync_routes.py --follow

Options::

    --endpoint URL       etcd member URL (repeatable, overrides env)
    --storage-root PATH  etcd directory holding the routes/ subtree
    --follow             Keep watching and print every change
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from etcdroutes import EtcdConfig, EtcdRouteClient, Route  # noqa: E402
from etcdroutes._eskip import serialize_document  # noqa: E402
from etcdroutes.exceptions import EtcdIndexClearedError, EtcdTransportError, RouteParseError  # noqa: E402


def _print_table(table: dict[str, Route]) -> None:
    print(serialize_document(table[key] for key in sorted(table)))


async def follow(client: EtcdRouteClient, table: dict[str, Route]) -> None:
    """Apply every change to ``table`` and print it, until interrupted."""
    while True:
        try:
            upserts, deletes = await client.load_update()
        except EtcdIndexClearedError:
            print("# watch index cleared, reloading", file=sys.stderr)
            table.clear()
            table.update({r.id: r for r in await client.load_all()})
            _print_table(table)
            continue
        except RouteParseError as exc:
            # retrying would return the same change again
            raise SystemExit(
                f"# change after etcd index {client.watermark} under {client.routes_root} is not a valid route: {exc}\n"
                "# fix or delete that key, then restart"
            ) from exc
        except EtcdTransportError as exc:
            print(f"# update failed: {exc}", file=sys.stderr)
            await asyncio.sleep(1.0)
            continue

        for route in upserts or ():
            table[route.id] = route
            print(f"+ {route.id}: {route}")
        for route_id in deletes or ():
            table.pop(route_id, None)
            print(f"- {route_id}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump (and follow) route definitions stored in etcd.")
    parser.add_argument("--endpoint", action="append", dest="endpoints", help="etcd member URL (repeatable)")
    parser.add_argument("--storage-root", help="etcd directory holding the routes/ subtree")
    parser.add_argument("--follow", action="store_true", help="Keep watching for changes")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.endpoints:
        overrides["endpoints"] = tuple(args.endpoints)
    if args.storage_root is not None:
        overrides["storage_root"] = args.storage_root
    config = EtcdConfig.from_env(**overrides)

    async with EtcdRouteClient(config) as client:
        table = {r.id: r for r in await client.load_all()}
        print(f"# {len(table)} route(s) under {client.routes_root} at index {client.watermark}")
        _print_table(table)
        if args.follow:
            await follow(client, table)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
