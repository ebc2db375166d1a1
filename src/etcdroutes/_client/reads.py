"""Internal read operations for :class:`etcdroutes.client.EtcdRouteClient`.

These functions keep `client.py` small without changing the public API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from etcdroutes.codec import parse_routes
from etcdroutes.flatten import flatten_routes
from etcdroutes.models.route import Route

if TYPE_CHECKING:
    from etcdroutes.client import EtcdRouteClient

_logger = logging.getLogger(__name__)


async def load_all(client: EtcdRouteClient) -> list[Route]:
    transport = client._require_transport()
    root = client.routes_root

    response = await transport.get(root, recursive=True, quorum=True)
    data, highest = flatten_routes(response.node, root, 0)

    # TODO: skip malformed definitions and keep the rest instead of failing the snapshot
    routes = parse_routes(data, client.codec)

    client._advance_watermark(highest, response.etcd_index)
    _logger.debug("Loaded %d route(s) from %s, watermark=%d", len(routes), root, client.watermark)
    return routes


async def load_update(client: EtcdRouteClient) -> tuple[list[Route] | None, list[str] | None]:
    transport = client._require_transport()
    root = client.routes_root
    since = client.watermark

    response = await transport.watch(root, wait_index=since + 1, recursive=True)
    data, highest = flatten_routes(response.node, root, since)

    routes: list[Route] | None = None
    deleted_ids: list[str] | None = None
    if response.action.is_deletion:
        deleted_ids = list(data)
    else:
        routes = parse_routes(data, client.codec)

    client._advance_watermark(highest, response.etcd_index)
    _logger.debug(
        "%s on %s: %d upserted, %d deleted, watermark %d -> %d",
        response.action.value,
        response.node.key,
        len(routes or ()),
        len(deleted_ids or ()),
        since,
        client.watermark,
    )
    return routes, deleted_ids
