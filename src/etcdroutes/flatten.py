"""Flattening of an etcd subtree into route texts."""

from __future__ import annotations

from etcdroutes.models.node import EtcdDirectory, EtcdLeaf


def flatten_routes(
    node: EtcdLeaf | EtcdDirectory,
    routes_root: str,
    watermark: int = 0,
) -> tuple[dict[str, str], int]:
    """Collect the route definitions found in ``node``.

    Only direct children of ``routes_root`` are routes. Each one is
    returned as ``{id: "<id>: <value>"}`` where the id is the last
    segment of its key, because the stored value alone does not name the
    route. Deeper descendants are skipped. When ``node`` is the routes
    root itself, its children are merged; on an id collision the later
    child wins.

    Returns the route set and the highest ``modified_index`` seen among
    the visited nodes, never lower than ``watermark``.
    """
    highest = max(watermark, node.modified_index)

    routes: dict[str, str] = {}
    if isinstance(node, EtcdDirectory) and node.key == routes_root:
        for child in node.nodes:
            child_routes, highest = flatten_routes(child, routes_root, highest)
            routes.update(child_routes)

    if node.parent_key != routes_root:
        return routes, highest

    # a directory directly below the root has no value; its id still
    # counts, so that deleting it reports it
    value = node.value if isinstance(node, EtcdLeaf) else ""
    route_id = node.base_name
    return {route_id: f"{route_id}: {value}"}, highest
