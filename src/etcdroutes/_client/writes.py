"""Internal write operations for :class:`etcdroutes.client.EtcdRouteClient`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from etcdroutes.exceptions import EtcdKeyNotFoundError, InvalidRouteIdError, MissingRouteIdError
from etcdroutes.models.route import Route

if TYPE_CHECKING:
    from etcdroutes.client import EtcdRouteClient

_logger = logging.getLogger(__name__)


def _route_key(client: EtcdRouteClient, route_id: str) -> str:
    if not route_id:
        raise MissingRouteIdError()
    # routes are direct children of the root; a nested key is never loaded
    if "/" in route_id:
        raise InvalidRouteIdError(f"route id {route_id!r} must not contain '/'")
    return f"{client.routes_root}/{route_id}"


async def upsert(client: EtcdRouteClient, route: Route) -> None:
    key = _route_key(client, route.id)
    value = client.codec.serialize(route)

    transport = client._require_transport()
    await transport.set(key, value)
    _logger.debug("Stored route %s", route.id)


async def delete(client: EtcdRouteClient, route_id: str) -> None:
    key = _route_key(client, route_id)

    transport = client._require_transport()
    try:
        await transport.delete(key, recursive=False, directory=False)
    except EtcdKeyNotFoundError:
        _logger.debug("Route %s already absent", route_id)
        return
    _logger.debug("Deleted route %s", route_id)
