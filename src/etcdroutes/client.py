"""High-level async client for route definitions stored in etcd."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import aiohttp

from etcdroutes._client import reads as _reads
from etcdroutes._client import writes as _writes
from etcdroutes._transport import EtcdTransport, HttpTransport
from etcdroutes.codec import EskipCodec, RouteCodec
from etcdroutes.config import EtcdConfig
from etcdroutes.exceptions import EtcdRoutesError
from etcdroutes.models.route import Route

_logger = logging.getLogger(__name__)


class EtcdRouteClient:
    """Loads routes and route updates from etcd, and writes routes back.

    Route definitions are stored one per key directly below
    ``<storage_root>/routes``; the key name is the route id and the value
    is the route expression.

    The client keeps a watermark: the highest etcd index it has seen.
    :meth:`load_all` takes a full snapshot and sets it; every
    :meth:`load_update` waits for the next change after it and moves it
    forward. Calls are not synchronized, so run them from a single loop::

        async with EtcdRouteClient(EtcdConfig(storage_root="/skipper")) as client:
            table = {r.id: r for r in await client.load_all()}
            while True:
                upserts, deletes = await client.load_update()
                for route in upserts or ():
                    table[route.id] = route
                for route_id in deletes or ():
                    table.pop(route_id, None)
    """

    def __init__(
        self,
        config: EtcdConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: EtcdTransport | None = None,
        codec: RouteCodec | None = None,
    ) -> None:
        self._config = config if config is not None else EtcdConfig()
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport
        self._codec: RouteCodec = codec if codec is not None else EskipCodec()
        self._routes_root = self._config.routes_root
        self._watermark = 0

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> EtcdRouteClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
            _logger.debug("Using etcd members %s, routes root %s", ", ".join(self._config.endpoints), self._routes_root)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session if the client created it.

        Closing interrupts a pending :meth:`load_update`.
        """
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> EtcdConfig:
        return self._config

    @property
    def codec(self) -> RouteCodec:
        return self._codec

    @property
    def routes_root(self) -> str:
        """etcd directory holding the route keys."""
        return self._routes_root

    @property
    def watermark(self) -> int:
        """Highest etcd index incorporated so far (``0`` before the first load)."""
        return self._watermark

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> EtcdTransport:
        if self._transport is None:
            raise EtcdRoutesError("Client not initialized. Use 'async with EtcdRouteClient(...) as client:'")
        return self._transport

    def _advance_watermark(self, *indexes: int) -> None:
        """Raise the watermark to the highest of ``indexes``; never lower it."""
        self._watermark = max(self._watermark, *indexes)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_all(self) -> list[Route]:
        """Return all route definitions currently stored in etcd.

        Raises :class:`~etcdroutes.exceptions.RouteParseError` if any
        stored definition is malformed; the watermark is then unchanged.
        """
        return await _reads.load_all(self)

    async def load_update(self) -> tuple[list[Route] | None, list[str] | None]:
        """Wait for the next change under the routes root and return it.

        Blocks until etcd reports a change with an index above the
        watermark. Returns ``(routes, None)`` for created or updated
        routes and ``(None, ids)`` for deleted or expired ones. On any
        error the watermark is unchanged, so calling again re-requests
        the same change.
        """
        return await _reads.load_update(self)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert(self, route: Route) -> None:
        """Insert or overwrite a route under its id."""
        await _writes.upsert(self, route)

    async def delete(self, route_id: str) -> None:
        """Delete a route; deleting a missing route is not an error."""
        await _writes.delete(self, route_id)


def new(endpoints: Iterable[str], storage_root: str) -> EtcdRouteClient:
    """Create a client for the etcd cluster at ``endpoints``.

    The routes are expected under ``<storage_root>/routes``. Use the
    returned client as an async context manager.
    """
    return EtcdRouteClient(EtcdConfig(endpoints=tuple(endpoints), storage_root=storage_root))
