"""Conversion between route text and :class:`Route` models.

The client only depends on the :class:`RouteCodec` protocol, so a
different route grammar can be plugged in by passing ``codec=`` to
:class:`etcdroutes.client.EtcdRouteClient`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from etcdroutes._constants import ROUTE_SEPARATOR
from etcdroutes._eskip import is_route_id, parse_document, serialize_route
from etcdroutes.exceptions import InvalidRouteIdError
from etcdroutes.models.route import Route

_logger = logging.getLogger(__name__)

_LOG_PREVIEW = 512


class RouteCodec(Protocol):
    """Structural interface of a route text codec."""

    def parse_batch(self, text: str) -> list[Route]:
        """Parse a multi-statement document; raise ``RouteParseError`` on any error."""
        ...

    def serialize(self, route: Route) -> str:
        """Return the stored form of ``route`` (the expression without its id).

        Raise ``InvalidRouteIdError`` for an id the codec cannot read back.
        """
        ...


class EskipCodec:
    """Default codec for ``id: Predicate() -> filter() -> "backend"`` text."""

    def parse_batch(self, text: str) -> list[Route]:
        return parse_document(text)

    def serialize(self, route: Route) -> str:
        if route.id and not is_route_id(route.id):
            raise InvalidRouteIdError(f"route id {route.id!r} would not parse back")
        return serialize_route(route)


def parse_routes(route_set: Mapping[str, str], codec: RouteCodec) -> list[Route]:
    """Parse every route text of a flattened route set as one document.

    All or nothing: a single malformed definition fails the whole batch.
    """
    doc = ROUTE_SEPARATOR.join(route_set.values())
    _logger.debug("Parsing %d route definition(s): %s", len(route_set), doc[:_LOG_PREVIEW])
    return codec.parse_batch(doc)
