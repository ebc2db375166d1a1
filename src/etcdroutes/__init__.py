"""etcdroutes - Async client keeping route definitions in sync with etcd."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("etcdroutes")
except PackageNotFoundError:
    __version__ = "0+local"
from etcdroutes.client import EtcdRouteClient, new
from etcdroutes.codec import EskipCodec, RouteCodec, parse_routes
from etcdroutes.config import EtcdConfig
from etcdroutes.exceptions import (
    EtcdApiError,
    EtcdIndexClearedError,
    EtcdKeyNotFoundError,
    EtcdRoutesConfigError,
    EtcdRoutesError,
    EtcdTransportError,
    InvalidRouteIdError,
    MissingRouteIdError,
    RouteParseError,
)
from etcdroutes.flatten import flatten_routes
from etcdroutes.models import (
    EtcdAction,
    EtcdDirectory,
    EtcdLeaf,
    EtcdResponse,
    Filter,
    Predicate,
    Regexp,
    Route,
)

__all__ = [
    "__version__",
    "EskipCodec",
    "EtcdAction",
    "EtcdApiError",
    "EtcdConfig",
    "EtcdDirectory",
    "EtcdIndexClearedError",
    "EtcdKeyNotFoundError",
    "EtcdLeaf",
    "EtcdResponse",
    "EtcdRouteClient",
    "EtcdRoutesConfigError",
    "EtcdRoutesError",
    "EtcdTransportError",
    "Filter",
    "InvalidRouteIdError",
    "MissingRouteIdError",
    "Predicate",
    "Regexp",
    "Route",
    "RouteCodec",
    "RouteParseError",
    "flatten_routes",
    "new",
    "parse_routes",
]
