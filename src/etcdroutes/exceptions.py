"""Custom exception hierarchy for etcdroutes."""

from __future__ import annotations


class EtcdRoutesError(Exception):
    """Base exception for all etcdroutes errors."""


class EtcdRoutesConfigError(EtcdRoutesError):
    """Invalid or missing configuration."""


class EtcdTransportError(EtcdRoutesError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class EtcdApiError(EtcdRoutesError):
    """etcd answered with an error body (``errorCode``/``message``/``cause``)."""

    def __init__(
        self,
        message: str,
        *,
        error_code: int = 0,
        status_code: int | None = None,
        key: str = "",
        index: int = 0,
    ) -> None:
        self.error_code = error_code
        self.status_code = status_code
        self.key = key
        self.index = index
        super().__init__(message)


class EtcdKeyNotFoundError(EtcdApiError):
    """The requested key does not exist (etcd error code 100)."""


class EtcdIndexClearedError(EtcdApiError):
    """The watched index is older than etcd's event history (code 401).

    The watermark can no longer be resumed; callers should take a fresh
    snapshot with ``load_all`` before watching again.
    """


class MissingRouteIdError(EtcdRoutesError, ValueError):
    """A write was requested for a route without an identifier."""

    def __init__(self, message: str = "missing route id") -> None:
        super().__init__(message)


class RouteParseError(EtcdRoutesError, ValueError):
    """Route text rejected by the codec.

    ``position`` is the character offset into the parsed document where
    the problem was detected, or ``-1`` when unknown.
    """

    def __init__(self, message: str, *, position: int = -1) -> None:
        self.position = position
        super().__init__(message)


class InvalidRouteIdError(EtcdRoutesError, ValueError):
    """Route id that cannot be stored below the routes root or read back."""
