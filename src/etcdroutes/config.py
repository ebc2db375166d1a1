"""Client configuration for etcdroutes."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from etcdroutes._constants import DEFAULT_ENDPOINT, DEFAULT_STORAGE_ROOT, ROUTES_PATH
from etcdroutes.exceptions import EtcdRoutesConfigError


def _env_float(value: str | None) -> float | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"", "none", "off", "0"}:
        return None
    try:
        return float(normalized)
    except ValueError as exc:
        raise EtcdRoutesConfigError(f"invalid timeout value: {value!r}") from exc


def _split_endpoints(value: str) -> tuple[str, ...]:
    return tuple(part.strip().rstrip("/") for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class EtcdConfig:
    """Client configuration.

    Parameters
    ----------
    endpoints : tuple of str
        Base URLs of the etcd cluster members, e.g.
        ``("http://10.0.0.1:2379", "http://10.0.0.2:2379")``. Members are
        tried in order; the next one is used only when a member cannot
        be reached at all.
    storage_root : str
        etcd directory under which the route definitions are stored.
        The routes live at ``<storage_root>/routes/<id>``, so for
        ``/skipper-dev`` the keys are ``/v2/keys/skipper-dev/routes/...``.
    request_timeout : float or None
        Total timeout in seconds for reads and writes. ``None`` or ``0``
        disables it.
    watch_timeout : float or None
        Total timeout in seconds for a single long-poll watch. ``None``
        (or ``0``) waits until etcd reports a change or the connection
        drops.
    """

    endpoints: tuple[str, ...] = (DEFAULT_ENDPOINT,)
    storage_root: str = DEFAULT_STORAGE_ROOT
    request_timeout: float | None = 10.0
    watch_timeout: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.endpoints, str):
            object.__setattr__(self, "endpoints", _split_endpoints(self.endpoints))
        else:
            object.__setattr__(self, "endpoints", tuple(e.rstrip("/") for e in self.endpoints))
        if not self.endpoints:
            raise EtcdRoutesConfigError("at least one etcd endpoint is required")
        if self.storage_root and not self.storage_root.startswith("/"):
            raise EtcdRoutesConfigError(f"storage root must be an absolute path, got {self.storage_root!r}")
        for name in ("request_timeout", "watch_timeout"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise EtcdRoutesConfigError(f"{name} must not be negative, got {value}")
            if value == 0:
                object.__setattr__(self, name, None)

    @property
    def routes_root(self) -> str:
        """Directory holding one key per route."""
        return self.storage_root.rstrip("/") + ROUTES_PATH

    @classmethod
    def from_env(cls, **overrides: Any) -> EtcdConfig:
        """Create configuration from environment variables.

        Reads ``ETCDROUTES_ENDPOINTS`` (comma separated),
        ``ETCDROUTES_STORAGE_ROOT``, ``ETCDROUTES_REQUEST_TIMEOUT`` and
        ``ETCDROUTES_WATCH_TIMEOUT``. Explicit keyword arguments override
        environment values.

        A timeout of ``0``, ``none`` or ``off`` (or an empty value) turns
        that timeout off.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        endpoints = env.get("ETCDROUTES_ENDPOINTS")
        if endpoints is not None:
            config_kwargs["endpoints"] = _split_endpoints(endpoints)

        storage_root = env.get("ETCDROUTES_STORAGE_ROOT")
        if storage_root is not None:
            config_kwargs["storage_root"] = storage_root

        # timeouts are numeric, handle separately
        if "ETCDROUTES_REQUEST_TIMEOUT" in env and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float(env["ETCDROUTES_REQUEST_TIMEOUT"])
        if "ETCDROUTES_WATCH_TIMEOUT" in env and "watch_timeout" not in overrides:
            config_kwargs["watch_timeout"] = _env_float(env["ETCDROUTES_WATCH_TIMEOUT"])

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
