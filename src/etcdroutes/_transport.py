"""HTTP transport for the etcd v2 keys API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from etcdroutes._constants import (
    ETCD_EVENT_INDEX_CLEARED,
    ETCD_INDEX_HEADER,
    ETCD_KEY_NOT_FOUND,
    KEYS_PREFIX,
)
from etcdroutes.config import EtcdConfig
from etcdroutes.exceptions import (
    EtcdApiError,
    EtcdIndexClearedError,
    EtcdKeyNotFoundError,
    EtcdTransportError,
)
from etcdroutes.models.node import EtcdResponse

_logger = logging.getLogger(__name__)

_ERROR_CLASSES: dict[int, type[EtcdApiError]] = {
    ETCD_KEY_NOT_FOUND: EtcdKeyNotFoundError,
    ETCD_EVENT_INDEX_CLEARED: EtcdIndexClearedError,
}


class EtcdTransport(Protocol):
    """Structural store interface used by the client.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get(self, key: str, *, recursive: bool = False, sort: bool = False, quorum: bool = False) -> EtcdResponse:
        ...

    async def watch(self, key: str, *, wait_index: int, recursive: bool = False) -> EtcdResponse:
        ...

    async def set(self, key: str, value: str) -> EtcdResponse:
        ...

    async def delete(self, key: str, *, recursive: bool = False, directory: bool = False) -> EtcdResponse:
        ...


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _header_index(headers: Mapping[str, str]) -> int:
    raw = headers.get(ETCD_INDEX_HEADER)
    if raw is None:
        return 0
    try:
        return int(raw)
    except ValueError:
        _logger.debug("Ignoring malformed %s header: %r", ETCD_INDEX_HEADER, raw)
        return 0


def _raise_for_error_body(body: Mapping[str, Any], status: int) -> None:
    code = int(body.get("errorCode", 0) or 0)
    cause = str(body.get("cause", ""))
    message = str(body.get("message", ""))
    error_cls = _ERROR_CLASSES.get(code, EtcdApiError)
    raise error_cls(
        f"etcd error {code}: {message} ({cause})" if cause else f"etcd error {code}: {message}",
        error_code=code,
        status_code=status,
        key=cause,
        index=int(body.get("index", 0) or 0),
    )


def parse_response(status: int, headers: Mapping[str, str], text: str, *, endpoint: str = "") -> EtcdResponse:
    """Turn a raw etcd HTTP reply into an :class:`EtcdResponse` or raise."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EtcdTransportError(
            f"Invalid JSON from {endpoint} (HTTP {status}): {text[:200]}",
            status_code=status,
            endpoint=endpoint,
        ) from exc

    if not isinstance(body, dict):
        raise EtcdTransportError(
            f"Unexpected payload from {endpoint} (HTTP {status}): {text[:200]}",
            status_code=status,
            endpoint=endpoint,
        )

    if "errorCode" in body:
        _raise_for_error_body(body, status)

    if status not in (200, 201):
        raise EtcdTransportError(
            f"HTTP {status} from {endpoint}: {text[:200]}",
            status_code=status,
            endpoint=endpoint,
        )

    try:
        return EtcdResponse.model_validate({**body, "etcd_index": _header_index(headers)})
    except ValidationError as exc:
        raise EtcdTransportError(
            f"Malformed etcd response from {endpoint}: {exc.error_count()} validation error(s)",
            status_code=status,
            endpoint=endpoint,
        ) from exc


class HttpTransport:
    """etcd v2 client over a shared :class:`aiohttp.ClientSession`.

    Requests go to the member that answered last. Only when a member
    cannot be connected to is the next configured one tried; any reply,
    including an error reply, is final.
    """

    def __init__(self, config: EtcdConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._active = 0
        self._request_timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._watch_timeout = aiohttp.ClientTimeout(total=config.watch_timeout)

    async def get(self, key: str, *, recursive: bool = False, sort: bool = False, quorum: bool = False) -> EtcdResponse:
        params = {"recursive": _flag(recursive), "sorted": _flag(sort), "quorum": _flag(quorum)}
        return await self._request("GET", key, params=params, timeout=self._request_timeout)

    async def watch(self, key: str, *, wait_index: int, recursive: bool = False) -> EtcdResponse:
        params = {"wait": "true", "waitIndex": str(wait_index), "recursive": _flag(recursive)}
        return await self._request("GET", key, params=params, timeout=self._watch_timeout)

    async def set(self, key: str, value: str) -> EtcdResponse:
        return await self._request("PUT", key, data={"value": value}, timeout=self._request_timeout)

    async def delete(self, key: str, *, recursive: bool = False, directory: bool = False) -> EtcdResponse:
        params = {"recursive": _flag(recursive), "dir": _flag(directory)}
        return await self._request("DELETE", key, params=params, timeout=self._request_timeout)

    def _members(self) -> list[str]:
        endpoints = list(self._config.endpoints)
        return endpoints[self._active :] + endpoints[: self._active]

    async def _request(
        self,
        method: str,
        key: str,
        *,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        timeout: aiohttp.ClientTimeout,
    ) -> EtcdResponse:
        path = KEYS_PREFIX + quote(key)
        last_exc: aiohttp.ClientConnectorError | None = None

        for member in self._members():
            url = f"{member}{path}"
            _logger.debug("%s %s params=%s", method, url, params)
            try:
                async with self._http.request(method, url, params=params, data=data, timeout=timeout) as resp:
                    text = await resp.text()
                    status = resp.status
                    headers = resp.headers
            except aiohttp.ClientConnectorError as exc:
                _logger.debug("etcd member %s unreachable: %s", member, exc)
                last_exc = exc
                continue
            except aiohttp.ClientError as exc:
                raise EtcdTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc
            except TimeoutError as exc:
                raise EtcdTransportError(f"Request to {url} timed out", endpoint=url) from exc

            self._active = self._config.endpoints.index(member)
            return parse_response(status, headers, text, endpoint=url)

        raise EtcdTransportError(
            f"No etcd member reachable for {method} {key}: {last_exc}",
            endpoint=path,
        ) from last_exc
