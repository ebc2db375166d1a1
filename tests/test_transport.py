from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from etcdroutes._transport import HttpTransport, parse_response
from etcdroutes.config import EtcdConfig
from etcdroutes.exceptions import (
    EtcdApiError,
    EtcdIndexClearedError,
    EtcdKeyNotFoundError,
    EtcdTransportError,
)
from etcdroutes.models.node import EtcdAction, EtcdDirectory

_ROOT_BODY = {
    "action": "get",
    "node": {
        "key": "/skipper/routes",
        "dir": True,
        "modifiedIndex": 3,
        "createdIndex": 3,
        "nodes": [{"key": "/skipper/routes/a", "value": "x", "modifiedIndex": 5, "createdIndex": 5}],
    },
}


class _Unreachable(aiohttp.ClientConnectorError):
    def __init__(self) -> None:
        OSError.__init__(self, 111, "Connection refused")

    def __str__(self) -> str:
        return "connection refused"


class _FakeResponse:
    def __init__(self, status: int, body: Any, headers: dict[str, str] | None = None) -> None:
        self.status = status
        self.headers = headers or {}
        self._text = body if isinstance(body, str) else json.dumps(body)

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, replies: dict[str, _FakeResponse | BaseException]) -> None:
        self._replies = replies
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((method, url, kwargs))
        for member, reply in self._replies.items():
            if url.startswith(member):
                if isinstance(reply, BaseException):
                    raise reply
                return reply
        raise AssertionError(f"unexpected request to {url}")


def _transport(session: _FakeSession, *endpoints: str) -> HttpTransport:
    config = EtcdConfig(endpoints=endpoints or ("http://a:2379",))
    return HttpTransport(config, session)  # type: ignore[arg-type]


class TestParseResponse:
    def test_success_reads_global_index_header(self) -> None:
        response = parse_response(200, {"X-Etcd-Index": "42"}, json.dumps(_ROOT_BODY))

        assert response.action is EtcdAction.GET
        assert isinstance(response.node, EtcdDirectory)
        assert response.etcd_index == 42

    def test_missing_header_means_zero(self) -> None:
        assert parse_response(200, {}, json.dumps(_ROOT_BODY)).etcd_index == 0

    def test_key_not_found(self) -> None:
        body = {"errorCode": 100, "message": "Key not found", "cause": "/skipper/routes/zz", "index": 17}

        with pytest.raises(EtcdKeyNotFoundError) as exc_info:
            parse_response(404, {}, json.dumps(body))

        exc = exc_info.value
        assert exc.error_code == 100
        assert exc.status_code == 404
        assert exc.key == "/skipper/routes/zz"
        assert exc.index == 17

    def test_index_cleared(self) -> None:
        body = {"errorCode": 401, "message": "The event in requested index is outdated and cleared", "index": 2000}

        with pytest.raises(EtcdIndexClearedError):
            parse_response(400, {}, json.dumps(body))

    def test_other_error_codes_are_api_errors(self) -> None:
        body = {"errorCode": 102, "message": "Not a file", "cause": "/skipper/routes"}

        with pytest.raises(EtcdApiError) as exc_info:
            parse_response(403, {}, json.dumps(body))

        assert type(exc_info.value) is EtcdApiError
        assert exc_info.value.error_code == 102

    def test_invalid_json(self) -> None:
        with pytest.raises(EtcdTransportError) as exc_info:
            parse_response(200, {}, "")

        assert exc_info.value.status_code == 200

    def test_unexpected_status_without_error_body(self) -> None:
        with pytest.raises(EtcdTransportError) as exc_info:
            parse_response(500, {}, json.dumps({"oops": True}))

        assert exc_info.value.status_code == 500

    def test_malformed_node(self) -> None:
        with pytest.raises(EtcdTransportError):
            parse_response(200, {}, json.dumps({"action": "get", "node": {"modifiedIndex": "many"}}))


class TestHttpTransport:
    @pytest.mark.asyncio
    async def test_get_builds_keys_url_and_params(self) -> None:
        session = _FakeSession({"http://a:2379": _FakeResponse(200, _ROOT_BODY, {"X-Etcd-Index": "9"})})

        response = await _transport(session).get("/skipper/routes", recursive=True, quorum=True)

        method, url, kwargs = session.calls[0]
        assert method == "GET"
        assert url == "http://a:2379/v2/keys/skipper/routes"
        assert kwargs["params"] == {"recursive": "true", "sorted": "false", "quorum": "true"}
        assert response.etcd_index == 9

    @pytest.mark.asyncio
    async def test_watch_params(self) -> None:
        body = {"action": "set", "node": {"key": "/skipper/routes/a", "value": "x", "modifiedIndex": 8}}
        session = _FakeSession({"http://a:2379": _FakeResponse(200, body)})

        response = await _transport(session).watch("/skipper/routes", wait_index=8, recursive=True)

        _, _, kwargs = session.calls[0]
        assert kwargs["params"] == {"wait": "true", "waitIndex": "8", "recursive": "true"}
        assert response.action is EtcdAction.SET

    @pytest.mark.asyncio
    async def test_set_puts_form_value(self) -> None:
        body = {"action": "set", "node": {"key": "/skipper/routes/a", "value": "* -> <shunt>", "modifiedIndex": 8}}
        session = _FakeSession({"http://a:2379": _FakeResponse(201, body)})

        await _transport(session).set("/skipper/routes/a", "* -> <shunt>")

        method, url, kwargs = session.calls[0]
        assert method == "PUT"
        assert url == "http://a:2379/v2/keys/skipper/routes/a"
        assert kwargs["data"] == {"value": "* -> <shunt>"}

    @pytest.mark.asyncio
    async def test_delete_params(self) -> None:
        body = {"action": "delete", "node": {"key": "/skipper/routes/a", "modifiedIndex": 10}}
        session = _FakeSession({"http://a:2379": _FakeResponse(200, body)})

        await _transport(session).delete("/skipper/routes/a")

        method, _, kwargs = session.calls[0]
        assert method == "DELETE"
        assert kwargs["params"] == {"recursive": "false", "dir": "false"}

    @pytest.mark.asyncio
    async def test_unreachable_member_fails_over_and_is_remembered(self) -> None:
        session = _FakeSession(
            {
                "http://a:2379": _Unreachable(),
                "http://b:2379": _FakeResponse(200, _ROOT_BODY),
            }
        )
        transport = _transport(session, "http://a:2379", "http://b:2379")

        await transport.get("/skipper/routes")
        await transport.get("/skipper/routes")

        assert [url.split("/v2")[0] for _, url, _ in session.calls] == [
            "http://a:2379",
            "http://b:2379",
            "http://b:2379",
        ]

    @pytest.mark.asyncio
    async def test_all_members_unreachable(self) -> None:
        session = _FakeSession({"http://a:2379": _Unreachable(), "http://b:2379": _Unreachable()})

        with pytest.raises(EtcdTransportError, match="No etcd member reachable"):
            await _transport(session, "http://a:2379", "http://b:2379").get("/skipper/routes")

        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_error_reply_is_not_failed_over(self) -> None:
        body = {"errorCode": 100, "message": "Key not found", "cause": "/skipper/routes"}
        session = _FakeSession(
            {
                "http://a:2379": _FakeResponse(404, body),
                "http://b:2379": _FakeResponse(200, _ROOT_BODY),
            }
        )

        with pytest.raises(EtcdKeyNotFoundError):
            await _transport(session, "http://a:2379", "http://b:2379").get("/skipper/routes")

        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_dropped_connection_is_transport_error(self) -> None:
        session = _FakeSession(
            {
                "http://a:2379": aiohttp.ServerDisconnectedError(),
                "http://b:2379": _FakeResponse(200, _ROOT_BODY),
            }
        )

        with pytest.raises(EtcdTransportError):
            await _transport(session, "http://a:2379", "http://b:2379").watch("/skipper/routes", wait_index=1)

        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self) -> None:
        session = _FakeSession({"http://a:2379": TimeoutError()})

        with pytest.raises(EtcdTransportError, match="timed out"):
            await _transport(session).watch("/skipper/routes", wait_index=1)
