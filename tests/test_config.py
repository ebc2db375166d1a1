from __future__ import annotations

import pytest

from etcdroutes.client import new
from etcdroutes.config import EtcdConfig
from etcdroutes.exceptions import EtcdRoutesConfigError


def test_defaults() -> None:
    config = EtcdConfig()

    assert config.endpoints == ("http://127.0.0.1:2379",)
    assert config.routes_root == "/skipper/routes"
    assert config.watch_timeout is None


def test_routes_root_appends_fixed_suffix() -> None:
    assert EtcdConfig(storage_root="/skipper-dev").routes_root == "/skipper-dev/routes"
    assert EtcdConfig(storage_root="/skipper-dev/").routes_root == "/skipper-dev/routes"
    assert EtcdConfig(storage_root="").routes_root == "/routes"


def test_endpoint_string_is_split_and_normalized() -> None:
    config = EtcdConfig(endpoints="http://a:2379/, http://b:2379")  # type: ignore[arg-type]

    assert config.endpoints == ("http://a:2379", "http://b:2379")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"endpoints": ()},
        {"storage_root": "relative"},
        {"request_timeout": -1.0},
        {"watch_timeout": -5.0},
    ],
)
def test_invalid_configuration(kwargs: dict[str, object]) -> None:
    with pytest.raises(EtcdRoutesConfigError):
        EtcdConfig(**kwargs)  # type: ignore[arg-type]


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETCDROUTES_ENDPOINTS", "http://a:2379,http://b:2379")
    monkeypatch.setenv("ETCDROUTES_STORAGE_ROOT", "/skipper-test")
    monkeypatch.setenv("ETCDROUTES_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("ETCDROUTES_WATCH_TIMEOUT", "none")

    config = EtcdConfig.from_env()

    assert config.endpoints == ("http://a:2379", "http://b:2379")
    assert config.routes_root == "/skipper-test/routes"
    assert config.request_timeout == 2.5
    assert config.watch_timeout is None


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETCDROUTES_STORAGE_ROOT", "/from-env")
    monkeypatch.setenv("ETCDROUTES_WATCH_TIMEOUT", "30")

    config = EtcdConfig.from_env(storage_root="/explicit", watch_timeout=60.0)

    assert config.storage_root == "/explicit"
    assert config.watch_timeout == 60.0


def test_from_env_rejects_bad_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETCDROUTES_REQUEST_TIMEOUT", "soon")

    with pytest.raises(EtcdRoutesConfigError):
        EtcdConfig.from_env()


def test_new_builds_client_for_storage_root() -> None:
    client = new(["http://a:2379"], "/skipper")

    assert client.routes_root == "/skipper/routes"
    assert client.config.endpoints == ("http://a:2379",)
    assert client.watermark == 0


def test_zero_timeout_disables_it() -> None:
    config = EtcdConfig(request_timeout=0, watch_timeout=0.0)

    assert config.request_timeout is None
    assert config.watch_timeout is None


def test_zero_timeout_from_env_disables_it(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETCDROUTES_REQUEST_TIMEOUT", "0")

    assert EtcdConfig.from_env().request_timeout is None
