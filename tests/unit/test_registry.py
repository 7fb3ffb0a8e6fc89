"""Tests for the cluster registry."""

from __future__ import annotations

import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from kubemcp.errors import ClusterNotFoundError, NoCurrentClusterError
from kubemcp.k8s.registry import ClusterRegistry


def _client() -> MagicMock:
    client = MagicMock()
    client.close = AsyncMock()
    return client


class TestRegistration:
    def test_empty_registry_has_no_current(self) -> None:
        reg = ClusterRegistry()
        assert reg.current_name() == ""
        with pytest.raises(NoCurrentClusterError, match="no current cluster set"):
            reg.current()

    def test_first_registration_becomes_current(self) -> None:
        reg = ClusterRegistry()
        a, b = _client(), _client()
        reg.register("a", a)
        reg.register("b", b)
        assert reg.current_name() == "a"
        assert reg.current() is a

    def test_names_in_registration_order(self) -> None:
        reg = ClusterRegistry()
        for name in ("prod", "dev", "stage"):
            reg.register(name, _client())
        assert reg.names() == ["prod", "dev", "stage"]
        assert len(reg) == 3

    def test_reregister_replaces_client_keeps_current(self) -> None:
        reg = ClusterRegistry()
        old, new = _client(), _client()
        reg.register("a", old)
        reg.register("b", _client())
        reg.register("a", new)
        assert reg.get("a") is new
        assert reg.current_name() == "a"
        assert reg.names() == ["a", "b"]

    def test_get_unknown(self) -> None:
        reg = ClusterRegistry()
        with pytest.raises(ClusterNotFoundError, match="cluster missing not found"):
            reg.get("missing")


class TestSwitch:
    def test_switch_to_unknown_leaves_current(self) -> None:
        reg = ClusterRegistry()
        reg.register("a", _client())
        with pytest.raises(ClusterNotFoundError):
            reg.switch("nonexistent")
        assert reg.current_name() == "a"

    def test_switch_updates_current_and_is_idempotent(self) -> None:
        reg = ClusterRegistry()
        a, b = _client(), _client()
        reg.register("a", a)
        reg.register("b", b)
        reg.switch("b")
        assert reg.current() is b
        reg.switch("b")
        assert reg.current_name() == "b"

    def test_switch_on_empty_registry(self) -> None:
        reg = ClusterRegistry()
        with pytest.raises(ClusterNotFoundError):
            reg.switch("a")
        assert reg.current_name() == ""


class TestResolve:
    def test_explicit_name_wins(self) -> None:
        reg = ClusterRegistry()
        a, b = _client(), _client()
        reg.register("a", a)
        reg.register("b", b)
        assert reg.resolve("b") is b

    @pytest.mark.parametrize("name", [None, ""])
    def test_falls_back_to_current(self, name: str | None) -> None:
        reg = ClusterRegistry()
        a = _client()
        reg.register("a", a)
        assert reg.resolve(name) is a

    def test_explicit_unknown_raises(self) -> None:
        reg = ClusterRegistry()
        reg.register("a", _client())
        with pytest.raises(ClusterNotFoundError):
            reg.resolve("zzz")


class TestConcurrency:
    def test_concurrent_switch_and_read_keep_invariant(self) -> None:
        reg = ClusterRegistry()
        names = [f"c{i}" for i in range(8)]
        for name in names:
            reg.register(name, _client())
        errors: list[Exception] = []

        def switcher() -> None:
            for i in range(500):
                reg.switch(names[i % len(names)])

        def reader() -> None:
            for _ in range(500):
                try:
                    assert reg.current_name() in names
                    reg.current()
                except Exception as exc:  # pragma: no cover - failure path
                    errors.append(exc)

        threads = [threading.Thread(target=switcher) for _ in range(3)]
        threads += [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []


class TestClose:
    async def test_close_releases_every_client(self) -> None:
        reg = ClusterRegistry()
        a, b = _client(), _client()
        reg.register("a", a)
        reg.register("b", b)
        await reg.close()
        a.close.assert_awaited_once()
        b.close.assert_awaited_once()

    async def test_close_continues_after_failure(self) -> None:
        reg = ClusterRegistry()
        a, b = _client(), _client()
        a.close.side_effect = RuntimeError("boom")
        reg.register("a", a)
        reg.register("b", b)
        await reg.close()
        b.close.assert_awaited_once()

    async def test_close_releases_replaced_clients(self) -> None:
        reg = ClusterRegistry()
        first, second = _client(), _client()
        reg.register("prod", first)
        reg.register("prod", second)
        await reg.close()
        first.close.assert_awaited_once()
        second.close.assert_awaited_once()

    async def test_reregistering_same_client_closes_it_once(self) -> None:
        reg = ClusterRegistry()
        a = _client()
        reg.register("a", a)
        reg.register("a", a)
        await reg.close()
        a.close.assert_awaited_once()
