"""Tests for RoutingStore."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from offline_store.config import OfflineGlobals
from offline_store.exceptions import (
    DecorationError,
    RecordNotFoundError,
    StoreResolutionError,
)
from offline_store.protocol import ShapeClass
from offline_store.routing import router as router_module
from offline_store.routing.descriptors import CALL_DESCRIPTORS
from offline_store.routing.router import RoutingStore
from offline_store.store.base import Store
from offline_store.sync.decorators import (
    DecoratedAdapter,
    DecoratedSerializer,
    decorate_api_call,
)
from offline_store.sync.syncer import JournalSyncer

PASS_THROUGH = sorted(
    name
    for name, d in CALL_DESCRIPTORS.items()
    if d.override_index is not None and name not in ("adapter_for", "serializer_for")
)


class TestConstruction:
    """Tests for collaborator resolution."""

    def test_missing_offline_store(self, syncer, offline_globals) -> None:
        with pytest.raises(StoreResolutionError) as exc_info:
            RoutingStore(None, syncer, offline_globals)
        assert exc_info.value.collaborator == "offline store"

    def test_missing_syncer(self, offline_store, offline_globals) -> None:
        with pytest.raises(StoreResolutionError) as exc_info:
            RoutingStore(offline_store, None, offline_globals)
        assert exc_info.value.collaborator == "syncer"

    def test_missing_connectivity_provider(self, offline_store, syncer) -> None:
        with pytest.raises(StoreResolutionError):
            RoutingStore(offline_store, syncer, None)

    def test_default_online_store_created(self, offline_store, syncer, offline_globals) -> None:
        router = RoutingStore(offline_store, syncer, offline_globals)

        assert isinstance(router.online_store, Store)
        assert router.online_store.name == "online"

    def test_online_store_factory_used(self, offline_store, syncer, offline_globals) -> None:
        custom = Store(name="custom")
        router = RoutingStore(
            offline_store, syncer, offline_globals, online_store_factory=lambda: custom
        )
        assert router.online_store is custom

    def test_failing_factory_is_fatal(self, offline_store, syncer, offline_globals) -> None:
        def broken() -> Store:
            raise RuntimeError("no network stack")

        with pytest.raises(StoreResolutionError) as exc_info:
            RoutingStore(offline_store, syncer, offline_globals, online_store_factory=broken)
        assert "no network stack" in str(exc_info.value)

    def test_factory_returning_none_is_fatal(self, offline_store, syncer, offline_globals) -> None:
        with pytest.raises(StoreResolutionError):
            RoutingStore(offline_store, syncer, offline_globals, online_store_factory=lambda: None)

    def test_collaborators_exposed(self, router, online_store, offline_store, syncer) -> None:
        assert router.online_store is online_store
        assert router.offline_store is offline_store
        assert router.syncer is syncer

    def test_create_builds_ready_router(self, real_online_store) -> None:
        router = RoutingStore.create(online_store=real_online_store, offline_globals=OfflineGlobals())

        assert router.online_store is real_online_store
        assert isinstance(router.offline_store, Store)
        assert isinstance(router.syncer, JournalSyncer)
        assert router.syncer.offline_store is router.offline_store


class TestFindRecord:
    """Tests for find_record routing."""

    @pytest.mark.asyncio
    async def test_online_without_override_is_decorated_single(
        self, router, online_store, offline_store, syncer, record
    ) -> None:
        online_store.find_record.return_value = record

        with patch.object(router_module, "decorate_api_call", wraps=decorate_api_call) as spy:
            result = await router.find_record("post", "1")

        assert result is record
        online_store.find_record.assert_awaited_once_with("post", "1")
        offline_store.find_record.assert_not_called()
        assert spy.call_args.args[0] is ShapeClass.SINGLE
        syncer.sync_down.assert_awaited_once_with(record, ShapeClass.SINGLE)

    @pytest.mark.asyncio
    async def test_override_false_routes_offline_with_options_intact(
        self, router, online_store, offline_store, syncer
    ) -> None:
        options = {"useOnlineStore": False}
        await router.find_record("post", "1", options)

        offline_store.find_record.assert_awaited_once_with("post", "1", {"useOnlineStore": False})
        online_store.find_record.assert_not_called()
        syncer.sync_down.assert_not_called()

    @pytest.mark.asyncio
    async def test_override_true_routes_online_while_offline(
        self, router, online_store, offline_store, offline_globals
    ) -> None:
        offline_globals.set_online_status(False)
        await router.find_record("post", "1", {"useOnlineStore": True})

        online_store.find_record.assert_awaited_once()
        offline_store.find_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_offline_without_override_routes_offline(
        self, router, online_store, offline_store, offline_globals
    ) -> None:
        offline_globals.set_online_status(False)
        await router.find_record("post", "1")

        offline_store.find_record.assert_awaited_once_with("post", "1")
        online_store.find_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_decision_not_cached(
        self, router, online_store, offline_store, offline_globals
    ) -> None:
        await router.find_record("post", "1")
        offline_globals.set_online_status(False)
        await router.find_record("post", "1")

        online_store.find_record.assert_awaited_once()
        offline_store.find_record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bypass_merged_when_offline_disabled(
        self, online_store, offline_store, syncer
    ) -> None:
        globals_ = OfflineGlobals(offline_enabled=False, online=True)
        router = RoutingStore(offline_store, syncer, globals_, online_store=online_store)

        options = {"reload": True}
        await router.find_record("post", "1", options)

        online_store.find_record.assert_awaited_once_with(
            "post", "1", {"bypass": True, "reload": True}
        )
        assert options == {"reload": True}
        syncer.sync_down.assert_not_called()

    @pytest.mark.asyncio
    async def test_bypass_appended_when_options_omitted(
        self, online_store, offline_store, syncer
    ) -> None:
        globals_ = OfflineGlobals(offline_enabled=False, online=True)
        router = RoutingStore(offline_store, syncer, globals_, online_store=online_store)

        await router.find_all("post")

        online_store.find_all.assert_awaited_once_with("post", {"bypass": True})

    @pytest.mark.asyncio
    async def test_no_bypass_when_offline_enabled(self, router, online_store) -> None:
        await router.find_all("post", {"reload": True})
        online_store.find_all.assert_awaited_once_with("post", {"reload": True})

    @pytest.mark.asyncio
    async def test_find_all_decorated_multiple(self, router, online_store, syncer, record) -> None:
        online_store.find_all.return_value = [record]
        await router.find_all("post")
        syncer.sync_down.assert_awaited_once_with([record], ShapeClass.MULTIPLE)

    @pytest.mark.asyncio
    async def test_errors_propagate_without_fallback(
        self, router, online_store, offline_store
    ) -> None:
        online_store.find_record.side_effect = RecordNotFoundError("post", "9")

        with pytest.raises(RecordNotFoundError):
            await router.find_record("post", "9")
        offline_store.find_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_online_operation_is_decoration_error(
        self, offline_store, syncer, offline_globals
    ) -> None:
        router = RoutingStore(offline_store, syncer, offline_globals, online_store=object())

        with pytest.raises(DecorationError):
            router.find_record("post", "1")

    def test_router_does_not_await(self, router, online_store) -> None:
        """The router returns an awaitable without running it."""
        pending = router.find_record("post", "1")

        online_store.find_record.assert_not_awaited()
        pending.close()


class TestQuery:
    """Tests for query-shaped operations that forward real query parameters."""

    @pytest.mark.asyncio
    async def test_override_stripped_on_online_path(self, router, online_store) -> None:
        query = {"useOnlineStore": True, "author": "ada"}
        await router.query("post", query)

        online_store.query.assert_awaited_once_with("post", {"author": "ada"})
        assert query == {"useOnlineStore": True, "author": "ada"}

    @pytest.mark.asyncio
    async def test_override_stripped_on_offline_path(self, router, offline_store) -> None:
        await router.query_record("post", {"useOnlineStore": False, "author": "ada"})
        offline_store.query_record.assert_awaited_once_with("post", {"author": "ada"})

    @pytest.mark.asyncio
    async def test_query_decorated_multiple(self, router, online_store, syncer) -> None:
        online_store.query.return_value = []
        await router.query("post", {"author": "ada"})
        syncer.sync_down.assert_awaited_once_with([], ShapeClass.MULTIPLE)

    @pytest.mark.asyncio
    async def test_query_param_named_bypass_still_synced(
        self, router, online_store, syncer
    ) -> None:
        online_store.query.return_value = []

        await router.query("post", {"bypass": True})

        online_store.query.assert_awaited_once_with("post", {"bypass": True})
        syncer.sync_down.assert_awaited_once_with([], ShapeClass.MULTIPLE)

    @pytest.mark.parametrize("value", ["false", "true", 1, 0])
    @pytest.mark.asyncio
    async def test_non_boolean_option_override_routes_offline(
        self, router, online_store, offline_store, value
    ) -> None:
        await router.query("post", {"useOnlineStore": value, "author": "ada"})

        offline_store.query.assert_awaited_once_with("post", {"author": "ada"})
        online_store.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_bypass_in_query_params(self, online_store, offline_store, syncer) -> None:
        globals_ = OfflineGlobals(offline_enabled=False, online=True)
        router = RoutingStore(offline_store, syncer, globals_, online_store=online_store)

        await router.query("post", {"author": "ada"})
        online_store.query.assert_awaited_once_with("post", {"author": "ada"})

    @pytest.mark.asyncio
    async def test_reload_record_uses_global_state_only(
        self, router, online_store, offline_store, offline_globals, record
    ) -> None:
        await router.reload_record(record)
        online_store.reload_record.assert_awaited_once_with(record)

        offline_globals.set_online_status(False)
        await router.reload_record(record)
        offline_store.reload_record.assert_awaited_once_with(record)


class TestPassThrough:
    """Tests for operations forwarded verbatim."""

    @pytest.mark.parametrize("name", PASS_THROUGH)
    @pytest.mark.parametrize("override", [True, False])
    @pytest.mark.asyncio
    async def test_explicit_override_forwarded_verbatim(
        self, router, online_store, offline_store, offline_globals, name, override
    ) -> None:
        # Override wins regardless of global state
        offline_globals.set_online_status(not override)
        position = CALL_DESCRIPTORS[name].override_index
        args = (*[f"arg{i}" for i in range(position)], override)

        await getattr(router, name)(*args)

        chosen, other = (online_store, offline_store) if override else (offline_store, online_store)
        getattr(chosen, name).assert_awaited_once_with(*args)
        getattr(other, name).assert_not_called()

    @pytest.mark.parametrize("name", PASS_THROUGH)
    @pytest.mark.parametrize("online", [True, False])
    @pytest.mark.asyncio
    async def test_absent_override_follows_global_state(
        self, router, online_store, offline_store, offline_globals, name, online
    ) -> None:
        offline_globals.set_online_status(online)
        position = CALL_DESCRIPTORS[name].override_index
        args = tuple(f"arg{i}" for i in range(position))

        await getattr(router, name)(*args)

        chosen = online_store if online else offline_store
        getattr(chosen, name).assert_awaited_once_with(*args)

    @pytest.mark.asyncio
    async def test_delete_record_forced_offline(
        self, router, online_store, offline_store, record
    ) -> None:
        await router.delete_record(record, False)

        offline_store.delete_record.assert_awaited_once_with(record, False)
        online_store.delete_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_pass_through_is_not_decorated(self, router, online_store, syncer) -> None:
        with patch.object(router_module, "decorate_api_call") as spy:
            await router.push({"data": None})

        spy.assert_not_called()
        online_store.push.assert_awaited_once_with({"data": None})
        syncer.sync_down.assert_not_called()


class TestAdapterSerializerLookup:
    """Tests for adapter_for / serializer_for."""

    @pytest.mark.parametrize("override", [True, False, None])
    @pytest.mark.parametrize("online", [True, False])
    def test_offline_disabled_always_returns_online_adapter(
        self, online_store, offline_store, syncer, override, online
    ) -> None:
        globals_ = OfflineGlobals(offline_enabled=False, online=online)
        router = RoutingStore(offline_store, syncer, globals_, online_store=online_store)

        adapter = router.adapter_for("post", override)

        assert adapter is online_store.adapter_for.return_value
        online_store.adapter_for.assert_called_once_with("post")
        offline_store.adapter_for.assert_not_called()

    def test_online_returns_decorated_online_adapter(self, router, online_store) -> None:
        adapter = router.adapter_for("post")

        assert isinstance(adapter, DecoratedAdapter)
        assert adapter.wrapped is online_store.adapter_for.return_value

    def test_decorated_handle_is_fresh_per_call(self, router) -> None:
        assert router.adapter_for("post") is not router.adapter_for("post")

    def test_override_true_while_offline(self, router, offline_globals) -> None:
        offline_globals.set_online_status(False)
        assert isinstance(router.adapter_for("post", True), DecoratedAdapter)

    def test_override_false_returns_offline_adapter(
        self, router, online_store, offline_store
    ) -> None:
        adapter = router.adapter_for("post", False)

        assert adapter is offline_store.adapter_for.return_value
        # The online adapter is still resolved first
        online_store.adapter_for.assert_called_once_with("post")

    def test_offline_returns_offline_adapter(self, router, offline_store, offline_globals) -> None:
        offline_globals.set_online_status(False)
        assert router.adapter_for("post") is offline_store.adapter_for.return_value

    def test_override_not_forwarded(self, router, offline_store) -> None:
        router.serializer_for("post", False)
        offline_store.serializer_for.assert_called_once_with("post")

    def test_serializer_decorated_online(self, router, online_store) -> None:
        serializer = router.serializer_for("post")

        assert isinstance(serializer, DecoratedSerializer)
        assert serializer.wrapped is online_store.serializer_for.return_value

    def test_serializer_offline_disabled(self, online_store, offline_store, syncer) -> None:
        globals_ = OfflineGlobals(offline_enabled=False, online=False)
        router = RoutingStore(offline_store, syncer, globals_, online_store=online_store)

        assert router.serializer_for("post", False) is online_store.serializer_for.return_value

    def test_lookup_errors_propagate(self, router, online_store) -> None:
        online_store.adapter_for.side_effect = LookupError("no adapter")

        with pytest.raises(LookupError):
            router.adapter_for("post")


class TestWithStubStores:
    """Routing against hand-written stores instead of mocks."""

    @pytest.mark.asyncio
    async def test_trailing_override_reaches_real_store(self, syncer, offline_globals) -> None:
        online = MagicMock()
        online.peek_all = AsyncMock(return_value=["remote"])
        offline = MagicMock()
        offline.peek_all = AsyncMock(return_value=["local"])
        router = RoutingStore(offline, syncer, offline_globals, online_store=online)

        assert await router.peek_all("post") == ["remote"]
        assert await router.peek_all("post", False) == ["local"]
        offline.peek_all.assert_awaited_once_with("post", False)


class TestRoutingLog:
    """Routing decisions are logged with their operation, target and override."""

    @pytest.mark.asyncio
    async def test_routed_call_logged_as_json(self, router, json_log) -> None:
        await router.find_record("post", "1", {"useOnlineStore": False})

        (entry,) = [json.loads(line) for line in json_log.getvalue().splitlines()]
        assert entry["level"] == "DEBUG"
        assert entry["logger"] == "offline_store.routing.router"
        assert entry["store"] == "router"
        assert entry["operation"] == "find_record"
        assert entry["target"] == "offline"
        assert entry["override"] is False

    def test_lookup_logged_as_json(self, router, json_log) -> None:
        router.adapter_for("post")

        (entry,) = [json.loads(line) for line in json_log.getvalue().splitlines()]
        assert entry["operation"] == "adapter_for"
        assert entry["target"] == "online"
        assert entry["override"] is None
