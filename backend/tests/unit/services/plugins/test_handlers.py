"""
Unit tests for the plugin resource handlers.

Tests load, delete and filter against an in-memory store, selection
parsing, and the uniform "not supported" error.
"""

import pytest

from plugin_server.services.plugins.exceptions import (
    PluginOperationNotSupportedError,
    PluginValidationError,
)
from plugin_server.services.plugins.handlers import (
    PluginDeleteHandler,
    PluginFilterHandler,
    PluginHandlerContext,
    PluginListHandler,
    PluginLoadHandler,
    PluginResourceHandler,
    PluginUploadHandler,
    Selection,
)
from plugin_server.services.plugins.handlers.base import DEFAULT_COUNT, MAX_COUNT, check_paging


@pytest.fixture
def seeded(store, make_plugin):
    for name in ["alpha", "beta", "Gamma", "delta", "epsilon"]:
        store.save(make_plugin(name))
    return store


@pytest.mark.unit
class TestSelection:
    """Test {selection} parsing."""

    def test_all(self) -> None:
        assert Selection.parse("*") == Selection(kind="all")

    def test_range(self) -> None:
        assert Selection.parse("alpha..delta") == Selection(kind="range", lower="alpha", upper="delta")

    def test_one(self) -> None:
        assert Selection.parse("demo-plugin") == Selection(kind="one", name="demo-plugin")

    def test_invalid_name(self) -> None:
        with pytest.raises(PluginValidationError, match="Invalid plugin name"):
            Selection.parse("9lives")

    def test_open_range(self) -> None:
        with pytest.raises(PluginValidationError, match="Missing plugin range upper bound"):
            Selection.parse("alpha..")


@pytest.mark.unit
class TestPaging:
    """Test offset/count defaults and limits."""

    def test_defaults(self) -> None:
        assert check_paging(None, None) == (0, DEFAULT_COUNT)

    def test_count_capped(self) -> None:
        assert check_paging(5, 1000) == (5, MAX_COUNT)

    @pytest.mark.parametrize("offset, count", [(-1, 1), (0, -1)])
    def test_negative_rejected(self, offset: int, count: int) -> None:
        with pytest.raises(PluginValidationError):
            check_paging(offset, count)


@pytest.mark.unit
class TestPluginHandlerContext:
    """Test the handler context."""

    def test_user_or_fail(self, context) -> None:
        assert context.user_or_fail() == "alice"

    def test_missing_user(self, store, fixed_now) -> None:
        context = PluginHandlerContext(store=store, clock=lambda: fixed_now)
        with pytest.raises(PluginValidationError, match="Missing user"):
            context.user_or_fail()

    def test_now_uses_clock(self, context, fixed_now) -> None:
        assert context.now() == fixed_now


@pytest.mark.unit
class TestNotSupported:
    """Test operations a handler does not declare."""

    @pytest.mark.parametrize(
        "handler, call",
        [
            (PluginListHandler(), lambda h, c: h.handle_all(c)),
            (PluginListHandler(), lambda h, c: h.handle_range("a", "b", c)),
            (PluginUploadHandler(), lambda h, c: h.handle_one("demo", c)),
            (PluginLoadHandler(), lambda h, c: h.handle_many(["a", "b"], c)),
            (PluginDeleteHandler(), lambda h, c: h.handle_none(c)),
            (PluginFilterHandler(), lambda h, c: h.handle_one("demo", c)),
        ],
    )
    def test_raises(self, handler, call, context) -> None:
        with pytest.raises(PluginOperationNotSupportedError):
            call(handler, context)

    def test_message(self, context) -> None:
        with pytest.raises(PluginOperationNotSupportedError) as exc_info:
            PluginListHandler().handle_all(context)
        assert exc_info.value.message == "PluginListHandler: all not supported"
        assert exc_info.value.details == {"handler": "PluginListHandler", "operation": "all"}

    def test_base_supports_nothing(self, context) -> None:
        with pytest.raises(PluginOperationNotSupportedError):
            PluginResourceHandler().dispatch(Selection.parse("*"), context)


@pytest.mark.unit
class TestLoadHandler:
    """Test PluginLoadHandler."""

    def test_one(self, seeded, context) -> None:
        assert PluginLoadHandler().handle_one("beta", context).name == "beta"

    def test_one_missing(self, seeded, context) -> None:
        assert PluginLoadHandler().handle_one("zeta", context) is None

    def test_all_sorted_by_name(self, seeded, context) -> None:
        names = [p.name for p in PluginLoadHandler().handle_all(context)]
        assert names == ["Gamma", "alpha", "beta", "delta", "epsilon"]

    def test_all_paged(self, seeded, context) -> None:
        names = [p.name for p in PluginLoadHandler().handle_all(context, offset=1, count=2)]
        assert names == ["alpha", "beta"]

    def test_all_default_page_size(self, store, make_plugin, context) -> None:
        for i in range(DEFAULT_COUNT + 5):
            store.save(make_plugin(f"p{i:02d}"))
        assert len(PluginLoadHandler().handle_all(context)) == DEFAULT_COUNT
        assert len(PluginLoadHandler().handle_all(context, count=100)) == DEFAULT_COUNT + 5

    def test_all_max_page_size(self, store, make_plugin, context) -> None:
        for i in range(MAX_COUNT + 5):
            store.save(make_plugin(f"p{i:02d}"))
        assert len(PluginLoadHandler().handle_all(context, count=100)) == MAX_COUNT

    def test_range_inclusive(self, seeded, context) -> None:
        names = [p.name for p in PluginLoadHandler().handle_range("alpha", "delta", context)]
        assert names == ["alpha", "beta", "delta"]

    def test_dispatch(self, seeded, context) -> None:
        handler = PluginLoadHandler()
        assert handler.dispatch(Selection.parse("beta"), context).name == "beta"
        assert len(handler.dispatch(Selection.parse("*"), context)) == 5
        assert len(handler.dispatch(Selection.parse("beta..delta"), context)) == 2


@pytest.mark.unit
class TestDeleteHandler:
    """Test PluginDeleteHandler."""

    def test_one(self, seeded, context) -> None:
        PluginDeleteHandler().handle_one("beta", context)
        assert seeded.load("beta") is None
        assert len(seeded) == 4

    def test_one_missing_ignored(self, seeded, context) -> None:
        PluginDeleteHandler().handle_one("zeta", context)
        assert len(seeded) == 5

    def test_range(self, seeded, context) -> None:
        PluginDeleteHandler().handle_range("alpha", "beta", context)
        assert [p.name for p in seeded.all()] == ["Gamma", "delta", "epsilon"]

    def test_all(self, seeded, context) -> None:
        PluginDeleteHandler().handle_all(context)
        assert len(seeded) == 0


@pytest.mark.unit
class TestFilterHandler:
    """Test PluginFilterHandler."""

    def test_substring_ignores_case(self, seeded, context) -> None:
        names = [p.name for p in PluginFilterHandler().handle_all(context, query="GA")]
        assert names == ["Gamma"]

    def test_matches_several(self, seeded, context) -> None:
        names = [p.name for p in PluginFilterHandler().handle_all(context, query="l")]
        assert names == ["alpha", "delta", "epsilon"]

    @pytest.mark.parametrize("query", [None, "", "*", "  "])
    def test_match_all(self, seeded, context, query) -> None:
        assert len(PluginFilterHandler().handle_all(context, query=query)) == 5

    def test_paged(self, seeded, context) -> None:
        names = [p.name for p in PluginFilterHandler().handle_all(context, query="*", offset=3, count=5)]
        assert names == ["delta", "epsilon"]

    def test_no_match(self, seeded, context) -> None:
        assert PluginFilterHandler().handle_all(context, query="zzz") == []
