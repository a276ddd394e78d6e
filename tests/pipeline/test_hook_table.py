"""Tests for the hook table and handler result types."""

import pytest

from deployctl.errors import PluginError
from deployctl.pipeline.hooks import HookContext, HookResult, HookTable


def first(ctx):
    pass


def second(ctx):
    pass


class TestHookTable:
    """Test HookTable."""

    def test_registration_order_preserved(self):
        table = HookTable()
        table.add("deploy:deploy", first, "a")
        table.add("deploy:deploy", second, "b")

        assert table.handlers("deploy:deploy") == (first, second)
        assert [r.plugin_name for r in table.registrations("deploy:deploy")] == ["a", "b"]
        assert len(table) == 2
        assert "deploy:deploy" in table
        assert "deploy:other" not in table

    def test_missing_hook_is_empty(self):
        assert HookTable().handlers("x") == ()

    def test_frozen_table_rejects_additions(self):
        table = HookTable().freeze()

        with pytest.raises(PluginError) as exc_info:
            table.add("x", first)
        assert exc_info.value.error_code == "HOOK_TABLE_FROZEN"

    def test_non_callable_rejected(self):
        with pytest.raises(PluginError) as exc_info:
            HookTable().add("x", "not a function")
        assert exc_info.value.error_code == "HOOK_NOT_CALLABLE"

    def test_from_mapping(self):
        table = HookTable.from_mapping({"a": first, "b": [first, second]})

        assert table.frozen
        assert table.handlers("a") == (first,)
        assert table.handlers("b") == (first, second)
        assert table.hook_names() == ["a", "b"]

    def test_registration_label(self):
        table = HookTable()
        table.add("x", first, "myplugin")
        assert table.registrations("x")[0].label == "myplugin.first"


class TestHookContext:
    """Test HookContext."""

    def test_state_and_options(self):
        ctx = HookContext(command="deploy", options={"stage": "prod"})
        ctx.set("key", 1)

        assert ctx.get("key") == 1
        assert ctx.get("missing", "default") == "default"
        assert ctx.option("stage") == "prod"
        assert ctx.option("region") is None


class TestHookResult:
    """Test HookResult."""

    def test_ok(self):
        result = HookResult.ok({"a": 1})
        assert result.success
        assert result.data == {"a": 1}

    def test_fail_from_string(self):
        result = HookResult.fail("boom")
        assert not result.success
        assert isinstance(result.error, RuntimeError)
        assert str(result.error) == "boom"
