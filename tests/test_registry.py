"""
Tests for the plugin registry.
"""

import pytest
from reify import (
    Plugin,
    PluginRegistry,
    clear_plugins,
    get_registry,
    list_namespaces,
    register_plugin,
    unregister_plugin,
)
from reify.exceptions import EffectNotFoundError, PluginNotFoundError


def make_plugin(namespace, *names):
    return Plugin(
        namespace=namespace,
        effects={name: (lambda args, ctx, name=name: name) for name in names},
    )


class TestPluginRegistry:
    """Tests for PluginRegistry."""

    def test_register_and_get_handler(self):
        registry = PluginRegistry()
        registry.register(make_plugin("entity", "create", "delete"))

        handler = registry.get_handler("entity", "create")
        assert handler({}, None) == "create"

    def test_register_replaces_without_merging(self):
        registry = PluginRegistry()
        registry.register(make_plugin("entity", "create", "delete"))
        registry.register(make_plugin("entity", "upsert"))

        assert registry.list_effects("entity") == ["upsert"]
        with pytest.raises(EffectNotFoundError):
            registry.get_handler("entity", "create")

    def test_list_namespaces_in_registration_order(self):
        registry = PluginRegistry()
        registry.register(make_plugin("log", "info"))
        registry.register(make_plugin("entity", "create"))
        registry.register(make_plugin("http", "get"))

        assert registry.list_namespaces() == ["log", "entity", "http"]

    def test_unregister(self):
        registry = PluginRegistry()
        registry.register(make_plugin("log", "info"))
        registry.unregister("log")
        registry.unregister("never-registered")

        assert registry.list_namespaces() == []
        assert not registry.has_plugin("log")

    def test_clear(self):
        registry = PluginRegistry()
        registry.register(make_plugin("log", "info"))
        registry.register(make_plugin("entity", "create"))
        registry.clear()

        assert registry.list_namespaces() == []

    def test_unknown_namespace_has_suggestions(self):
        registry = PluginRegistry()
        registry.register(make_plugin("entity", "create"))

        with pytest.raises(PluginNotFoundError) as exc_info:
            registry.get_handler("entty", "create")

        error = exc_info.value
        assert error.suggestions == ["entity"]
        assert error.effect == "entty.create"
        assert "Did you mean: entity?" in str(error)

    def test_unknown_namespace_in_empty_registry(self):
        with pytest.raises(PluginNotFoundError) as exc_info:
            PluginRegistry().get_handler("nope", "go")

        assert "No plugins are registered" in str(exc_info.value)

    def test_unknown_effect_has_suggestions(self):
        registry = PluginRegistry()
        registry.register(make_plugin("entity", "create", "update"))

        with pytest.raises(EffectNotFoundError) as exc_info:
            registry.get_handler("entity", "craete")

        assert "create" in exc_info.value.suggestions
        assert exc_info.value.effect == "entity.craete"

    def test_describe(self):
        registry = PluginRegistry()
        registry.register(
            Plugin(
                namespace="log",
                effects={"info": lambda a, c: a, "error": lambda a, c: a},
                description="Logging",
            )
        )

        assert registry.describe() == [
            {
                "namespace": "log",
                "description": "Logging",
                "effects": ["log.error", "log.info"],
            }
        ]


class TestGlobalRegistry:
    """Tests for the module-level registry functions."""

    def test_register_plugin(self):
        register_plugin(make_plugin("math", "add"))

        assert get_registry().has_plugin("math")
        assert list_namespaces() == ["math"]

    def test_unregister_plugin(self):
        register_plugin(make_plugin("math", "add"))
        unregister_plugin("math")

        assert list_namespaces() == []

    def test_clear_plugins(self):
        register_plugin(make_plugin("a", "x"))
        register_plugin(make_plugin("b", "y"))
        clear_plugins()

        assert list_namespaces() == []

    def test_get_registry_is_shared(self):
        assert get_registry() is get_registry()
