"""
Plugin Registry for effect handlers.

A plugin groups named effect handlers under a namespace. Operations name
their effect as "<namespace>.<name>" and the executor looks the handler up
here.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import logging

from .exceptions import EffectNotFoundError, PluginNotFoundError

logger = logging.getLogger("reify")

EffectHandler = Callable[[Dict[str, Any], Any], Union[Any, Awaitable[Any]]]


@dataclass
class Plugin:
    """
    A namespace plus its effect handlers.

    A handler receives the resolved arguments and the EvalContext and
    returns a value, or an awaitable for asynchronous work.

    Example:
        >>> Plugin(
        ...     namespace="entity",
        ...     effects={
        ...         "create": lambda args, ctx: {"id": ctx.new_temp_id(), **args},
        ...         "delete": lambda args, ctx: {"deleted": True},
        ...     },
        ... )
    """

    namespace: str
    effects: Dict[str, EffectHandler] = field(default_factory=dict)
    description: Optional[str] = None

    def __repr__(self):
        return f"<Plugin(namespace={self.namespace}, effects={sorted(self.effects)})>"


class PluginRegistry:
    """
    Registry mapping namespaces to plugins.

    Registering a namespace that already exists replaces the previous
    plugin; there is no merging or versioning. The registry has no locking,
    so concurrent runs that mutate a shared registry can race. Give each
    executor its own registry when that matters.

    Example:
        >>> registry = PluginRegistry()
        >>> registry.register(create_cache_plugin({}))
        >>> registry.list_namespaces()
        ['entity']
        >>> registry.get_handler("entity", "create")
        <function ...>
    """

    def __init__(self):
        self._plugins: Dict[str, Plugin] = {}

    def register(self, plugin: Plugin):
        """
        Register a plugin under its namespace, replacing any previous one.

        Args:
            plugin: Plugin instance
        """
        if plugin.namespace in self._plugins:
            logger.debug(f"Replacing plugin: {plugin.namespace}")
        self._plugins[plugin.namespace] = plugin
        logger.debug(
            f"Registered plugin: {plugin.namespace} -> {sorted(plugin.effects)}"
        )

    def unregister(self, namespace: str):
        """Remove a plugin. Unknown namespaces are ignored."""
        self._plugins.pop(namespace, None)

    def clear(self):
        """Remove all plugins."""
        self._plugins.clear()

    def list_namespaces(self) -> List[str]:
        """Registered namespaces, in registration order."""
        return list(self._plugins.keys())

    def has_plugin(self, namespace: str) -> bool:
        return namespace in self._plugins

    def get_plugin(self, namespace: str, effect: Optional[str] = None) -> Plugin:
        """
        Get a plugin by namespace.

        Raises:
            PluginNotFoundError: If no plugin is registered (includes suggestions)
        """
        if namespace not in self._plugins:
            raise PluginNotFoundError(
                namespace, self.list_namespaces(), effect=effect
            )
        return self._plugins[namespace]

    def get_handler(self, namespace: str, name: str) -> EffectHandler:
        """
        Get the handler for "<namespace>.<name>".

        Raises:
            PluginNotFoundError: If the namespace is unknown
            EffectNotFoundError: If the plugin has no such effect
        """
        plugin = self.get_plugin(namespace, effect=f"{namespace}.{name}")
        handler = plugin.effects.get(name)
        if handler is None:
            raise EffectNotFoundError(namespace, name, list(plugin.effects))
        return handler

    def list_effects(self, namespace: str) -> List[str]:
        """Effect names provided by a namespace."""
        return sorted(self.get_plugin(namespace).effects)

    def describe(self) -> List[Dict[str, Any]]:
        """
        List every plugin with its effects.

        Returns:
            List of dicts with namespace, description and qualified effect names

        Example:
            >>> registry.describe()
            [{"namespace": "entity", "description": None,
              "effects": ["entity.create", "entity.delete", ...]}]
        """
        return [
            {
                "namespace": plugin.namespace,
                "description": plugin.description,
                "effects": [f"{plugin.namespace}.{name}" for name in sorted(plugin.effects)],
            }
            for plugin in self._plugins.values()
        ]


# Global registry instance
_global_registry = PluginRegistry()


def get_registry() -> PluginRegistry:
    """Get the global plugin registry."""
    return _global_registry


def register_plugin(plugin: Plugin):
    """
    Register a plugin with the global registry.

    Example:
        >>> from reify import register_plugin, Plugin
        >>>
        >>> register_plugin(Plugin(
        ...     namespace="math",
        ...     effects={"add": lambda args, ctx: args["a"] + args["b"]},
        ... ))
    """
    _global_registry.register(plugin)


def unregister_plugin(namespace: str):
    """Remove a plugin from the global registry."""
    _global_registry.unregister(namespace)


def clear_plugins():
    """Remove every plugin from the global registry."""
    _global_registry.clear()


def list_namespaces() -> List[str]:
    """Namespaces registered in the global registry."""
    return _global_registry.list_namespaces()
