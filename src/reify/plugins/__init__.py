"""
Ready-made plugins (effect handler adapters).

- entity_plugin: describes entity CRUD without executing it
- create_cache_plugin: entity CRUD over an in-memory mapping
- create_store_plugin: entity CRUD over an async database client
- create_log_plugin: logs effect arguments
- create_http_plugin: HTTP requests (requires aiohttp)
"""

from .cache import create_cache_plugin
from .entity import entity_plugin
from .http import create_http_plugin
from .log import create_log_plugin
from .operators import apply_operator, apply_operators
from .store import create_store_plugin

__all__ = [
    "entity_plugin",
    "create_cache_plugin",
    "create_store_plugin",
    "create_log_plugin",
    "create_http_plugin",
    "apply_operator",
    "apply_operators",
]
