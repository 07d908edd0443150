"""
Reify - Describe data mutations once, execute them anywhere.

This library evaluates a declarative tree of operations. Callers describe
what should happen (create a user, bump a counter, call a webhook) as plain
data; the executor resolves the references inside it and dispatches each
operation to a handler registered by a plugin. The same tree can run against
a cache, a database client or a logger without change.

Basic Usage:
    >>> from reify import execute, register_plugin
    >>> from reify.plugins import create_cache_plugin
    >>>
    >>> cache = {}
    >>> register_plugin(create_cache_plugin(cache))
    >>>
    >>> dsl = {
    ...     "$pipe": [
    ...         {"$do": "entity.create",
    ...          "$with": {"type": "Session", "id": {"$temp": True},
    ...                    "title": {"$input": "title"}},
    ...          "$as": "session"},
    ...         {"$do": "entity.create",
    ...          "$with": {"type": "Message", "sessionId": {"$ref": "session.id"}},
    ...          "$as": "message"},
    ...     ]
    ... }
    >>> outcome = await execute(dsl, {"title": "Chat"})
    >>> outcome.result["message"]["sessionId"]
    'temp_1'

Key Concepts:
    - **References**: $input, $ref, $now, $temp are replaced by values
    - **Operators**: $inc, $push, ... are left for handlers to apply
    - **Operations**: {"$do": "namespace.effect", "$with": ..., "$as": ..., "$only": ...}
    - **Conditionals**: {"$when": ..., "$then": ..., "$else": ...}
    - **Pipelines**: {"$pipe": [...], "$return": ...}
    - **Plugins**: namespaces of effect handlers in a registry
"""

from .base import (
    ConditionalResult,
    EvalContext,
    OperationResult,
    PipelineResult,
)
from .operation import Conditional, Operation, Pipeline, NOT_SET
from .executor import PipelineExecutor, execute
from .parser import DSLParser
from .registry import (
    Plugin,
    PluginRegistry,
    clear_plugins,
    get_registry,
    list_namespaces,
    register_plugin,
    unregister_plugin,
)
from .resolver import (
    TempIdCounter,
    get_path,
    is_truthy,
    reset_temp_id_counter,
    resolve_value,
)
from .exceptions import (
    ReifyError,
    EvaluationError,
    UnresolvableContextError,
    PluginNotFoundError,
    EffectNotFoundError,
    MalformedDSLError,
)

__version__ = "0.1.0"

__all__ = [
    # Core types
    "EvalContext",
    "OperationResult",
    "ConditionalResult",
    "PipelineResult",
    "Operation",
    "Conditional",
    "Pipeline",
    "NOT_SET",
    # Execution
    "PipelineExecutor",
    "execute",
    "DSLParser",
    # Resolution
    "resolve_value",
    "get_path",
    "is_truthy",
    "TempIdCounter",
    "reset_temp_id_counter",
    # Registry
    "Plugin",
    "PluginRegistry",
    "get_registry",
    "register_plugin",
    "unregister_plugin",
    "clear_plugins",
    "list_namespaces",
    # Exceptions
    "ReifyError",
    "EvaluationError",
    "UnresolvableContextError",
    "PluginNotFoundError",
    "EffectNotFoundError",
    "MalformedDSLError",
]
