"""
Value resolution for DSL trees.

Expands references ($input, $ref, $now, $temp) into concrete values,
evaluates value-level conditionals ($if) and defaults ($default), and
leaves deferred operators ($inc, $dec, $push, $pull, $addToSet) in their
wire shape so that a handler can apply them against stored data.

Nothing here suspends: resolution is synchronous and only handler calls
in the executor are awaited.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, TYPE_CHECKING

from .exceptions import UnresolvableContextError
from .values import (
    AddToSet,
    Decrement,
    Default,
    If,
    Increment,
    InputRef,
    NowRef,
    Pull,
    Push,
    ResultRef,
    TempRef,
    decode_value,
)

if TYPE_CHECKING:
    from .base import EvalContext


class TempIdCounter:
    """
    Monotonic generator of temporary identifiers: "temp_1", "temp_2", ...

    One instance is shared process-wide as the fallback for `$temp`. It has
    no locking; runs that need isolation pass their own counter (or a
    `temp_id` callable) to the executor.

    Example:
        >>> counter = TempIdCounter()
        >>> counter.next(), counter.next()
        ('temp_1', 'temp_2')
        >>> counter.reset()
        >>> counter.next()
        'temp_1'
    """

    def __init__(self, prefix: str = "temp_"):
        self.prefix = prefix
        self._value = 0

    def next(self) -> str:
        self._value += 1
        return f"{self.prefix}{self._value}"

    def reset(self):
        self._value = 0

    def __call__(self) -> str:
        return self.next()


_default_counter = TempIdCounter()


def get_temp_id_counter() -> TempIdCounter:
    """Get the process-wide fallback temp-id counter."""
    return _default_counter


def reset_temp_id_counter():
    """Reset the process-wide counter so the next `$temp` yields "temp_1"."""
    _default_counter.reset()


def get_path(obj: Any, path: str) -> Any:
    """
    Get a nested value using dot notation.

    Any missing key, or an intermediate value that is not a mapping, yields
    None instead of raising.

    Example:
        >>> get_path({"user": {"name": "John"}}, "user.name")
        'John'
        >>> get_path({"user": "John"}, "user.name") is None
        True
    """
    current = obj
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def is_truthy(value: Any) -> bool:
    """
    DSL truthiness, used by every condition in the engine.

    False: None, False, numeric zero, empty string, empty list/tuple.
    True: everything else, including an empty dict.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return False
    if isinstance(value, str) and value == "":
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def resolve(node: Any, ctx: "EvalContext") -> Any:
    """
    Resolve a decoded tree against a context.

    Args:
        node: A tree produced by `decode_value` (or DSLParser)
        ctx: Evaluation context with input, results, now and temp-id source

    Returns:
        A plain-data tree with references replaced by values.

    Raises:
        UnresolvableContextError: If a `$ref` is found and ctx.results is None
    """
    if node is None:
        return None

    if isinstance(node, InputRef):
        return get_path(ctx.input, node.path)

    if isinstance(node, ResultRef):
        if ctx.results is None:
            raise UnresolvableContextError(node.path)
        return get_path(ctx.results, node.path)

    if isinstance(node, NowRef):
        return ctx.now if ctx.now is not None else datetime.now(timezone.utc)

    if isinstance(node, TempRef):
        return ctx.new_temp_id()

    # Deferred operators keep their wire shape for the handler
    if isinstance(node, (Increment, Decrement)):
        return node.to_dict()

    if isinstance(node, (Push, Pull, AddToSet)):
        return {node.key: resolve(node.value, ctx)}

    if isinstance(node, Default):
        return resolve(node.value, ctx)

    if isinstance(node, If):
        if is_truthy(resolve(node.condition, ctx)):
            return resolve(node.then, ctx)
        return resolve(node.otherwise, ctx)

    if isinstance(node, list):
        return [resolve(item, ctx) for item in node]

    if isinstance(node, dict):
        return {key: resolve(value, ctx) for key, value in node.items()}

    return node


def resolve_value(tree: Any, ctx: "EvalContext") -> Any:
    """Decode a raw tree and resolve it in one call."""
    return resolve(decode_value(tree), ctx)
