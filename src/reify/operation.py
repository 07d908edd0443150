"""
Step nodes: Operation, Conditional and Pipeline.

These are the decoded form of the step-level DSL shapes. The parser builds
them from raw trees; the executor consumes them.

Example (raw form):
    >>> {
    ...     "$pipe": [
    ...         {"$do": "entity.create", "$with": {"type": "User"}, "$as": "user"},
    ...         {
    ...             "$when": {"$input": "notify"},
    ...             "$then": {"$do": "log.info", "$with": {"id": {"$ref": "user.id"}}},
    ...         },
    ...     ],
    ...     "$return": {"user": {"$ref": "user"}},
    ... }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .values import to_wire

DEFAULT_NAMESPACE = "core"


class _NotSet:
    """Sentinel type for keys that are absent (as opposed to null)."""

    def __repr__(self):
        return "NOT_SET"

    def __bool__(self):
        return False


NOT_SET = _NotSet()


def split_effect(effect: str) -> Tuple[str, str]:
    """
    Split "namespace.name" on the first dot.

    A bare name belongs to the default namespace.

    Example:
        >>> split_effect("entity.create")
        ('entity', 'create')
        >>> split_effect("noop")
        ('core', 'noop')
    """
    if "." in effect:
        namespace, name = effect.split(".", 1)
        return namespace, name
    return DEFAULT_NAMESPACE, effect


@dataclass
class Operation:
    """
    A single unit of work dispatched to an effect handler.

    Attributes:
        effect: Dot-qualified effect name (e.g., 'entity.create')
        args: Decoded argument tree, resolved just before dispatch
        name: Binding name for the result (`$as`)
        guard: Condition checked before running (`$only`); NOT_SET if absent
    """

    effect: str
    args: Any = field(default_factory=dict)
    name: Optional[str] = None
    guard: Any = NOT_SET

    @property
    def namespace(self) -> str:
        return split_effect(self.effect)[0]

    @property
    def effect_name(self) -> str:
        return split_effect(self.effect)[1]

    @property
    def has_guard(self) -> bool:
        return self.guard is not NOT_SET

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the wire format."""
        result = {"$do": self.effect, "$with": to_wire(self.args)}
        if self.name:
            result["$as"] = self.name
        if self.has_guard:
            result["$only"] = to_wire(self.guard)
        return result

    def __repr__(self):
        return f"Operation(effect={self.effect}, name={self.name})"


@dataclass
class Conditional:
    """
    Step-level branch.

    `then` and `otherwise` are always lists of steps after decoding; a
    missing `$else` is None.
    """

    condition: Any
    then: List["Step"]
    otherwise: Optional[List["Step"]] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "$when": to_wire(self.condition),
            "$then": _branch_to_wire(self.then),
        }
        if self.otherwise is not None:
            result["$else"] = _branch_to_wire(self.otherwise)
        if self.name:
            result["$as"] = self.name
        return result


@dataclass
class Pipeline:
    """Ordered steps plus an optional return tree (NOT_SET if absent)."""

    steps: List["Step"] = field(default_factory=list)
    returns: Any = NOT_SET

    @property
    def has_return(self) -> bool:
        return self.returns is not NOT_SET

    def to_dict(self) -> Dict[str, Any]:
        result = {"$pipe": [step.to_dict() for step in self.steps]}
        if self.has_return:
            result["$return"] = to_wire(self.returns)
        return result


Step = Union[Operation, Conditional]
DSL = Union[Operation, Conditional, Pipeline]


def _branch_to_wire(steps: List[Step]) -> Any:
    if len(steps) == 1:
        return steps[0].to_dict()
    return [step.to_dict() for step in steps]
