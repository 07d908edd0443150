"""
Helpers for building DSL trees in Python.

Every helper returns plain wire-format data (dicts, lists, scalars), so
the output can be serialized to JSON as-is and executed later.

Example:
    >>> from reify.builder import pipe, op, branch, input_path, ref, temp
    >>>
    >>> dsl = pipe(
    ...     op("entity.create", {"type": "Session", "id": temp(),
    ...                          "title": input_path("title")}).as_("session"),
    ...     branch(input_path("content"))
    ...         .then(op("entity.create", {"type": "Message",
    ...                                    "sessionId": ref("session", "id")}).as_("message"))
    ...         .as_("first_message"),
    ...     returns={"session": ref("session")},
    ... )
"""

from typing import Any, Dict, List, Optional, Union


def input_path(path: str) -> Dict[str, str]:
    """input_path("user.name") -> {"$input": "user.name"}"""
    return {"$input": path}


def result_path(name: str, *fields: str) -> Dict[str, str]:
    """result_path("session", "id") -> {"$ref": "session.id"}"""
    return {"$ref": ".".join((name,) + fields)}


ref = result_path


def now() -> Dict[str, bool]:
    return {"$now": True}


def temp() -> Dict[str, bool]:
    return {"$temp": True}


def inc(n: Union[int, float] = 1) -> Dict[str, Any]:
    return {"$inc": n}


def dec(n: Union[int, float] = 1) -> Dict[str, Any]:
    return {"$dec": n}


def _items(items: tuple) -> Any:
    return items[0] if len(items) == 1 else list(items)


def push(*items: Any) -> Dict[str, Any]:
    """push("a") -> {"$push": "a"}; push("a", "b") -> {"$push": ["a", "b"]}"""
    return {"$push": _items(items)}


def pull(*items: Any) -> Dict[str, Any]:
    return {"$pull": _items(items)}


def add_to_set(*items: Any) -> Dict[str, Any]:
    return {"$addToSet": _items(items)}


def default_to(value: Any) -> Dict[str, Any]:
    return {"$default": value}


def when(condition: Any, then: Any, otherwise: Any = None) -> Dict[str, Any]:
    """when(cond, "yes", "no") -> {"$if": {"cond": cond, "then": "yes", "else": "no"}}"""
    body = {"cond": condition, "then": then}
    if otherwise is not None:
        body["else"] = otherwise
    return {"$if": body}


class StepBuilder:
    """Common interface for operation and conditional builders."""

    def __init__(self):
        self._name: Optional[str] = None

    def as_(self, name: str) -> "StepBuilder":
        """Name this step's result for later `$ref`."""
        self._name = name
        return self

    def build(self) -> Dict[str, Any]:
        raise NotImplementedError


class OperationBuilder(StepBuilder):
    def __init__(self, effect: str, args: Optional[Dict[str, Any]] = None):
        super().__init__()
        self._effect = effect
        self._args = args or {}
        self._guard: Any = None
        self._has_guard = False

    def only(self, condition: Any) -> "OperationBuilder":
        """Run only if condition is truthy; skip otherwise."""
        self._guard = condition
        self._has_guard = True
        return self

    def build(self) -> Dict[str, Any]:
        operation = {"$do": self._effect, "$with": self._args}
        if self._name:
            operation["$as"] = self._name
        if self._has_guard:
            operation["$only"] = self._guard
        return operation


class ConditionalBuilder(StepBuilder):
    def __init__(self, condition: Any):
        super().__init__()
        self._condition = condition
        self._then: List[Any] = []
        self._else: Optional[List[Any]] = None

    def then(self, *steps: Any) -> "ConditionalBuilder":
        self._then = list(steps)
        return self

    def else_(self, *steps: Any) -> "ConditionalBuilder":
        self._else = list(steps)
        return self

    def build(self) -> Dict[str, Any]:
        conditional = {
            "$when": self._condition,
            "$then": _build_branch(self._then),
        }
        if self._else is not None:
            conditional["$else"] = _build_branch(self._else)
        if self._name:
            conditional["$as"] = self._name
        return conditional


def _build_step(step: Any) -> Dict[str, Any]:
    return step.build() if isinstance(step, StepBuilder) else step


def _build_branch(steps: List[Any]) -> Any:
    if len(steps) == 1:
        return _build_step(steps[0])
    return [_build_step(step) for step in steps]


def op(effect: str, args: Optional[Dict[str, Any]] = None) -> OperationBuilder:
    """op("entity.create", {"type": "User"}).as_("user").only(input_path("enabled"))"""
    return OperationBuilder(effect, args)


def branch(condition: Any) -> ConditionalBuilder:
    """branch(input_path("id")).then(op(...)).else_(op(...)).as_("result")"""
    return ConditionalBuilder(condition)


def pipe(*steps: Any, returns: Any = None) -> Dict[str, Any]:
    """Build a pipeline from step builders (or already built step dicts)."""
    pipeline = {"$pipe": [_build_step(step) for step in steps]}
    if returns is not None:
        pipeline["$return"] = returns
    return pipeline


def single(step: Any) -> Dict[str, Any]:
    """Build a bare Operation or Conditional."""
    return _build_step(step)
