"""
Value nodes: references and operators embedded in a DSL tree.

Raw trees use reserved `$`-prefixed keys. The parser decodes each marker
into one of the dataclasses below exactly once, so the resolver dispatches on
type instead of re-inspecting dict keys on every call.

References (resolved to a concrete value):
- InputRef:  {"$input": "user.name"}
- ResultRef: {"$ref": "session.id"}
- NowRef:    {"$now": true}
- TempRef:   {"$temp": true}

Operators (deferred transforms, applied by a handler against a stored value):
- Increment, Decrement, Push, Pull, AddToSet

Operators resolved in-engine:
- Default, If
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict

from .exceptions import MalformedDSLError


def to_wire(value: Any) -> Any:
    """Convert a decoded tree back into plain data."""
    if isinstance(value, ValueNode):
        return value.to_dict()
    if isinstance(value, list):
        return [to_wire(v) for v in value]
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    return value


class ValueNode:
    """Marker base class for every decoded value node."""

    key: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class InputRef(ValueNode):
    """Read from the caller-supplied input via a dot path."""

    key: ClassVar[str] = "$input"
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: self.path}


@dataclass(frozen=True)
class ResultRef(ValueNode):
    """Read from the named results of earlier steps via a dot path."""

    key: ClassVar[str] = "$ref"
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: self.path}


@dataclass(frozen=True)
class NowRef(ValueNode):
    key: ClassVar[str] = "$now"

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: True}


@dataclass(frozen=True)
class TempRef(ValueNode):
    key: ClassVar[str] = "$temp"

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: True}


@dataclass(frozen=True)
class Increment(ValueNode):
    key: ClassVar[str] = "$inc"
    amount: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: self.amount}


@dataclass(frozen=True)
class Decrement(ValueNode):
    key: ClassVar[str] = "$dec"
    amount: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: self.amount}


@dataclass(frozen=True)
class Push(ValueNode):
    key: ClassVar[str] = "$push"
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: to_wire(self.value)}


@dataclass(frozen=True)
class Pull(ValueNode):
    key: ClassVar[str] = "$pull"
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: to_wire(self.value)}


@dataclass(frozen=True)
class AddToSet(ValueNode):
    key: ClassVar[str] = "$addToSet"
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: to_wire(self.value)}


@dataclass(frozen=True)
class Default(ValueNode):
    """
    Fallback value.

    The engine resolves this to its payload unconditionally; substituting it
    only when a stored value is missing is left to handlers.
    """

    key: ClassVar[str] = "$default"
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {self.key: to_wire(self.value)}


@dataclass(frozen=True)
class If(ValueNode):
    """
    Value-level conditional: {"$if": {"cond": ..., "then": ..., "else": ...}}.

    `otherwise` holds the "else" payload; a missing "else" resolves to None.
    """

    key: ClassVar[str] = "$if"
    condition: Any
    then: Any
    otherwise: Any = None

    def to_dict(self) -> Dict[str, Any]:
        body = {"cond": to_wire(self.condition), "then": to_wire(self.then)}
        if self.otherwise is not None:
            body["else"] = to_wire(self.otherwise)
        return {self.key: body}


REFERENCE_TYPES = (InputRef, ResultRef, NowRef, TempRef)

# Recognized only on single-key dicts
OPERATOR_TYPES = {
    cls.key: cls for cls in (Increment, Decrement, Push, Pull, AddToSet, Default)
}


def is_operator(value: Any) -> bool:
    """
    Check for a raw operator marker: a single-key dict whose key starts with `$`.

    Handlers use this to tell operator markers apart from plain values
    when applying updates to stored data.
    """
    return (
        isinstance(value, dict)
        and len(value) == 1
        and next(iter(value)).startswith("$")
    )


def decode_value(tree: Any) -> Any:
    """
    Decode a raw value tree into value nodes.

    Plain dicts and lists stay containers with decoded children. Decoded
    nodes and other scalars pass through unchanged, so decoding is
    idempotent.
    """
    if isinstance(tree, list):
        return [decode_value(item) for item in tree]
    if not isinstance(tree, dict):
        return tree

    if "$input" in tree:
        return InputRef(tree["$input"])
    if "$ref" in tree:
        return ResultRef(tree["$ref"])
    if "$now" in tree:
        return NowRef()
    if "$temp" in tree:
        return TempRef()

    if len(tree) == 1:
        (key, payload), = tree.items()
        if key in ("$inc", "$dec"):
            return OPERATOR_TYPES[key](payload)
        if key in OPERATOR_TYPES:
            return OPERATOR_TYPES[key](decode_value(payload))

    if "$if" in tree:
        body = tree["$if"]
        if not isinstance(body, dict) or "then" not in body:
            raise MalformedDSLError("$if requires an object with 'cond' and 'then'")
        condition = body["cond"] if "cond" in body else body.get("condition")
        return If(
            condition=decode_value(condition),
            then=decode_value(body["then"]),
            otherwise=decode_value(body.get("else")),
        )

    return {k: decode_value(v) for k, v in tree.items()}
