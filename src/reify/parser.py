"""
DSL parser for converting raw trees into executable step nodes.

Provides utilities to decode and validate DSL definitions.
"""

import json
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .exceptions import MalformedDSLError, ReifyError
from .operation import DSL, NOT_SET, Conditional, Operation, Pipeline, Step, split_effect
from .values import decode_value

if TYPE_CHECKING:
    from .registry import PluginRegistry


def is_operation(tree: Any) -> bool:
    return isinstance(tree, dict) and "$do" in tree


def is_conditional(tree: Any) -> bool:
    return isinstance(tree, dict) and "$when" in tree and "$then" in tree


def is_pipeline(tree: Any) -> bool:
    return isinstance(tree, dict) and isinstance(tree.get("$pipe"), list)


class DSLParser:
    """
    Utility class to decode and validate DSL trees.

    Turns raw trees (dicts or JSON strings) into Operation, Conditional and
    Pipeline nodes that PipelineExecutor can run. All reserved-key
    inspection happens here, once.

    Example:
        >>> tree = {
        ...     "$pipe": [
        ...         {"$do": "entity.create", "$with": {"type": "User"}, "$as": "user"},
        ...     ]
        ... }
        >>>
        >>> pipeline = DSLParser.parse(tree)
        >>> # Now ready to execute with PipelineExecutor
    """

    @classmethod
    def parse(cls, tree: Any) -> DSL:
        """
        Decode a DSL tree.

        Args:
            tree: A raw dict, a JSON string, or an already decoded node.

        Returns:
            Pipeline, Operation or Conditional.

        Raises:
            MalformedDSLError: If the tree is none of the three shapes.

        Example:
            >>> DSLParser.parse('{"$do": "log.info"}')
            Operation(effect=log.info, name=None)
        """
        if isinstance(tree, (Operation, Conditional, Pipeline)):
            return tree

        if isinstance(tree, str):
            try:
                tree = json.loads(tree)
            except json.JSONDecodeError as e:
                raise MalformedDSLError(f"Invalid JSON: {e}") from e

        if is_pipeline(tree):
            return cls.parse_pipeline(tree)
        if is_operation(tree) or is_conditional(tree):
            return cls.parse_step(tree)

        raise MalformedDSLError(
            "Invalid DSL: expected Operation, Conditional, or Pipeline, "
            f"got {_describe(tree)}"
        )

    @classmethod
    def parse_pipeline(cls, tree: Dict[str, Any]) -> Pipeline:
        steps = [
            cls.parse_step(step, f"$pipe[{idx}]")
            for idx, step in enumerate(tree["$pipe"])
        ]
        returns = tree.get("$return")
        returns = NOT_SET if returns is None else decode_value(returns)
        return Pipeline(steps=steps, returns=returns)

    @classmethod
    def parse_step(cls, tree: Any, path: str = "$") -> Step:
        """
        Decode one Operation or Conditional.

        Conditional branches are normalized to lists; nested conditionals are
        decoded recursively.
        """
        if isinstance(tree, (Operation, Conditional)):
            return tree

        if is_conditional(tree):
            otherwise = None
            if tree.get("$else") is not None:
                otherwise = cls._parse_branch(tree["$else"], f"{path}.$else")
            return Conditional(
                condition=decode_value(tree["$when"]),
                then=cls._parse_branch(tree["$then"], f"{path}.$then"),
                otherwise=otherwise,
                name=tree.get("$as"),
            )

        if is_operation(tree):
            effect = tree["$do"]
            if not isinstance(effect, str) or not effect:
                raise MalformedDSLError("'$do' must be a non-empty string", path=path)
            return Operation(
                effect=effect,
                args=decode_value(tree.get("$with", {})),
                name=tree.get("$as"),
                guard=decode_value(tree["$only"]) if "$only" in tree else NOT_SET,
            )

        raise MalformedDSLError(
            f"Expected Operation or Conditional, got {_describe(tree)}", path=path
        )

    @classmethod
    def _parse_branch(cls, branch: Any, path: str) -> List[Step]:
        if isinstance(branch, list):
            return [cls.parse_step(step, f"{path}[{idx}]") for idx, step in enumerate(branch)]
        return [cls.parse_step(branch, path)]

    @classmethod
    def validate(
        cls, tree: Any, registry: Optional["PluginRegistry"] = None
    ) -> List[str]:
        """
        Validate a DSL tree without executing it.

        Checks:
        - JSON structure is valid
        - Every step is an Operation or Conditional
        - Every effect namespace has a registered plugin
        - Every effect name exists in its plugin

        Args:
            tree: DSL tree as a dict, JSON string or decoded node.
            registry: Registry to check effects against (default: global).

        Returns:
            List of validation error messages (empty if valid).

        Example:
            >>> errors = DSLParser.validate({"$do": "nope.go"})
            >>> if errors:
            ...     print("Validation failed:", errors)
        """
        from .registry import get_registry

        try:
            dsl = cls.parse(tree)
        except ReifyError as e:
            return [str(e)]

        registry = registry or get_registry()
        errors: List[str] = []

        if isinstance(dsl, Pipeline):
            for idx, step in enumerate(dsl.steps):
                cls._validate_step(step, f"$pipe[{idx}]", registry, errors)
        else:
            cls._validate_step(dsl, "$", registry, errors)

        return errors

    @classmethod
    def _validate_step(
        cls, step: Step, path: str, registry: "PluginRegistry", errors: List[str]
    ):
        if isinstance(step, Conditional):
            for idx, child in enumerate(step.then):
                cls._validate_step(child, f"{path}.$then[{idx}]", registry, errors)
            for idx, child in enumerate(step.otherwise or []):
                cls._validate_step(child, f"{path}.$else[{idx}]", registry, errors)
            return

        namespace, name = split_effect(step.effect)
        if not registry.has_plugin(namespace):
            errors.append(f"{path}: Unknown plugin namespace '{namespace}'")
        elif name not in registry.list_effects(namespace):
            errors.append(f"{path}: Unknown effect '{step.effect}'")


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        keys = ", ".join(sorted(value)[:5])
        return f"object with keys [{keys}]"
    return type(value).__name__
