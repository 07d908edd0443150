"""
Exception classes for Reify.

All exceptions include:
- Descriptive messages with context
- `to_dict()` method for structured JSON output
- Fuzzy-matched suggestions for unknown namespaces and effects
"""

from difflib import get_close_matches
from typing import Any, Dict, List, Optional


def _suggest(name: str, candidates: List[str]) -> List[str]:
    """Return up to three close matches for `name`, keeping original case."""
    matches = get_close_matches(
        name.lower(),
        [c.lower() for c in candidates],
        n=3,
        cutoff=0.5,
    )
    return [c for c in candidates if c.lower() in matches]


class ReifyError(Exception):
    """
    Base exception for all Reify errors.

    Every error raised by the engine itself inherits from ReifyError.
    Exceptions raised by effect handlers are NOT wrapped and reach the
    caller unchanged.

    Example:
        >>> try:
        ...     await execute(dsl, {"name": "John"})
        ... except ReifyError as e:
        ...     print(e.to_dict())
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dict for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class EvaluationError(ReifyError):
    """Raised when a DSL tree cannot be evaluated."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "EVALUATION_ERROR",
            "message": str(self),
        }


class UnresolvableContextError(EvaluationError):
    """
    Raised when a `$ref` is resolved with no results table at all.

    An empty results table is fine (unknown names resolve to None); a
    missing one means resolution is happening outside any pipeline run.

    Attributes:
        reference: The `$ref` path that could not be resolved
    """

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(
            f"Cannot resolve $ref '{reference}': no results in context"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "UNRESOLVABLE_CONTEXT",
            "message": str(self),
            "reference": self.reference,
        }


class PluginNotFoundError(EvaluationError):
    """
    Raised when an effect names a namespace with no registered plugin.

    Attributes:
        namespace: The unknown namespace
        effect: The full effect string that was requested
        available: Registered namespaces at the time of the lookup
        suggestions: Fuzzy-matched similar namespaces

    Example:
        >>> registry.get_handler("entty", "create")
        PluginNotFoundError: Unknown plugin namespace: 'entty'.
        Did you mean: entity?
    """

    def __init__(self, namespace: str, available: List[str], effect: Optional[str] = None):
        self.namespace = namespace
        self.effect = effect
        self.available = list(available)
        self.suggestions = _suggest(namespace, self.available)

        message = f"Unknown plugin namespace: '{namespace}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        if self.available:
            message += f"\nRegistered namespaces: {', '.join(sorted(self.available))}"
        else:
            message += "\nNo plugins are registered."

        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "PLUGIN_NOT_FOUND",
            "namespace": self.namespace,
            "effect": self.effect,
            "suggestions": self.suggestions,
            "available": sorted(self.available),
        }


class EffectNotFoundError(EvaluationError):
    """
    Raised when a namespace resolves but has no handler for the effect name.

    Attributes:
        namespace: Namespace of the plugin that was found
        name: The unknown effect name inside that namespace
        available: Effect names the plugin does provide
        suggestions: Fuzzy-matched similar effect names
    """

    def __init__(self, namespace: str, name: str, available: List[str]):
        self.namespace = namespace
        self.name = name
        self.available = list(available)
        self.suggestions = _suggest(name, self.available)

        message = f"Unknown effect: '{namespace}.{name}'."
        if self.suggestions:
            message += " Did you mean: " + ", ".join(
                f"{namespace}.{s}" for s in self.suggestions
            ) + "?"
        sorted_effects = sorted(self.available)[:10]
        message += f"\nAvailable effects in '{namespace}': {', '.join(sorted_effects)}"
        if len(self.available) > 10:
            message += f" ... ({len(self.available) - 10} more)"

        super().__init__(message)

    @property
    def effect(self) -> str:
        return f"{self.namespace}.{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "EFFECT_NOT_FOUND",
            "effect": self.effect,
            "suggestions": self.suggestions,
            "available": sorted(self.available),
        }


class MalformedDSLError(EvaluationError):
    """
    Raised when a tree is not a valid Operation, Conditional or Pipeline.

    Attributes:
        message: Error description
        path: Location in the tree (e.g., "$pipe[2].$then[0]")

    Example:
        >>> raise MalformedDSLError(
        ...     "Expected Operation or Conditional",
        ...     path="$pipe[1]"
        ... )
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path

        full_message = message
        if path:
            full_message = f"{path}: {message}"

        super().__init__(full_message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "MALFORMED_DSL",
            "message": self.message,
            "path": self.path,
        }
