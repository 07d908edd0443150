"""
Core runtime records for the execution engine.

This module defines:
- EvalContext: Per-run state handed to resolution and effect handlers
- OperationResult: Outcome of one dispatched (or skipped) operation
- ConditionalResult: Outcome of a step-level branch
- PipelineResult: Outcome of a whole execution
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from .resolver import TempIdCounter, get_temp_id_counter, resolve
from .values import decode_value


@dataclass
class EvalContext:
    """
    Context passed to resolution and to every effect handler.

    A fresh context is built for each step of a run. `results` is the run's
    named-results table, shared by reference and mutated as steps complete.
    The context must not be kept after the run ends.

    Attributes:
        input: Caller-supplied input record ($input)
        results: Named results of earlier steps ($ref); None outside a run
        now: Fixed instant for $now (current time if None)
        temp_id: External generator for $temp; its uniqueness is the caller's concern
        temp_ids: Counter used when temp_id is not supplied

    Example:
        >>> async def create(args, ctx):
        ...     return {"id": args.get("id") or ctx.new_temp_id(), **args}
    """

    input: Dict[str, Any] = field(default_factory=dict)
    results: Optional[Dict[str, Any]] = None
    now: Optional[datetime] = None
    temp_id: Optional[Callable[[], str]] = None
    temp_ids: TempIdCounter = field(default_factory=get_temp_id_counter)

    def resolve(self, value: Any) -> Any:
        """
        Resolve a raw or decoded value tree against this context.

        Lets a handler expand references found in its own stored or
        returned data, outside the main tree walk.
        """
        return resolve(decode_value(value), self)

    def new_temp_id(self) -> str:
        """Draw a temporary identifier the same way `$temp` does."""
        if self.temp_id is not None:
            return self.temp_id()
        return self.temp_ids.next()


@dataclass
class OperationResult:
    """
    Result of executing a single Operation.

    Attributes:
        effect: Effect that was requested (e.g., 'entity.create')
        args: Resolved arguments ({} when skipped)
        result: Value returned by the handler (None when skipped)
        skipped: True if the guard ($only) was falsy
        name: Binding name ($as), if any
        execution_time_ms: How long the handler took
    """

    effect: str
    args: Any
    result: Any = None
    skipped: bool = False
    name: Optional[str] = None
    execution_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and debugging."""
        return {
            "name": self.name,
            "effect": self.effect,
            "args": self.args,
            "skipped": self.skipped,
            "execution_time_ms": self.execution_time_ms,
            "result_type": type(self.result).__name__
            if self.result is not None
            else "None",
        }


@dataclass
class ConditionalResult:
    """
    Result of executing a Conditional.

    `operations` holds every operation run inside the chosen branch,
    flattened across nested conditionals. `result` is the result of the
    last non-skipped step of the branch.
    """

    branch: str
    operations: List[OperationResult] = field(default_factory=list)
    result: Any = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "branch": self.branch,
            "operations": [op.to_dict() for op in self.operations],
        }


StepResult = Union[OperationResult, ConditionalResult]


@dataclass
class PipelineResult:
    """
    Result of executing a DSL tree.

    Attributes:
        steps: One record per top-level step, in order
        result: The resolved `$return` tree, or the named-results table
    """

    steps: List[StepResult] = field(default_factory=list)
    result: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_steps": len(self.steps),
            "steps": [step.to_dict() for step in self.steps],
        }
