"""
Step-level control flow.

A Conditional picks its "then" or "else" branch by DSL truthiness and runs
the branch steps in order. Named results inside a branch are bound as soon
as each step finishes, so later siblings in the same branch can `$ref` them.
"""

from typing import Any, Awaitable, Callable, Dict, List
import logging

from .base import ConditionalResult, EvalContext, OperationResult
from .operation import Conditional, Operation
from .resolver import is_truthy, resolve

logger = logging.getLogger("reify")

RunOperation = Callable[[Operation, EvalContext], Awaitable[OperationResult]]


async def evaluate_conditional(
    conditional: Conditional,
    ctx: EvalContext,
    results: Dict[str, Any],
    run_operation: RunOperation,
) -> ConditionalResult:
    """
    Evaluate the condition and run the chosen branch (supports nesting).

    Args:
        conditional: The decoded Conditional
        ctx: Context of the current run
        results: Named-results table, written to as branch steps complete
        run_operation: Coroutine that evaluates one Operation

    Returns:
        ConditionalResult with the branch taken, the flattened operation
        results, and the result of the last non-skipped step.
    """
    take_then = is_truthy(resolve(conditional.condition, ctx))
    branch_name = "then" if take_then else "else"
    branch = conditional.then if take_then else conditional.otherwise

    logger.debug(
        "Conditional %s: taking '%s' branch", conditional.name or "<unnamed>", branch_name
    )

    if not branch:
        return ConditionalResult(branch=branch_name, name=conditional.name)

    operations: List[OperationResult] = []
    last_result = None

    for step in branch:
        if isinstance(step, Conditional):
            nested = await evaluate_conditional(step, ctx, results, run_operation)
            operations.extend(nested.operations)
            if nested.name:
                results[nested.name] = nested.result
            last_result = nested.result
        else:
            op_result = await run_operation(step, ctx)
            operations.append(op_result)

            if op_result.skipped:
                continue
            if op_result.name:
                results[op_result.name] = op_result.result
            last_result = op_result.result

    return ConditionalResult(
        branch=branch_name,
        operations=operations,
        result=last_result,
        name=conditional.name,
    )
