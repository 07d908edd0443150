"""
Pipeline executor for running DSL trees.

Steps run strictly in the order they are declared. Each step may `$ref`
the named results of any step that finished before it, so there is no
parallel fan-out; the only suspension point is awaiting a handler.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import inspect
import logging
import time

from .base import (
    ConditionalResult,
    EvalContext,
    OperationResult,
    PipelineResult,
    StepResult,
)
from .control_flow import evaluate_conditional
from .operation import Conditional, Operation, Pipeline
from .parser import DSLParser
from .registry import PluginRegistry, get_registry
from .resolver import TempIdCounter, get_temp_id_counter, is_truthy, resolve

logger = logging.getLogger("reify")


class PipelineExecutor:
    """
    Executes Operations, Conditionals and Pipelines against a plugin registry.

    The executor:
    - Decodes the tree once (raw dicts and JSON strings are accepted)
    - Runs steps in order, binding named results as they complete
    - Skips operations whose guard ($only) is falsy
    - Lets handler exceptions propagate unchanged, halting the run

    After a run (successful or not) `steps` and `results` hold what was
    recorded, so a caller can inspect the partial trail of a failed run.
    Side effects of completed steps are not rolled back.

    Example:
        >>> from reify import PipelineExecutor, register_plugin
        >>> from reify.plugins import create_cache_plugin
        >>>
        >>> cache = {}
        >>> register_plugin(create_cache_plugin(cache))
        >>>
        >>> dsl = {
        ...     "$pipe": [
        ...         {"$do": "entity.create",
        ...          "$with": {"type": "User", "name": {"$input": "name"}},
        ...          "$as": "user"},
        ...     ]
        ... }
        >>> executor = PipelineExecutor()
        >>> outcome = await executor.execute(dsl, {"name": "John"})
        >>> outcome.result["user"]["name"]
        'John'
    """

    def __init__(
        self,
        registry: Optional[PluginRegistry] = None,
        now: Optional[datetime] = None,
        temp_id: Optional[Callable[[], str]] = None,
        temp_ids: Optional[TempIdCounter] = None,
    ):
        """
        Initialize the executor.

        Args:
            registry: Plugin registry to dispatch to (default: global registry)
            now: Fixed instant for `$now` (default: current time per resolution)
            temp_id: External `$temp` generator, used verbatim
            temp_ids: Counter used when temp_id is None (default: the
                      process-wide counter). Pass a fresh TempIdCounter to
                      isolate concurrent runs.
        """
        self.registry = registry or get_registry()
        self.now = now
        self.temp_id = temp_id
        self.temp_ids = temp_ids or get_temp_id_counter()
        self.steps: List[StepResult] = []
        self.results: Dict[str, Any] = {}

    def create_context(
        self, input: Dict[str, Any], results: Optional[Dict[str, Any]]
    ) -> EvalContext:
        return EvalContext(
            input=input,
            results=results,
            now=self.now,
            temp_id=self.temp_id,
            temp_ids=self.temp_ids,
        )

    async def execute(self, dsl: Any, input: Optional[Dict[str, Any]] = None) -> PipelineResult:
        """
        Execute a Pipeline, or a bare Operation or Conditional as a one-step pipeline.

        Args:
            dsl: Raw dict, JSON string, or decoded node
            input: Input record for `$input` references

        Returns:
            PipelineResult with per-step records and the final result

        Raises:
            MalformedDSLError: If dsl is not a recognized shape
            PluginNotFoundError / EffectNotFoundError: If an effect is unknown
            UnresolvableContextError: If a `$ref` has no results table
            Exception: Whatever a handler raises, unchanged
        """
        parsed = DSLParser.parse(dsl)
        if not isinstance(parsed, Pipeline):
            parsed = Pipeline(steps=[parsed])
        return await self.execute_pipeline(parsed, input)

    async def execute_pipeline(
        self, pipeline: Any, input: Optional[Dict[str, Any]] = None
    ) -> PipelineResult:
        """
        Execute a pipeline of operations and conditionals.

        Returns the resolved `$return` tree as `result` when present,
        otherwise the named-results table itself.
        """
        if not isinstance(pipeline, Pipeline):
            parsed = DSLParser.parse(pipeline)
            pipeline = parsed if isinstance(parsed, Pipeline) else Pipeline(steps=[parsed])
        if input is None:
            input = {}

        results: Dict[str, Any] = {}
        step_results: List[StepResult] = []

        logger.debug("Starting pipeline with %d steps", len(pipeline.steps))

        try:
            for step in pipeline.steps:
                ctx = self.create_context(input, results)

                if isinstance(step, Conditional):
                    cond_result = await self.execute_conditional(step, ctx, results)
                    step_results.append(cond_result)
                    if cond_result.name:
                        results[cond_result.name] = cond_result.result
                else:
                    op_result = await self.execute_operation(step, ctx)
                    step_results.append(op_result)
                    if op_result.name and not op_result.skipped:
                        results[op_result.name] = op_result.result
        finally:
            # Trail of the most recently finished run
            self.steps = step_results
            self.results = results

        if pipeline.has_return:
            result = resolve(pipeline.returns, self.create_context(input, results))
        else:
            result = results

        logger.debug(
            "Pipeline completed, total steps: %d, named results: %s",
            len(step_results),
            sorted(results),
        )

        return PipelineResult(steps=step_results, result=result)

    async def execute_operation(self, operation: Operation, ctx: EvalContext) -> OperationResult:
        """
        Execute a single operation.

        1. Check the guard; a falsy guard skips without calling any handler
        2. Resolve the arguments
        3. Look up the handler for the effect
        4. Call it, awaiting the result if it is awaitable
        """
        if operation.has_guard and not is_truthy(resolve(operation.guard, ctx)):
            logger.debug("Skipping %s: guard is falsy", operation.effect)
            return OperationResult(
                effect=operation.effect,
                args={},
                result=None,
                skipped=True,
                name=operation.name,
            )

        args = resolve(operation.args, ctx)
        handler = self.registry.get_handler(operation.namespace, operation.effect_name)

        start_time = time.time()
        try:
            result = handler(args, ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error("Effect %s failed: %s", operation.effect, e)
            raise
        execution_time = (time.time() - start_time) * 1000

        logger.debug(
            "Effect %s completed in %.2fms", operation.effect, execution_time
        )

        return OperationResult(
            effect=operation.effect,
            args=args,
            result=result,
            skipped=False,
            name=operation.name,
            execution_time_ms=execution_time,
        )

    async def execute_conditional(
        self, conditional: Conditional, ctx: EvalContext, results: Dict[str, Any]
    ) -> ConditionalResult:
        """Execute a conditional branch, binding branch-local results into `results`."""
        return await evaluate_conditional(conditional, ctx, results, self.execute_operation)

    def get_execution_log(self) -> List[dict]:
        """
        Get execution log for debugging.

        Returns:
            List of step results as dicts
        """
        return [step.to_dict() for step in self.steps]


async def execute(
    dsl: Any,
    input: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    temp_id: Optional[Callable[[], str]] = None,
    registry: Optional[PluginRegistry] = None,
) -> PipelineResult:
    """
    Execute a DSL tree with a one-off executor.

    Example:
        >>> outcome = await execute({"$do": "log.info", "$with": {"message": "hi"}})
        >>> outcome.steps[0].effect
        'log.info'
    """
    executor = PipelineExecutor(registry=registry, now=now, temp_id=temp_id)
    return await executor.execute(dsl, input)
