"""
Workflow run orchestration.

Walks the execution graph in topological order. Integration nodes run through
executors supplied by the caller (sync or async; they are awaited before any
dependent variable is resolved). Condition nodes run the path selector, and
nodes reachable only through untaken branches are skipped.

Each run owns its RunState; the graph is the only object shared between
concurrent runs and it is never mutated. Cancellation is checked between
nodes, never in the middle of a clause.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flowroute.core.models import Node
from flowroute.core.types import Outputs
from flowroute.exceptions import FlowRouteError, NodeExecutionError, RunCancelledError
from flowroute.execution.context import ExecutionContext, RunState
from flowroute.routing.selector import PathSelection, apply_selection, select_path
from flowroute.settings import EngineSettings, get_settings
from flowroute.structure.graph import ExecutionGraph
from flowroute.structure.schema_registry import OutputSchemaRegistry

logger = logging.getLogger(__name__)

NodeExecutor = Callable[[Node, ExecutionContext], Outputs | Awaitable[Outputs]]

# Executor key used for node types without a dedicated executor
FALLBACK_EXECUTOR = "*"


class RunStatus(Enum):
    """Final status of a workflow run."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class RunResult:
    """
    Outcome of a workflow run.

    Outputs of the nodes that finished are kept even when the run failed or
    was cancelled, for debugging.

    Params:
        run_id: Identity of the run
        status: Final status
        outputs: Outputs per node id
        selections: Routing decision per condition node id
        skipped: Nodes left out because their branch was not taken
        error: Error that halted the run, if any
    """

    run_id: str
    status: RunStatus
    outputs: dict[str, Outputs] = field(default_factory=dict)
    selections: dict[str, PathSelection] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    error: FlowRouteError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.COMPLETED


def passthrough_executor(node: Node, context: ExecutionContext) -> Outputs:
    """Executor that forwards the node's input as its ``output`` field."""
    return {"output": context.node_input()}


class WorkflowRunner:
    """
    Runs workflows over one execution graph.

    Params:
        graph: Built (and validated) execution graph
        executors: Executor per node type; ``"*"`` is used for types
            without a dedicated executor
        settings: Engine settings; the process-wide settings when omitted
        registry: Output schema registry used to report missing output fields
    """

    def __init__(
        self,
        graph: ExecutionGraph,
        executors: Mapping[str, NodeExecutor] | None = None,
        settings: EngineSettings | None = None,
        registry: OutputSchemaRegistry | None = None,
    ):
        self.graph = graph
        self.executors = {key.lower(): value for key, value in (executors or {}).items()}
        self.settings = settings or get_settings()
        self.registry = registry

    async def run(
        self,
        run_input: Any = None,
        variables: dict[str, Any] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        strict: bool | None = None,
    ) -> RunResult:
        """
        Execute the workflow once.

        Params:
            run_input: Value the workflow is started with (``{{workflow.input}}``)
            variables: Workflow variables (``{{workflow.variables.*}}``)
            cancel_event: When set, the run stops before the next node
            strict: Overrides the configured failure policy for this run

        Returns:
            RunResult with the final status, outputs and routing decisions
        """
        settings = self.settings
        if strict is not None:
            settings = settings.model_copy(update={"strict_mode": strict})

        state = RunState(run_input=run_input, variables=dict(variables or {}))
        result = RunResult(run_id=state.run_id, status=RunStatus.COMPLETED, outputs=state.outputs)
        logger.info("Run %s started (%d nodes)", state.run_id, len(self.graph))

        for node_id in self.graph.topological_order():
            if cancel_event is not None and cancel_event.is_set():
                result.status = RunStatus.CANCELLED
                result.error = RunCancelledError(node_id)
                logger.info("Run %s cancelled before node %s", state.run_id, node_id)
                return result

            if not self._is_active(node_id, state, result.selections):
                logger.debug("Run %s skipped node %s (branch not taken)", state.run_id, node_id)
                result.skipped.append(node_id)
                continue

            context = ExecutionContext(self.graph, state, node_id, settings)
            try:
                await self._run_node(self.graph.node(node_id), context, result)
            except FlowRouteError as e:
                logger.error("Run %s halted at node %s: %s", state.run_id, node_id, e)
                result.status = RunStatus.FAILED
                result.error = e
                return result

        logger.info("Run %s completed", state.run_id)
        return result

    async def _run_node(self, node: Node, context: ExecutionContext, result: RunResult) -> None:
        if node.is_condition:
            config = node.condition_config()
            selection = select_path(config.paths, context, variable_name=config.variable_name)
            apply_selection(context, selection)
            result.selections[node.id] = selection
            return

        outputs = await self._execute(node, context)
        context.state.set_outputs(node.id, outputs)
        if self.registry is not None:
            missing = [
                name for name in self.registry.field_names(node) if name not in outputs
            ]
            if missing:
                logger.debug("Node %s did not produce declared fields %s", node.id, missing)

    async def _execute(self, node: Node, context: ExecutionContext) -> Outputs:
        executor = self.executors.get(node.type.lower()) or self.executors.get(
            FALLBACK_EXECUTOR, passthrough_executor
        )
        try:
            outputs = executor(node, context)
            if inspect.isawaitable(outputs):
                outputs = await outputs
        except FlowRouteError:
            raise
        except Exception as e:
            raise NodeExecutionError(node.id, str(e) or type(e).__name__) from e

        if outputs is None:
            return {}
        if not isinstance(outputs, Mapping):
            raise NodeExecutionError(
                node.id, f"executor returned {type(outputs).__name__}, expected a mapping"
            )
        return dict(outputs)

    def _is_active(
        self, node_id: str, state: RunState, selections: Mapping[str, PathSelection]
    ) -> bool:
        incoming = self.graph.incoming_edges(node_id)
        if not incoming:
            return True
        for edge in incoming:
            if not state.has_outputs(edge.source):
                continue
            selection = selections.get(edge.source)
            if selection is None or edge.branch_id is None:
                return True
            if edge.branch_id == selection.path_id:
                return True
        return False
