"""
Per-run execution state and evaluation context.

A RunState is created fresh for every workflow run and holds the outputs each
node has produced. An ExecutionContext binds a run state to the node currently
being evaluated; it is what the resolver, the interpolator and the clause
evaluator receive.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flowroute.core.types import Outputs
from flowroute.exceptions import OutputsAlreadySetError
from flowroute.settings import EngineSettings, get_settings
from flowroute.structure.graph import ExecutionGraph

# Namespaces resolved against the run instead of a node
RESERVED_NAMESPACES = frozenset({"input", "now", "previous", "workflow"})


@dataclass
class RunState:
    """
    Mutable state of a single workflow run.

    Params:
        run_input: Value the workflow was started with
        variables: Workflow-level variables
        run_id: Identity of the run
        started_at: Run start time, the value of the ``now`` namespace
    """

    run_input: Any = None
    variables: dict[str, Any] = field(default_factory=dict)
    run_id: str = field(default_factory=lambda: uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    outputs: dict[str, Outputs] = field(default_factory=dict)

    def set_outputs(self, node_id: str, outputs: Outputs) -> None:
        """
        Record the outputs of a node that finished executing.

        Params:
            node_id: Node that produced the outputs
            outputs: Field name to value mapping

        Raises:
            OutputsAlreadySetError: If the node already has outputs in this run
        """
        if node_id in self.outputs:
            raise OutputsAlreadySetError(node_id)
        self.outputs[node_id] = dict(outputs)

    def has_outputs(self, node_id: str) -> bool:
        return node_id in self.outputs

    def get_outputs(self, node_id: str) -> Outputs | None:
        return self.outputs.get(node_id)

    def workflow_namespace(self) -> dict[str, Any]:
        return {
            "input": self.run_input,
            "variables": self.variables,
            "run_id": self.run_id,
        }


@dataclass
class ExecutionContext:
    """
    Evaluation context for one node within one run.

    Params:
        graph: Immutable execution graph shared by all runs
        state: State of this run
        node_id: Node whose clauses and templates are being evaluated
        settings: Engine settings; the process-wide settings when omitted
    """

    graph: ExecutionGraph
    state: RunState
    node_id: str
    settings: EngineSettings = field(default_factory=get_settings)

    @property
    def strict(self) -> bool:
        return self.settings.strict_mode

    def for_node(self, node_id: str) -> "ExecutionContext":
        """Return a context for another node of the same run."""
        return ExecutionContext(
            graph=self.graph, state=self.state, node_id=node_id, settings=self.settings
        )

    def node_input(self) -> Any:
        """
        Value of the ``input`` namespace for the current node.

        The ``output`` field of the single direct upstream node, a list of
        those fields when there are several upstream nodes, or the workflow
        run input when the node has none. Upstream nodes without outputs
        (skipped branches) are left out of the list.
        """
        if not self.graph.upstream(self.node_id):
            return self.state.run_input
        return self._upstream_values(lambda outputs: outputs.get("output"))

    def previous(self) -> Any:
        """
        Value of the ``previous`` namespace for the current node.

        The whole outputs object of the single direct upstream node, a list of
        them when there are several upstream nodes, or None when the node has
        none.
        """
        if not self.graph.upstream(self.node_id):
            return None
        return self._upstream_values(dict)

    def _upstream_values(self, pick: Callable[[Outputs], Any]) -> Any:
        # The shape follows the graph, not which upstream nodes ran
        upstream = self.graph.upstream(self.node_id)
        values = [
            pick(self.state.outputs[node_id])
            for node_id in upstream
            if self.state.has_outputs(node_id)
        ]
        if len(upstream) == 1:
            return values[0] if values else None
        return values

    def now(self) -> str:
        return self.state.started_at.isoformat()
