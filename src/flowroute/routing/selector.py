"""
Path selection for condition nodes.

Paths are tried in author order, excluding the terminal Else path; the first
Path whose combined predicate holds is selected, otherwise the Else path is.
Author order is the only tie-break: evaluation stops at the first match.

Failure policy is explicit. In strict mode (the default) any resolution or
evaluation error propagates and halts the run. In non-strict mode the error
is logged with its clause id and the owning Path is treated as not matching,
never as matching.
"""

import logging
from collections.abc import Sequence

from attrs import frozen

from flowroute.core.models import LogicalOperator, Path
from flowroute.exceptions import (
    ErrorContext,
    EvaluationError,
    FlowRouteError,
    InvalidPathLayoutError,
    ResolutionError,
)
from flowroute.execution.context import ExecutionContext
from flowroute.execution.resolution import VariableResolver
from flowroute.routing.clauses import evaluate_clause

logger = logging.getLogger(__name__)


@frozen
class PathSelection:
    """Outcome of a routing decision.

    ``matched`` is False exactly when the Else path was taken.
    """

    path_id: str
    path_name: str
    matched: bool
    variable_name: str | None = None

    def as_output(self) -> dict:
        """Output object exposed to downstream nodes and the canvas."""
        return {"matched": self.matched, "pathId": self.path_id, "pathName": self.path_name}


def check_path_layout(paths: Sequence[Path], node_id: str | None = None) -> None:
    """
    Enforce the If/Else layout of a condition node.

    Raises:
        InvalidPathLayoutError: If there are fewer than two paths or the
            terminal Else path has clauses
    """
    if len(paths) < 2:
        raise InvalidPathLayoutError(node_id, f"expected at least two paths, got {len(paths)}")
    if paths[-1].clauses:
        raise InvalidPathLayoutError(
            node_id, f"else path '{paths[-1].label}' must not have clauses"
        )


def evaluate_path(
    path: Path, context: ExecutionContext, resolver: VariableResolver | None = None
) -> bool:
    """
    Combine the clauses of one Path.

    AND requires every clause, OR any clause; both short-circuit. A Path
    without clauses always holds.

    Params:
        path: Path to evaluate
        context: Evaluation context of the condition node
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        Whether the Path's predicate holds
    """
    if not path.clauses:
        return True
    results = (evaluate_clause(clause, context, path.id, resolver) for clause in path.clauses)
    if path.logical_operator is LogicalOperator.OR:
        return any(results)
    return all(results)


def select_path(
    paths: Sequence[Path],
    context: ExecutionContext,
    *,
    strict: bool | None = None,
    variable_name: str | None = None,
    resolver: VariableResolver | None = None,
) -> PathSelection:
    """
    Select the branch a condition node activates.

    Params:
        paths: Paths in author order, the last one being the Else path
        context: Evaluation context of the condition node
        strict: Failure policy; the context's settings decide when omitted
        variable_name: Output variable declared by the node
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        PathSelection naming exactly one path

    Raises:
        InvalidPathLayoutError: If the If/Else layout is violated
        ResolutionError: In strict mode, if a reference cannot be resolved
        EvaluationError: In strict mode, if a clause cannot be evaluated
    """
    check_path_layout(paths, context.node_id)
    strict = context.strict if strict is None else strict

    for path in paths[:-1]:
        try:
            holds = evaluate_path(path, context, resolver)
        except (ResolutionError, EvaluationError) as e:
            if strict:
                raise e.with_context(ErrorContext(node_id=context.node_id, path_id=path.id))
            clause_id = e.context.clause_id if e.context else None
            logger.warning(
                "Path %s of node %s treated as not matching: clause %s failed: %s",
                path.id,
                context.node_id,
                clause_id,
                e,
            )
            continue
        except FlowRouteError as e:
            raise e.with_context(ErrorContext(node_id=context.node_id, path_id=path.id))

        if holds:
            logger.info("Node %s selected path %s (%s)", context.node_id, path.id, path.label)
            return PathSelection(path.id, path.name, True, variable_name)

    else_path = paths[-1]
    logger.info("Node %s fell through to else path %s", context.node_id, else_path.id)
    return PathSelection(else_path.id, else_path.name, False, variable_name)


def selection_outputs(selection: PathSelection) -> dict:
    """
    Outputs recorded for a condition node after routing.

    Exposes the selection at the top level (``{{node.pathName}}``), under the
    node's declared variable name, and as ``condition_met``.
    """
    outputs = selection.as_output()
    outputs["condition_met"] = selection.matched
    outputs["output"] = selection.path_name
    if selection.variable_name:
        outputs[selection.variable_name] = selection.as_output()
    return outputs


def apply_selection(context: ExecutionContext, selection: PathSelection) -> dict:
    """
    Record a routing decision as the condition node's outputs.

    Params:
        context: Evaluation context of the condition node
        selection: Decision returned by select_path

    Returns:
        The outputs written to the run state
    """
    outputs = selection_outputs(selection)
    context.state.set_outputs(context.node_id, outputs)
    return outputs
