"""
Build-time validation of workflows.

Configuration errors are detected before any run starts and block it:
duplicate display names, cycles (in edges, or through references to
downstream nodes), broken condition layouts, clauses without a required
value, unknown operators and literal operands that can never parse. Operands
containing ``{{...}}`` references are only known at run time and are checked
there.
"""

import logging

from flowroute.core.models import Clause, Node
from flowroute.exceptions import (
    DuplicateDisplayNameError,
    MissingClauseValueError,
    ReferenceCycleError,
    UnknownBranchError,
)
from flowroute.execution.context import RESERVED_NAMESPACES
from flowroute.routing.operators import OperatorKind, validate_operand
from flowroute.routing.selector import check_path_layout
from flowroute.settings import EngineSettings, get_settings
from flowroute.structure.graph import ExecutionGraph
from flowroute.structure.schema_registry import OutputSchemaRegistry
from flowroute.templates.references import find_references, has_references

logger = logging.getLogger(__name__)


def validate_display_names(graph: ExecutionGraph) -> None:
    """
    Ensure every display name is unique within the workflow.

    Raises:
        DuplicateDisplayNameError: If two nodes share a display name
    """
    owners: dict[str, list[str]] = {}
    for node in graph.nodes:
        owners.setdefault(node.namespace, []).append(node.id)

    for namespace, node_ids in owners.items():
        if len(node_ids) > 1:
            raise DuplicateDisplayNameError(namespace, node_ids)
        if namespace in RESERVED_NAMESPACES:
            logger.warning(
                "Node %s is named '%s', which is reserved; reference it by id instead",
                node_ids[0],
                namespace,
            )


def validate_clause(clause: Clause, settings: EngineSettings | None = None) -> OperatorKind:
    """
    Check one clause for configuration errors.

    Params:
        clause: Clause to check
        settings: Engine settings used to parse literal dates

    Returns:
        The clause's operator

    Raises:
        InvalidOperandError: If the operator is unknown or a literal value is malformed
        MissingClauseValueError: If a required value is missing
    """
    operator = OperatorKind.parse(clause.operator)
    if not operator.requires_value:
        return operator
    if not clause.value:
        raise MissingClauseValueError(clause.id, operator.value)
    if not has_references(clause.value):
        validate_operand(operator, clause.value, settings)
    return operator


def _node_templates(node: Node) -> list[str]:
    if node.is_condition:
        templates = []
        for path in node.condition_config().paths:
            for clause in path.clauses:
                templates.extend([clause.value, clause.input_field])
        return templates
    return [value for value in node.params.values() if isinstance(value, str)]


def _clause_namespaces(node: Node) -> list[str]:
    namespaces = []
    for path in node.condition_config().paths:
        for clause in path.clauses:
            if not has_references(clause.input_field):
                namespaces.append(clause.input_field.split(".", 1)[0].strip())
    return namespaces


def validate_references(
    graph: ExecutionGraph, registry: OutputSchemaRegistry | None = None
) -> None:
    """
    Check the references each node makes to other nodes.

    A reference to a node downstream of the referencing node closes a cycle
    and is fatal. A reference to an upstream field the node's schema does not
    declare is only logged, since outputs are allowed to vary. Unknown
    namespaces are left to run time, where they raise UnknownVariableError.

    Raises:
        ReferenceCycleError: If a node references a node that depends on it
    """
    for node in graph.nodes:
        references = [ref for text in _node_templates(node) for ref in find_references(text)]
        namespaces = [ref.split(".", 1)[0].strip() for ref in references]
        if node.is_condition:
            namespaces.extend(_clause_namespaces(node))

        for namespace in namespaces:
            if namespace in RESERVED_NAMESPACES:
                continue
            for owner_id in graph.find_namespace_owners(namespace):
                if owner_id == node.id or graph.is_upstream(node.id, owner_id):
                    raise ReferenceCycleError(
                        [node.id, owner_id],
                        f"node '{node.id}' references '{namespace}' which depends on it",
                    )

        if registry is None:
            continue
        for ref in references:
            namespace, _, field_path = ref.partition(".")
            owners = graph.find_namespace_owners(namespace.strip())
            if len(owners) != 1 or not field_path:
                continue
            owner = graph.node(owners[0])
            if registry.is_registered(owner.type) and not registry.declares(owner, field_path):
                logger.warning(
                    "Node %s references '%s' but %s nodes do not declare field '%s'",
                    node.id,
                    ref,
                    owner.type,
                    field_path.split(".", 1)[0],
                )


def validate_condition_nodes(graph: ExecutionGraph, settings: EngineSettings | None = None) -> None:
    """
    Check the layout, branch edges and clauses of every condition node.

    Raises:
        InvalidConditionConfigError: If a node's params are not valid routing configuration
        InvalidPathLayoutError: If a node has fewer than two paths or an Else path with clauses
        UnknownBranchError: If an outgoing edge names a path the node does not have
        MissingClauseValueError: If a clause lacks a required value
        InvalidOperandError: If a clause has an unknown operator or malformed literal value
    """
    for node in graph.nodes:
        if not node.is_condition:
            continue
        config = node.condition_config()
        check_path_layout(config.paths, node.id)
        path_ids = {path.id for path in config.paths}
        for edge in graph.outgoing_edges(node.id):
            # Edges without a handle stay unconditional
            if edge.branch_id is not None and edge.branch_id not in path_ids:
                raise UnknownBranchError(node.id, str(edge), edge.branch_id)
        for path in config.candidate_paths:
            if not path.clauses:
                logger.warning(
                    "Path %s of node %s has no clauses and always matches", path.id, node.id
                )
            for clause in path.clauses:
                validate_clause(clause, settings)


def validate_workflow(
    graph: ExecutionGraph,
    registry: OutputSchemaRegistry | None = None,
    settings: EngineSettings | None = None,
) -> None:
    """
    Run every build-time check, raising the first configuration error found.

    Params:
        graph: Graph to validate
        registry: Output schema registry for undeclared-field warnings
        settings: Engine settings; the process-wide settings when omitted

    Raises:
        ConfigurationError: If the workflow cannot be run
        InvalidOperandError: If a literal clause operand is malformed
    """
    settings = settings or get_settings()
    validate_display_names(graph)
    graph.topological_order()
    validate_condition_nodes(graph, settings)
    validate_references(graph, registry)
