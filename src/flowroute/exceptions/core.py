"""
Exception classes for flowroute condition routing.

This module defines specific exception types for the error conditions that can
occur while building an execution graph, resolving variables, and evaluating
condition clauses. Errors fall into three families:

- ConfigurationError: detected at graph-build time, always fatal
- ResolutionError: raised while resolving {{namespace.field}} references
- EvaluationError: raised while applying a clause operator
"""

from dataclasses import asdict, dataclass
from enum import Enum


class ErrorLevel(Enum):
    """Error message detail level for end users vs developers."""

    USER = "user"  # Node and clause identity only
    DEVELOPER = "developer"  # Adds path and operator details


@dataclass
class ErrorContext:
    """
    Context information for error messages.

    Captures where an error occurred in workflow terms so the run orchestrator
    can point the user at the offending node, path and clause.

    Params:
        node_id: Id of the node being evaluated
        path_id: Id of the Path owning the clause
        clause_id: Id of the clause that failed
        operator: Operator name of the failing clause
        template: Raw template text being interpolated
    """

    node_id: str | None = None
    path_id: str | None = None
    clause_id: str | None = None
    operator: str | None = None
    template: str | None = None

    def format_location(self, error_level: ErrorLevel) -> str:
        """
        Format location information based on error level.

        Params:
            error_level: Whether to show USER or DEVELOPER level details

        Returns:
            Formatted location string with appropriate detail level
        """
        lines = []

        if self.node_id:
            lines.append(f"  in node {self.node_id}")
        if self.clause_id:
            lines.append(f"  at clause {self.clause_id}")

        if error_level == ErrorLevel.DEVELOPER:
            if self.path_id:
                lines.append(f"  path {self.path_id}")
            if self.operator:
                lines.append(f"  operator: {self.operator}")

        if self.template:
            lines.append(f"  template: {self.template}")

        return "\n".join(lines)


class FlowRouteError(Exception):
    """Base exception for all flowroute errors."""

    context: ErrorContext | None = None
    error_level: ErrorLevel = ErrorLevel.USER

    def with_context(
        self, context: ErrorContext, error_level: ErrorLevel | None = None
    ) -> "FlowRouteError":
        """
        Attach location context to this error and extend its message.

        Context attached closest to the failure wins: when the error already
        carries a context, the new one only fills the fields still missing.

        Params:
            context: Location of the failure
            error_level: Level of detail to show in the message

        Returns:
            The same exception instance, for use in ``raise err.with_context(...)``
        """
        if self.context is None:
            self._base_message = str(self.args[0]) if self.args else ""
            merged = context
        else:
            merged = ErrorContext(
                **{
                    name: getattr(self.context, name) or getattr(context, name)
                    for name in asdict(context)
                }
            )
        self.context = merged
        if error_level is not None:
            self.error_level = error_level

        location_info = merged.format_location(self.error_level)
        message = self._base_message
        if location_info:
            message = f"{message}\n{location_info}"
        self.args = (message,) + self.args[1:]
        return self


class ConfigurationError(FlowRouteError):
    """Raised at graph-build time when a workflow cannot be run."""

    pass


class ResolutionError(FlowRouteError):
    """Base exception for variable resolution failures."""

    pass


class EvaluationError(FlowRouteError):
    """Base exception for clause evaluation failures."""

    pass


class DuplicateDisplayNameError(ConfigurationError):
    """Raised when two nodes share a display name within one workflow."""

    def __init__(self, display_name: str, node_ids: list[str]):
        """
        Initialize the exception.

        Params:
            display_name: The display name claimed more than once
            node_ids: Ids of every node using that display name
        """
        self.display_name = display_name
        self.node_ids = node_ids
        super().__init__(
            f"Display name '{display_name}' is used by multiple nodes: {', '.join(node_ids)}"
        )


class DuplicateNodeIdError(ConfigurationError):
    """Raised when two nodes share an id."""

    def __init__(self, node_id: str):
        """
        Initialize the exception.

        Params:
            node_id: The repeated node id
        """
        self.node_id = node_id
        super().__init__(f"Node id '{node_id}' is used more than once")


class ReferenceCycleError(ConfigurationError):
    """Raised when edges or variable references form a cycle."""

    def __init__(self, node_ids: list[str], reason: str = "edges form a cycle"):
        """
        Initialize the exception.

        Params:
            node_ids: Nodes participating in the cycle
            reason: What closes the cycle
        """
        self.node_ids = node_ids
        self.reason = reason
        super().__init__(
            f"Circular dependency between nodes {', '.join(node_ids)}: {reason}"
        )


class UnknownNodeError(ConfigurationError):
    """Raised when an edge references a node that is not part of the workflow."""

    def __init__(self, node_id: str, edge: str):
        """
        Initialize the exception.

        Params:
            node_id: The missing node id
            edge: Description of the edge referencing it
        """
        self.node_id = node_id
        self.edge = edge
        super().__init__(f"Edge {edge} references unknown node '{node_id}'")


class InvalidPathLayoutError(ConfigurationError):
    """Raised when a condition node's paths violate the If/Else layout."""

    def __init__(self, node_id: str | None, reason: str):
        """
        Initialize the exception.

        Params:
            node_id: The condition node with the invalid layout
            reason: Why the layout is invalid
        """
        self.node_id = node_id
        self.reason = reason
        target = f"condition node '{node_id}'" if node_id else "condition paths"
        super().__init__(f"Invalid layout for {target}: {reason}")


class InvalidConditionConfigError(ConfigurationError):
    """Raised when a condition node's params cannot be read as routing configuration."""

    def __init__(self, node_id: str, reason: str):
        """
        Initialize the exception.

        Params:
            node_id: The condition node with malformed params
            reason: What failed to parse
        """
        self.node_id = node_id
        self.reason = reason
        super().__init__(f"Invalid condition configuration in node '{node_id}': {reason}")


class UnknownBranchError(ConfigurationError):
    """Raised when an edge leaves a condition node through a path it does not have."""

    def __init__(self, node_id: str, edge: str, branch_id: str):
        """
        Initialize the exception.

        Params:
            node_id: The condition node the edge leaves
            edge: Description of the edge
            branch_id: Path id named by the edge's source handle
        """
        self.node_id = node_id
        self.edge = edge
        self.branch_id = branch_id
        super().__init__(
            f"Edge {edge} leaves condition node '{node_id}' through unknown path '{branch_id}'"
        )


class MissingClauseValueError(ConfigurationError):
    """Raised when a clause operator requires a comparison value but has none."""

    def __init__(self, clause_id: str, operator: str):
        """
        Initialize the exception.

        Params:
            clause_id: The clause missing its value
            operator: Operator that needs a right-hand value
        """
        self.clause_id = clause_id
        self.operator = operator
        super().__init__(
            f"Clause '{clause_id}' uses operator '{operator}' which requires a comparison value"
        )


class UnknownVariableError(ResolutionError):
    """Raised when a reference's namespace matches no upstream node."""

    def __init__(self, ref: str, namespace: str, available: list[str] | None = None):
        """
        Initialize the exception.

        Params:
            ref: The full reference that failed to resolve
            namespace: Namespace portion of the reference
            available: Namespaces that were in scope, for the message
        """
        self.ref = ref
        self.namespace = namespace
        self.available = available or []
        message = f"Unknown variable '{ref}': no upstream node named '{namespace}'"
        if self.available:
            message += f". Available: {', '.join(sorted(self.available))}"
        super().__init__(message)


class NotYetComputedError(ResolutionError):
    """Raised when a referenced node has not produced outputs yet."""

    def __init__(self, ref: str, node_id: str):
        """
        Initialize the exception.

        Params:
            ref: The reference being resolved
            node_id: Id of the node that has not executed
        """
        self.ref = ref
        self.node_id = node_id
        super().__init__(
            f"Variable '{ref}' refers to node '{node_id}' which has not produced outputs yet"
        )


class AmbiguousNamespaceError(ResolutionError):
    """Raised when a namespace matches more than one upstream node."""

    def __init__(self, namespace: str, node_ids: list[str]):
        """
        Initialize the exception.

        Params:
            namespace: The ambiguous namespace
            node_ids: Ids of all nodes claiming it
        """
        self.namespace = namespace
        self.node_ids = node_ids
        super().__init__(
            f"Namespace '{namespace}' is ambiguous: claimed by nodes {', '.join(node_ids)}"
        )


class TypeMismatchError(EvaluationError):
    """Raised when a left-hand value cannot be coerced to the operator's type."""

    def __init__(self, operator: str, expected: str, value: object):
        """
        Initialize the exception.

        Params:
            operator: The operator being applied
            expected: Description of the type the operator needs
            value: The offending value
        """
        self.operator = operator
        self.expected = expected
        self.value = value
        super().__init__(
            f"Operator '{operator}' expects {expected}, got {value!r}"
        )


class InvalidOperandError(EvaluationError):
    """Raised for unknown operators or unparseable right-hand values."""

    def __init__(self, operator: str, operand: object, reason: str):
        """
        Initialize the exception.

        Params:
            operator: The operator being applied
            operand: The invalid operand (or operator name)
            reason: Why the operand is invalid
        """
        self.operator = operator
        self.operand = operand
        self.reason = reason
        super().__init__(f"Invalid operand {operand!r} for '{operator}': {reason}")


class NodeExecutionError(FlowRouteError):
    """Raised when a node executor fails; the original error is chained."""

    def __init__(self, node_id: str, reason: str):
        """
        Initialize the exception.

        Params:
            node_id: The node whose executor failed
            reason: Description of the failure
        """
        self.node_id = node_id
        self.reason = reason
        super().__init__(f"Node '{node_id}' failed: {reason}")


class OutputsAlreadySetError(FlowRouteError):
    """Raised when a node's outputs are written twice within one run."""

    def __init__(self, node_id: str):
        """
        Initialize the exception.

        Params:
            node_id: The node whose outputs were already recorded
        """
        self.node_id = node_id
        super().__init__(f"Outputs of node '{node_id}' were already recorded for this run")


class RunCancelledError(FlowRouteError):
    """Raised when a workflow run is cancelled between nodes."""

    def __init__(self, next_node_id: str | None = None):
        """
        Initialize the exception.

        Params:
            next_node_id: The node that would have run next
        """
        self.next_node_id = next_node_id
        suffix = f" before node '{next_node_id}'" if next_node_id else ""
        super().__init__(f"Workflow run cancelled{suffix}")
