"""
Workflow data models for flowroute.

Nodes, edges and condition configuration as authored in the editor. All models
are frozen: paths and clauses are immutable at run time, and per-run outputs
live in the run state rather than on the node.
"""

from enum import Enum
from typing import Any

from inflection import parameterize, underscore
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from flowroute.core.types import format_value
from flowroute.exceptions import InvalidConditionConfigError

CONDITION_NODE_TYPE = "condition"

# Canvas handle ids of condition branches are "handle-<path id>"
BRANCH_HANDLE_PREFIX = "handle-"


class _Model(BaseModel):
    """Base model accepting both editor camelCase and snake_case keys."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel
    )


class LogicalOperator(Enum):
    """How the clauses of a Path are combined."""

    AND = "AND"
    OR = "OR"


class Clause(_Model):
    """
    A single comparison predicate inside a Path.

    Params:
        id: Clause identity, used in error reports and logs
        input_field: Dot-path reference or template for the left-hand value
        operator: Operator name as authored (validated against OperatorKind)
        value: Raw right-hand value, may contain {{...}} references
    """

    id: str
    input_field: str = "input"
    operator: str = "=="
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, value: Any) -> str:
        if isinstance(value, str):
            return value
        return format_value(value)


class Path(_Model):
    """One branch of a condition node's routing decision."""

    id: str
    name: str = ""
    clauses: tuple[Clause, ...] = ()
    logical_operator: LogicalOperator = LogicalOperator.AND

    @field_validator("logical_operator", mode="before")
    @classmethod
    def _upper_operator(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def label(self) -> str:
        return self.name or self.id


class ConditionConfig(_Model):
    """Routing configuration of a condition node: ordered paths plus output variable."""

    paths: tuple[Path, ...] = ()
    variable_name: str | None = None

    @property
    def else_path(self) -> Path | None:
        return self.paths[-1] if self.paths else None

    @property
    def candidate_paths(self) -> tuple[Path, ...]:
        return self.paths[:-1]


def default_display_name(node_id: str, node_type: str) -> str:
    """
    Derive the slug a node is addressed by when no display name was authored.

    Mirrors the editor: the underscored node type followed by the trailing
    dash-separated segment of the node id (``kb-search-3`` -> ``kb_search_3``).

    Params:
        node_id: Node identity
        node_type: Node kind

    Returns:
        Derived display name
    """
    suffix = node_id.rsplit("-", 1)[-1] if "-" in node_id else "0"
    base = parameterize(underscore(node_type or "node"), separator="_")
    return f"{base}_{suffix}"


class Node(_Model):
    """
    A workflow node.

    Params:
        id: Unique node identity
        type: Node kind (e.g. "input", "openai", "condition")
        display_name: User-editable name used as the {{namespace}} of references
        label: Canvas label
        params: Authored configuration
        output_fields: Explicitly declared output field names, if any
    """

    id: str
    type: str
    display_name: str | None = None
    label: str = ""
    params: dict[str, Any] = Field(default_factory=dict)
    output_fields: tuple[str, ...] = ()

    @property
    def namespace(self) -> str:
        """Name used in {{namespace.field}} references."""
        return self.display_name or default_display_name(self.id, self.type)

    @property
    def is_condition(self) -> bool:
        return self.type.lower() == CONDITION_NODE_TYPE

    def condition_config(self) -> ConditionConfig:
        """
        Parse this node's params as condition routing configuration.

        Returns:
            ConditionConfig with the editor's default variable name applied

        Raises:
            InvalidConditionConfigError: If the params are not valid routing configuration
        """
        try:
            config = ConditionConfig.model_validate(self.params)
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'params'}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidConditionConfigError(self.id, reason) from e
        if config.variable_name:
            return config
        return config.model_copy(update={"variable_name": f"condition_{self.id[:4]}"})


class Edge(_Model):
    """
    Directed connection between two nodes.

    ``source_handle`` carries the Path id when the edge leaves a condition
    node through one of its branches.
    """

    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"

    @property
    def branch_id(self) -> str | None:
        """Path id of the condition branch this edge leaves through, if any."""
        if self.source_handle and self.source_handle.startswith(BRANCH_HANDLE_PREFIX):
            return self.source_handle[len(BRANCH_HANDLE_PREFIX) :]
        return self.source_handle


class Workflow(_Model):
    """An authored workflow: nodes and edges."""

    id: str = ""
    name: str = ""
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
