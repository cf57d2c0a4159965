"""
Tests for variable resolution against the execution graph and run outputs.
"""

import pytest

from flowroute.core.models import Edge, Node
from flowroute.exceptions import (
    AmbiguousNamespaceError,
    NotYetComputedError,
    UnknownVariableError,
)
from flowroute.execution.resolution import VariableResolver, resolve
from flowroute.structure.graph import ExecutionGraph

OUTPUTS = {
    "input-1": {"text": "hello", "output": "hello"},
    "openai-1": {
        "response": "Approved",
        "output": "Approved",
        "json": {"data": {"name": "Ada", "scores": [3, 9]}},
        "prompt_tokens": 12,
    },
}


class TestResolveNodeReferences:
    """Test references to upstream node outputs."""

    def test_display_name(self, make_context, linear_graph):
        """Nodes are addressed by display name."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("summarizer.response", context) == "Approved"

    def test_raw_id(self, make_context, linear_graph):
        """Nodes are addressed by raw id too."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("openai-1.prompt_tokens", context) == 12

    def test_transitive_upstream(self, make_context, linear_graph):
        """Any transitive ancestor is in scope, not just direct ones."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("input_1.text", context) == "hello"

    def test_nested_paths(self, make_context, linear_graph):
        """Field paths descend into objects and arrays and keep value types."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("summarizer.json.data.name", context) == "Ada"
        assert resolve("summarizer.json.data.scores.1", context) == 9
        assert resolve("summarizer.json.data", context) == {"name": "Ada", "scores": [3, 9]}

    def test_whole_outputs(self, make_context, linear_graph):
        """A bare namespace yields all outputs of the node."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("input_1", context) == OUTPUTS["input-1"]

    def test_missing_field_is_null(self, make_context, linear_graph):
        """Fields missing from a node's outputs resolve to None."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("summarizer.nonexistent", context) is None

    def test_whitespace_trimmed(self, make_context, linear_graph):
        """Surrounding whitespace in a reference is ignored."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("  summarizer.response ", context) == "Approved"


class TestResolutionErrors:
    """Test references that cannot be resolved."""

    def test_unknown_namespace(self, make_context, linear_graph):
        """Names matching no upstream node raise with the names in scope."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        with pytest.raises(UnknownVariableError) as exc_info:
            resolve("missing.field", context)

        assert exc_info.value.namespace == "missing"
        assert "summarizer" in exc_info.value.available

    def test_unrelated_node_not_in_scope(self, make_context, linear_graph):
        """Nodes that are not upstream are unknown even when they exist."""
        context = make_context(linear_graph, "condition-1", {**OUTPUTS, "note-1": {"output": "x"}})

        with pytest.raises(UnknownVariableError):
            resolve("note_1.output", context)

    def test_downstream_node_not_in_scope(self, make_context, linear_graph):
        """Downstream nodes are never resolvable from upstream."""
        context = make_context(linear_graph, "openai-1", OUTPUTS)

        with pytest.raises(UnknownVariableError):
            resolve("condition_1.matched", context)

    def test_not_yet_computed(self, make_context, linear_graph):
        """Upstream nodes without outputs raise NotYetComputed."""
        context = make_context(linear_graph, "condition-1", {"input-1": OUTPUTS["input-1"]})

        with pytest.raises(NotYetComputedError) as exc_info:
            resolve("summarizer.response", context)

        assert exc_info.value.node_id == "openai-1"

    def test_ambiguous_namespace(self, make_context):
        """Namespaces owned by several upstream nodes raise."""
        graph = ExecutionGraph(
            [
                Node(id="a", type="openai", display_name="writer"),
                Node(id="b", type="gemini", display_name="writer"),
                Node(id="c", type="condition"),
            ],
            [Edge(source="a", target="c"), Edge(source="b", target="c")],
        )
        context = make_context(graph, "c", {"a": {"output": 1}, "b": {"output": 2}})

        with pytest.raises(AmbiguousNamespaceError):
            resolve("writer.output", context)

    def test_empty_reference(self, make_context, linear_graph):
        """An empty reference names nothing."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        with pytest.raises(UnknownVariableError):
            resolve("", context)


class TestReservedNamespaces:
    """Test input, now, previous and workflow."""

    def test_input(self, make_context, linear_graph):
        """input is the upstream output value."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("input", context) == "Approved"

    def test_input_field_path(self, make_context, linear_graph):
        """Field paths apply to structured input."""
        context = make_context(linear_graph, "input-1", run_input={"user": {"tier": "gold"}})

        assert resolve("input.user.tier", context) == "gold"

    def test_now(self, make_context, linear_graph):
        """now is the run's start timestamp."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("now", context) == context.state.started_at.isoformat()

    def test_workflow(self, make_context, linear_graph):
        """workflow exposes the run input, variables and run id."""
        context = make_context(linear_graph, "condition-1", OUTPUTS, run_input="start", variables={"limit": 3})

        assert resolve("workflow.input", context) == "start"
        assert resolve("workflow.variables.limit", context) == 3
        assert resolve("workflow.run_id", context) == context.state.run_id

    def test_previous(self, make_context, linear_graph):
        """previous is the whole outputs object of the direct upstream node."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert resolve("previous", context) == OUTPUTS["openai-1"]
        assert resolve("previous.response", context) == "Approved"
        assert resolve("previous.json.data.scores.1", context) == 9

    def test_previous_several_upstream(self, make_context):
        """Several upstream nodes are indexed in edge order."""
        graph = ExecutionGraph(
            [Node(id="a", type="openai"), Node(id="b", type="gemini"), Node(id="m", type="merge")],
            [Edge(source="a", target="m"), Edge(source="b", target="m")],
        )
        context = make_context(graph, "m", {"a": {"output": "first"}, "b": {"output": "second"}})

        assert resolve("previous.1.output", context) == "second"

    def test_previous_of_entry_node(self, make_context, linear_graph):
        """Entry nodes resolve previous to None."""
        context = make_context(linear_graph, "input-1", run_input="start")

        assert resolve("previous", context) is None
        assert resolve("previous.output", context) is None

    def test_reserved_name_shadows_node(self, make_context):
        """A node displayed as input is shadowed by the reserved namespace."""
        graph = ExecutionGraph(
            [Node(id="a", type="openai", display_name="input"), Node(id="c", type="condition")],
            [Edge(source="a", target="c")],
        )
        context = make_context(graph, "c", {"a": {"output": "from node", "response": "r"}})

        assert resolve("input.response", context) is None
        assert resolve("a.response", context) == "r"

    def test_custom_resolver_instance(self, make_context, linear_graph):
        """Resolvers are stateless and interchangeable."""
        context = make_context(linear_graph, "condition-1", OUTPUTS)

        assert VariableResolver().resolve("summarizer.output", context) == "Approved"
