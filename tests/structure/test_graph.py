"""
Tests for the execution graph: construction, ordering and namespaces.
"""

import pytest

from flowroute.core.models import Edge, Node
from flowroute.exceptions import (
    AmbiguousNamespaceError,
    DuplicateNodeIdError,
    ReferenceCycleError,
    UnknownNodeError,
)
from flowroute.structure.graph import ExecutionGraph


def _graph(node_specs, edge_pairs):
    nodes = [Node(id=node_id, type=node_type, display_name=name) for node_id, node_type, name in node_specs]
    edges = [Edge(source=source, target=target) for source, target in edge_pairs]
    return ExecutionGraph(nodes, edges)


class TestConstruction:
    """Test structural checks made while building the graph."""

    def test_duplicate_node_id(self):
        """Node ids must be unique."""
        with pytest.raises(DuplicateNodeIdError):
            ExecutionGraph([Node(id="a", type="input"), Node(id="a", type="openai")], [])

    def test_edge_to_unknown_node(self):
        """Edges must connect nodes of the workflow."""
        with pytest.raises(UnknownNodeError) as exc_info:
            ExecutionGraph([Node(id="a", type="input")], [Edge(source="a", target="ghost")])

        assert exc_info.value.node_id == "ghost"
        assert "a -> ghost" in str(exc_info.value)

    def test_node_lookup(self, linear_graph):
        """Nodes are retrieved by id; unknown ids raise."""
        assert linear_graph.node("openai-1").display_name == "summarizer"
        assert "openai-1" in linear_graph
        assert len(linear_graph) == 4
        with pytest.raises(UnknownNodeError):
            linear_graph.node("ghost")


class TestNeighbours:
    """Test upstream, downstream and ancestor queries."""

    def test_direct_neighbours(self, linear_graph):
        """Direct neighbours follow edge order."""
        assert linear_graph.upstream("condition-1") == ["openai-1"]
        assert linear_graph.downstream("input-1") == ["openai-1"]
        assert linear_graph.upstream("note-1") == []

    def test_parallel_edges_deduplicated(self):
        """Two edges between the same nodes count once."""
        graph = _graph([("a", "input", None), ("b", "merge", None)], [("a", "b"), ("a", "b")])

        assert graph.upstream("b") == ["a"]

    def test_ancestors_nearest_first(self, linear_graph):
        """Ancestors are transitive and ordered by distance."""
        assert linear_graph.ancestors("condition-1") == ("openai-1", "input-1")
        assert linear_graph.is_upstream("input-1", "condition-1")
        assert not linear_graph.is_upstream("note-1", "condition-1")

    def test_diamond_ancestors_unique(self):
        """Nodes reachable twice are listed once."""
        graph = _graph(
            [("a", "input", None), ("b", "openai", None), ("c", "gemini", None), ("d", "merge", None)],
            [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")],
        )

        assert graph.ancestors("d") == ("b", "c", "a")


class TestTopologicalOrder:
    """Test evaluation order."""

    def test_upstream_before_downstream(self, linear_graph):
        """Every node follows its upstream nodes."""
        order = linear_graph.topological_order()

        assert order.index("input-1") < order.index("openai-1") < order.index("condition-1")
        assert set(order) == {"input-1", "openai-1", "condition-1", "note-1"}

    def test_ties_follow_declaration_order(self):
        """Independent nodes keep their declaration order."""
        graph = _graph([("z", "input", None), ("a", "input", None), ("m", "merge", None)], [("z", "m"), ("a", "m")])

        assert graph.topological_order() == ("z", "a", "m")

    def test_cycle_detected(self):
        """Cyclic edges raise with the nodes involved."""
        graph = _graph(
            [("a", "input", None), ("b", "openai", None), ("c", "condition", None)],
            [("a", "b"), ("b", "c"), ("c", "b")],
        )

        with pytest.raises(ReferenceCycleError) as exc_info:
            graph.topological_order()

        assert exc_info.value.node_ids == ["b", "c"]

    def test_build_without_validation_still_orders(self):
        """Skipping validation still rejects cyclic edges."""
        with pytest.raises(ReferenceCycleError):
            ExecutionGraph.build(
                [Node(id="a", type="openai"), Node(id="b", type="openai")],
                [Edge(source="a", target="b"), Edge(source="b", target="a")],
                validate=False,
            )


class TestNamespaces:
    """Test the namespace table used for reference resolution."""

    def test_display_names_and_ids(self, linear_graph):
        """Ancestors are addressable by display name and by id."""
        table = linear_graph.namespace_table("condition-1")

        assert table["summarizer"] == ("openai-1",)
        assert table["openai-1"] == ("openai-1",)
        assert table["input_1"] == ("input-1",)
        assert "note_1" not in table

    def test_lookup(self, linear_graph):
        """Lookups return the owning id or None."""
        assert linear_graph.lookup_namespace("condition-1", "summarizer") == "openai-1"
        assert linear_graph.lookup_namespace("condition-1", "note_1") is None

    def test_display_name_shadows_id(self):
        """A display name equal to another node's id wins over that id."""
        graph = _graph(
            [("x", "openai", None), ("y", "openai", "x"), ("c", "condition", None)],
            [("x", "c"), ("y", "c")],
        )

        assert graph.lookup_namespace("c", "x") == "y"

    def test_ambiguous_namespace(self):
        """Two upstream nodes with one display name cannot be told apart."""
        graph = _graph(
            [("a", "openai", "shared"), ("b", "gemini", "shared"), ("c", "condition", None)],
            [("a", "c"), ("b", "c")],
        )

        with pytest.raises(AmbiguousNamespaceError) as exc_info:
            graph.lookup_namespace("c", "shared")

        assert exc_info.value.node_ids == ["a", "b"]
        # Unrelated namespaces still resolve
        assert graph.lookup_namespace("c", "a") == "a"

    def test_find_namespace_owners(self, linear_graph):
        """Owners are searched across the whole workflow."""
        assert linear_graph.find_namespace_owners("note_1") == ["note-1"]
        assert linear_graph.find_namespace_owners("openai-1") == ["openai-1"]
        assert linear_graph.find_namespace_owners("ghost") == []
