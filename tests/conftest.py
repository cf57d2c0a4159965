"""
Shared test fixtures and utilities for the flowroute test suite.
"""

import pytest

from flowroute.core.models import Clause, Edge, Node, Path
from flowroute.execution.context import ExecutionContext, RunState
from flowroute.settings import EngineSettings
from flowroute.structure.graph import ExecutionGraph


@pytest.fixture
def strict_settings():
    return EngineSettings(strict_mode=True)


@pytest.fixture
def lenient_settings():
    return EngineSettings(strict_mode=False)


@pytest.fixture
def linear_graph():
    """input-1 -> openai-1 -> condition-1, plus an unrelated note node.

    Usage:
        def test_something(linear_graph):
            linear_graph.upstream("condition-1")
    """
    nodes = [
        Node(id="input-1", type="input", params={"type": "Text"}),
        Node(id="openai-1", type="openai", display_name="summarizer"),
        Node(id="condition-1", type="condition"),
        Node(id="note-1", type="note"),
    ]
    edges = [
        Edge(source="input-1", target="openai-1"),
        Edge(source="openai-1", target="condition-1"),
    ]
    return ExecutionGraph(nodes, edges)


@pytest.fixture
def make_context(strict_settings):
    """Factory for an evaluation context over a graph with recorded outputs.

    Usage:
        def test_something(make_context, linear_graph):
            ctx = make_context(linear_graph, "condition-1", {"openai-1": {"response": "hi"}})
    """

    def factory(graph, node_id, outputs=None, run_input=None, variables=None, settings=None):
        state = RunState(run_input=run_input, variables=variables or {})
        for source_id, node_outputs in (outputs or {}).items():
            state.set_outputs(source_id, node_outputs)
        return ExecutionContext(
            graph=graph, state=state, node_id=node_id, settings=settings or strict_settings
        )

    return factory


@pytest.fixture
def make_condition_node():
    """Factory for a condition node built from model paths.

    Usage:
        def test_something(make_condition_node, if_else):
            node = make_condition_node("condition-1", if_else([clause]), variable_name="route")
    """

    def factory(
        node_id: str,
        paths: list[Path],
        display_name: str | None = None,
        variable_name: str | None = None,
    ) -> Node:
        params = {"paths": [path.model_dump(by_alias=True, mode="json") for path in paths]}
        if variable_name:
            params["variableName"] = variable_name
        return Node(id=node_id, type="condition", display_name=display_name, params=params)

    return factory


@pytest.fixture
def if_else():
    """Factory for an If path with the given clauses followed by an empty Else path.

    Usage:
        def test_something(if_else):
            paths = if_else([clause], logical_operator="OR")
    """

    def factory(clauses: list[Clause], logical_operator: str = "AND") -> list[Path]:
        return [
            Path(
                id="path-if",
                name="If Condition Is True",
                clauses=clauses,
                logical_operator=logical_operator,
            ),
            Path(id="path-else", name="Else"),
        ]

    return factory
