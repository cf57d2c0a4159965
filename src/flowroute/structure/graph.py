"""
Execution graph for a workflow run.

The graph is built once per run from the authored nodes and edges and is
immutable afterwards, so concurrent runs may share it. It answers upstream
and downstream queries, produces the topological evaluation order, and
builds the namespace table used to resolve {{namespace.field}} references.
"""

import logging
from collections import deque
from collections.abc import Iterable

from flowroute.core.models import Edge, Node, Workflow
from flowroute.exceptions import (
    AmbiguousNamespaceError,
    DuplicateNodeIdError,
    ReferenceCycleError,
    UnknownNodeError,
)

logger = logging.getLogger(__name__)


class ExecutionGraph:
    """
    Nodes and directed edges of one workflow.

    Params:
        nodes: Workflow nodes in declaration order
        edges: Directed edges between them
    """

    def __init__(self, nodes: Iterable[Node], edges: Iterable[Edge]):
        self._nodes: dict[str, Node] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise DuplicateNodeIdError(node.id)
            self._nodes[node.id] = node

        self._edges: tuple[Edge, ...] = tuple(edges)
        self._incoming: dict[str, list[Edge]] = {node_id: [] for node_id in self._nodes}
        self._outgoing: dict[str, list[Edge]] = {node_id: [] for node_id in self._nodes}
        for edge in self._edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._nodes:
                    raise UnknownNodeError(endpoint, str(edge))
            self._incoming[edge.target].append(edge)
            self._outgoing[edge.source].append(edge)

        self._order: tuple[str, ...] | None = None
        self._ancestors: dict[str, tuple[str, ...]] = {}
        self._namespaces: dict[str, dict[str, tuple[str, ...]]] = {}

    @classmethod
    def build(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        *,
        validate: bool = True,
        registry=None,
    ) -> "ExecutionGraph":
        """
        Build a graph and run configuration validation.

        Params:
            nodes: Workflow nodes
            edges: Workflow edges
            validate: Run build-time validation (display names, cycles,
                condition layouts, literal operands)
            registry: Output schema registry used for reference warnings

        Returns:
            The built graph

        Raises:
            ConfigurationError: If the workflow cannot be run
        """
        graph = cls(nodes, edges)
        if validate:
            from flowroute.structure.validation import validate_workflow

            validate_workflow(graph, registry)
        else:
            # The evaluation order must exist even when validation is skipped
            graph.topological_order()
        return graph

    @classmethod
    def from_workflow(cls, workflow: Workflow, **kwargs) -> "ExecutionGraph":
        return cls.build(workflow.nodes, workflow.edges, **kwargs)

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, node_id: str) -> Node:
        """
        Get a node by id.

        Raises:
            UnknownNodeError: If the node is not part of the graph
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id, "lookup") from None

    def incoming_edges(self, node_id: str) -> tuple[Edge, ...]:
        return tuple(self._incoming[node_id])

    def outgoing_edges(self, node_id: str) -> tuple[Edge, ...]:
        return tuple(self._outgoing[node_id])

    def upstream(self, node_id: str) -> list[str]:
        """Direct upstream node ids, in edge order, without duplicates."""
        return list(dict.fromkeys(edge.source for edge in self._incoming[node_id]))

    def downstream(self, node_id: str) -> list[str]:
        """Direct downstream node ids, in edge order, without duplicates."""
        return list(dict.fromkeys(edge.target for edge in self._outgoing[node_id]))

    def ancestors(self, node_id: str) -> tuple[str, ...]:
        """
        All nodes transitively upstream of a node, nearest first.

        Params:
            node_id: Node whose dependencies are requested

        Returns:
            Ancestor ids in breadth-first order from the node
        """
        if node_id in self._ancestors:
            return self._ancestors[node_id]

        seen: dict[str, None] = {}
        queue = deque(self.upstream(node_id))
        while queue:
            current = queue.popleft()
            if current in seen or current == node_id:
                continue
            seen[current] = None
            queue.extend(self.upstream(current))

        result = tuple(seen)
        self._ancestors[node_id] = result
        return result

    def is_upstream(self, candidate_id: str, node_id: str) -> bool:
        return candidate_id in self.ancestors(node_id)

    def topological_order(self) -> tuple[str, ...]:
        """
        Evaluation order of the graph (Kahn's algorithm).

        Ties are broken by node declaration order so runs are deterministic.

        Returns:
            Node ids such that every node follows all of its upstream nodes

        Raises:
            ReferenceCycleError: If the edges contain a cycle
        """
        if self._order is not None:
            return self._order

        position = {node_id: index for index, node_id in enumerate(self._nodes)}
        in_degree = {node_id: len(self.upstream(node_id)) for node_id in self._nodes}
        ready = [node_id for node_id, degree in in_degree.items() if degree == 0]
        order = []

        while ready:
            ready.sort(key=position.__getitem__)
            current = ready.pop(0)
            order.append(current)
            for target in self.downstream(current):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    ready.append(target)

        if len(order) != len(self._nodes):
            remaining = [node_id for node_id in self._nodes if in_degree[node_id] > 0]
            raise ReferenceCycleError(remaining)

        self._order = tuple(order)
        return self._order

    def namespace_table(self, node_id: str) -> dict[str, tuple[str, ...]]:
        """
        Build the symbol table of namespaces visible from a node.

        Every ancestor is addressable by its display name and by its raw id.
        Display names take precedence: an id only enters the table when no
        ancestor uses it as a display name. A namespace owned by more than
        one node is kept with all its owners so lookups can report it.

        Params:
            node_id: Node whose references are being resolved

        Returns:
            Mapping of namespace to the ids of the nodes it names
        """
        if node_id in self._namespaces:
            return self._namespaces[node_id]

        table: dict[str, tuple[str, ...]] = {}
        for ancestor_id in self.ancestors(node_id):
            namespace = self._nodes[ancestor_id].namespace
            table[namespace] = table.get(namespace, ()) + (ancestor_id,)
        for ancestor_id in self.ancestors(node_id):
            table.setdefault(ancestor_id, (ancestor_id,))

        self._namespaces[node_id] = table
        return table

    def lookup_namespace(self, node_id: str, namespace: str) -> str | None:
        """
        Resolve a namespace to the upstream node it names.

        Params:
            node_id: Node whose reference is being resolved
            namespace: Namespace portion of the reference

        Returns:
            Id of the matching upstream node, or None when nothing upstream matches

        Raises:
            AmbiguousNamespaceError: If several upstream nodes share the namespace
        """
        owners = self.namespace_table(node_id).get(namespace)
        if not owners:
            return None
        if len(owners) > 1:
            raise AmbiguousNamespaceError(namespace, sorted(owners))
        return owners[0]

    def find_namespace_owners(self, namespace: str) -> list[str]:
        """Ids of all nodes in the workflow addressed by a namespace."""
        owners = [node.id for node in self._nodes.values() if node.namespace == namespace]
        if not owners and namespace in self._nodes:
            owners = [namespace]
        return owners
