"""
Variable resolution for flowroute references.

Resolves a dotted reference such as ``openai_1.response`` or
``input_1.json.data.name`` to a runtime value. Resolution is a pure function
of the execution graph and the run's recorded outputs: the namespace must name
a node transitively upstream of the node being evaluated, independent of any
editor-side suggestion list.
"""

import logging
from typing import Any

from flowroute.core.path_utils import PathComponents, get_nested_value
from flowroute.exceptions import NotYetComputedError, UnknownVariableError
from flowroute.execution.context import RESERVED_NAMESPACES, ExecutionContext

logger = logging.getLogger(__name__)


class VariableResolver:
    """Resolves references against an execution context."""

    def resolve(self, ref: str, context: ExecutionContext) -> Any:
        """
        Resolve a reference to a runtime value.

        Params:
            ref: Dotted reference without braces, e.g. ``summarizer.data.name``
            context: Evaluation context of the current node

        Returns:
            The referenced value; None when the field path is missing from
            the node's outputs

        Raises:
            UnknownVariableError: If no upstream node matches the namespace
            AmbiguousNamespaceError: If several upstream nodes match it
            NotYetComputedError: If the matched node has no outputs yet
        """
        ref = ref.strip()
        components = PathComponents.split_path(ref)
        namespace = components.first_part.strip()
        field_path = components.remainder.strip()

        if not namespace:
            raise UnknownVariableError(ref, namespace)

        if namespace in RESERVED_NAMESPACES:
            return get_nested_value(self._resolve_reserved(namespace, context), field_path)

        node_id = context.graph.lookup_namespace(context.node_id, namespace)
        if node_id is None:
            available = list(context.graph.namespace_table(context.node_id))
            raise UnknownVariableError(ref, namespace, available)

        outputs = context.state.get_outputs(node_id)
        if outputs is None:
            raise NotYetComputedError(ref, node_id)

        value = get_nested_value(outputs, field_path)
        if value is None:
            logger.debug("Reference '%s' resolved to null in node %s", ref, node_id)
        return value

    def _resolve_reserved(self, namespace: str, context: ExecutionContext) -> Any:
        if namespace == "input":
            return context.node_input()
        if namespace == "now":
            return context.now()
        if namespace == "previous":
            return context.previous()
        return context.state.workflow_namespace()


_default_resolver = VariableResolver()


def resolve(ref: str, context: ExecutionContext) -> Any:
    """Resolve a reference with the default resolver."""
    return _default_resolver.resolve(ref, context)
