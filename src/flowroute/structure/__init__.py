"""
Workflow structure for flowroute.

The execution graph, the node output schema registry and workflow loading.
Build-time validation lives in ``flowroute.structure.validation`` and is run
by ``ExecutionGraph.build``.
"""

from flowroute.structure.graph import ExecutionGraph
from flowroute.structure.loader import load_workflow, workflow_from_dict
from flowroute.structure.schema_registry import (
    OutputField,
    OutputSchemaRegistry,
    available_variables,
)

__all__ = [
    "ExecutionGraph",
    "OutputField",
    "OutputSchemaRegistry",
    "available_variables",
    "load_workflow",
    "workflow_from_dict",
]
