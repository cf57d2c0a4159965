"""
flowroute - condition routing and variable resolution for workflow graphs

flowroute decides which branch a condition node activates during a workflow
run, and resolves the ``{{nodeName.field}}`` references its rules test.
"""

import logging
from importlib.metadata import version

from flowroute.core.models import Clause, ConditionConfig, Edge, Node, Path, Workflow
from flowroute.execution.context import ExecutionContext, RunState
from flowroute.execution.resolution import VariableResolver
from flowroute.execution.runner import RunResult, RunStatus, WorkflowRunner
from flowroute.routing.clauses import evaluate_clause
from flowroute.routing.operators import OperatorKind
from flowroute.routing.selector import PathSelection, select_path
from flowroute.settings import EngineSettings, get_settings
from flowroute.structure.graph import ExecutionGraph
from flowroute.structure.loader import load_workflow
from flowroute.structure.schema_registry import OutputSchemaRegistry
from flowroute.structure.validation import validate_workflow
from flowroute.templates.interpolation import interpolate

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = version("flowroute")

__all__ = [
    "__version__",
    "Clause",
    "ConditionConfig",
    "Edge",
    "Node",
    "Path",
    "Workflow",
    "ExecutionContext",
    "RunState",
    "VariableResolver",
    "RunResult",
    "RunStatus",
    "WorkflowRunner",
    "evaluate_clause",
    "OperatorKind",
    "PathSelection",
    "select_path",
    "EngineSettings",
    "get_settings",
    "ExecutionGraph",
    "load_workflow",
    "OutputSchemaRegistry",
    "validate_workflow",
    "interpolate",
]
