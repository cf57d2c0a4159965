"""
Run-time execution for flowroute.

Per-run state, evaluation context and variable resolution. The workflow
runner lives in ``flowroute.execution.runner``.
"""

from flowroute.execution.context import (
    RESERVED_NAMESPACES,
    ExecutionContext,
    RunState,
)
from flowroute.execution.resolution import VariableResolver, resolve

__all__ = [
    "RESERVED_NAMESPACES",
    "ExecutionContext",
    "RunState",
    "VariableResolver",
    "resolve",
]
