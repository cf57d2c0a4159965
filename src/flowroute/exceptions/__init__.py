"""
flowroute exception classes.

This package provides all exception types used throughout flowroute for
consistent error handling and reporting.
"""

from flowroute.exceptions.core import (
    AmbiguousNamespaceError,
    ConfigurationError,
    DuplicateDisplayNameError,
    DuplicateNodeIdError,
    ErrorContext,
    ErrorLevel,
    EvaluationError,
    FlowRouteError,
    InvalidConditionConfigError,
    InvalidOperandError,
    InvalidPathLayoutError,
    MissingClauseValueError,
    NodeExecutionError,
    NotYetComputedError,
    OutputsAlreadySetError,
    ReferenceCycleError,
    ResolutionError,
    RunCancelledError,
    TypeMismatchError,
    UnknownBranchError,
    UnknownNodeError,
    UnknownVariableError,
)

__all__ = [
    "FlowRouteError",
    "ErrorContext",
    "ErrorLevel",
    "ConfigurationError",
    "DuplicateDisplayNameError",
    "DuplicateNodeIdError",
    "ReferenceCycleError",
    "UnknownNodeError",
    "InvalidPathLayoutError",
    "InvalidConditionConfigError",
    "UnknownBranchError",
    "MissingClauseValueError",
    "ResolutionError",
    "UnknownVariableError",
    "NotYetComputedError",
    "AmbiguousNamespaceError",
    "EvaluationError",
    "TypeMismatchError",
    "InvalidOperandError",
    "NodeExecutionError",
    "OutputsAlreadySetError",
    "RunCancelledError",
]
