"""
Tests for flowroute exception classes and error context formatting.
"""

import pytest

from flowroute.exceptions import (
    AmbiguousNamespaceError,
    ConfigurationError,
    DuplicateDisplayNameError,
    ErrorContext,
    ErrorLevel,
    EvaluationError,
    FlowRouteError,
    InvalidConditionConfigError,
    InvalidOperandError,
    MissingClauseValueError,
    NodeExecutionError,
    OutputsAlreadySetError,
    ReferenceCycleError,
    ResolutionError,
    RunCancelledError,
    TypeMismatchError,
    UnknownBranchError,
    UnknownVariableError,
)


class TestErrorHierarchy:
    """Test that each error belongs to the family callers catch."""

    @pytest.mark.parametrize(
        "error,family",
        [
            (DuplicateDisplayNameError("summarizer", ["a", "b"]), ConfigurationError),
            (ReferenceCycleError(["a", "b"]), ConfigurationError),
            (MissingClauseValueError("c1", "=="), ConfigurationError),
            (InvalidConditionConfigError("condition-1", "paths: Input should be a valid tuple"), ConfigurationError),
            (UnknownBranchError("condition-1", "condition-1 -> openai-1", "path-typo"), ConfigurationError),
            (UnknownVariableError("missing.field", "missing"), ResolutionError),
            (AmbiguousNamespaceError("x", ["a", "b"]), ResolutionError),
            (TypeMismatchError(">", "a number", "abc"), EvaluationError),
            (InvalidOperandError("matches_regex", "[", "bad"), EvaluationError),
        ],
    )
    def test_error_family(self, error, family):
        """Errors should be catchable through their family and the base class."""
        assert isinstance(error, family)
        assert isinstance(error, FlowRouteError)

    def test_run_level_errors_are_not_evaluation_errors(self):
        """Executor failures, cancellation and repeated outputs are outside the routing families."""
        for error in (
            NodeExecutionError("n1", "boom"),
            RunCancelledError("n2"),
            OutputsAlreadySetError("n3"),
        ):
            assert isinstance(error, FlowRouteError)
            assert not isinstance(error, (ConfigurationError, ResolutionError, EvaluationError))


class TestErrorMessages:
    """Test the messages users see."""

    def test_unknown_variable_lists_available_namespaces(self):
        """Available namespaces should be listed sorted."""
        error = UnknownVariableError("missing.field", "missing", ["openai_1", "input_1"])

        assert str(error) == (
            "Unknown variable 'missing.field': no upstream node named 'missing'. "
            "Available: input_1, openai_1"
        )
        assert error.ref == "missing.field"
        assert error.namespace == "missing"

    def test_unknown_variable_without_available(self):
        """No trailing list should appear when nothing is in scope."""
        error = UnknownVariableError("missing.field", "missing")

        assert "Available" not in str(error)

    def test_type_mismatch_message(self):
        """Type mismatch should name the operator and the offending value."""
        error = TypeMismatchError(">", "a number", "six")

        assert str(error) == "Operator '>' expects a number, got 'six'"

    def test_cycle_message_names_nodes(self):
        """Cycle errors should name every participating node and the reason."""
        error = ReferenceCycleError(["a", "b"], "node 'a' references 'b' which depends on it")

        assert "a, b" in str(error)
        assert "depends on it" in str(error)

    def test_cancelled_message(self):
        """Cancellation names the next node when known."""
        assert str(RunCancelledError("n2")) == "Workflow run cancelled before node 'n2'"
        assert str(RunCancelledError()) == "Workflow run cancelled"


class TestErrorContext:
    """Test location context attached to errors."""

    def test_user_level_hides_path_and_operator(self):
        """USER level shows node and clause only."""
        context = ErrorContext(node_id="condition-1", path_id="p1", clause_id="c1", operator="==")

        location = context.format_location(ErrorLevel.USER)

        assert "in node condition-1" in location
        assert "at clause c1" in location
        assert "p1" not in location
        assert "operator" not in location

    def test_developer_level_shows_everything(self):
        """DEVELOPER level adds path and operator."""
        context = ErrorContext(node_id="condition-1", path_id="p1", clause_id="c1", operator="==")

        location = context.format_location(ErrorLevel.DEVELOPER)

        assert "path p1" in location
        assert "operator: ==" in location

    def test_with_context_extends_message(self):
        """Attaching context appends location lines to the message."""
        error = UnknownVariableError("missing.field", "missing")

        returned = error.with_context(ErrorContext(node_id="condition-1", template="{{missing.field}}"))

        assert returned is error
        message = str(error)
        assert message.startswith("Unknown variable 'missing.field'")
        assert "in node condition-1" in message
        assert "template: {{missing.field}}" in message

    def test_with_context_merges_missing_fields(self):
        """Context closest to the failure wins; outer context only fills gaps."""
        error = UnknownVariableError("missing.field", "missing")
        error.with_context(ErrorContext(node_id="inner", template="{{missing.field}}"))
        error.with_context(
            ErrorContext(node_id="outer", clause_id="c1", path_id="p1"), ErrorLevel.DEVELOPER
        )

        assert error.context.node_id == "inner"
        assert error.context.clause_id == "c1"
        assert error.context.path_id == "p1"
        assert error.error_level == ErrorLevel.DEVELOPER
        # The base message is not repeated when context is attached twice
        assert str(error).count("Unknown variable") == 1
