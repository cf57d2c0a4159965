"""
Clause operators for condition routing.

Operators form a closed enum; each member is bound to exactly one comparison
function in ``_OPERATIONS`` and the table is checked for completeness when
the module is imported. Every comparison receives the typed left-hand value
and the interpolated right-hand text, applies the operator's coercion and
returns a bool, or raises:

- TypeMismatchError when the left-hand value cannot be coerced
- InvalidOperandError when the right-hand value cannot be parsed
"""

import re
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from enum import Enum
from functools import lru_cache
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz

from flowroute.core.types import ValueKind, format_value, parse_number, value_kind
from flowroute.exceptions import InvalidOperandError, TypeMismatchError
from flowroute.settings import EngineSettings, get_settings


class OperatorKind(Enum):
    """Every operator a clause may use, keyed by its authored name."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_OR_EQUAL = "<="
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "startswith"
    ENDS_WITH = "endswith"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    MATCHES_REGEX = "matches_regex"
    IN_LIST = "in_list"
    NOT_IN_LIST = "not_in_list"
    LENGTH_EQUALS = "length_equals"
    LENGTH_GREATER_THAN = "length_greater_than"
    LENGTH_LESS_THAN = "length_less_than"
    DATE_BEFORE = "date_before"
    DATE_AFTER = "date_after"
    DATE_EQUALS = "date_equals"
    DATE_BETWEEN = "date_between"
    TYPE_EQUALS = "type_equals"

    @classmethod
    def parse(cls, name: str) -> "OperatorKind":
        """
        Look up an operator by its authored name.

        Params:
            name: Operator name such as ``==`` or ``date_between``

        Returns:
            The matching OperatorKind

        Raises:
            InvalidOperandError: If no operator has that name
        """
        try:
            return cls(name.strip() if isinstance(name, str) else name)
        except ValueError:
            raise InvalidOperandError(str(name), name, "unknown operator") from None

    @property
    def requires_value(self) -> bool:
        return self not in (OperatorKind.IS_EMPTY, OperatorKind.IS_NOT_EMPTY)


TYPE_NAMES = frozenset(kind.value for kind in ValueKind)

REGEX_LITERAL_PATTERN = re.compile(r"^/(.*)/([gimsuy]*)$", re.DOTALL)

OperatorFunc = Callable[[OperatorKind, Any, str, EngineSettings], bool]


def _as_text(op: OperatorKind, value: Any) -> str:
    kind = value_kind(value)
    if kind in (ValueKind.ARRAY, ValueKind.OBJECT):
        raise TypeMismatchError(op.value, "text", value)
    return format_value(value)


def _as_number(op: OperatorKind, value: Any) -> int | float:
    number = parse_number(value)
    if number is None:
        raise TypeMismatchError(op.value, "a number", value)
    return number


def _values_equal(left: Any, right: str) -> bool:
    left_number = parse_number(left)
    right_number = parse_number(right)
    if left_number is not None and right_number is not None:
        return left_number == right_number
    return format_value(left) == right


def _split_list(right: str) -> list[str]:
    return [item.strip() for item in right.split(",") if item.strip()]


@lru_cache(maxsize=256)
def compile_regex(pattern: str) -> re.Pattern:
    """
    Compile a clause regex, accepting ``/pattern/flags`` literals.

    Supported literal flags are ``i`` (ignore case), ``m`` (multiline) and
    ``s`` (dot matches newline); ``g``, ``u`` and ``y`` are accepted and have
    no effect.

    Raises:
        InvalidOperandError: If the pattern is empty or does not compile
    """
    if not pattern:
        raise InvalidOperandError(OperatorKind.MATCHES_REGEX.value, pattern, "empty pattern")
    flags = 0
    literal = REGEX_LITERAL_PATTERN.match(pattern)
    if literal:
        pattern, flag_text = literal.group(1), literal.group(2)
        if "i" in flag_text:
            flags |= re.IGNORECASE
        if "m" in flag_text:
            flags |= re.MULTILINE
        if "s" in flag_text:
            flags |= re.DOTALL
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise InvalidOperandError(OperatorKind.MATCHES_REGEX.value, pattern, str(e)) from None


def parse_date(text: str, settings: EngineSettings, end_of_day: bool = False) -> datetime:
    """
    Parse a calendar date or timestamp into an aware datetime.

    Dates written without a time start at midnight, or end at the last
    instant of the day when ``end_of_day`` is set. Dates without a timezone
    are placed in the configured default timezone.

    Params:
        text: Date text in any format python-dateutil understands
        settings: Engine settings (day-first parsing, default timezone)
        end_of_day: Fill a missing time with the end of the day

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the text is not a date
        OverflowError: If the date is out of range
    """
    default = datetime.combine(date.today(), time.max if end_of_day else time.min)
    parsed = date_parser.parse(text.strip(), default=default, dayfirst=settings.date_dayfirst)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.gettz(settings.default_timezone) or timezone.utc)
    return parsed


def _left_date(op: OperatorKind, value: Any, settings: EngineSettings) -> datetime:
    kind = value_kind(value)
    if kind is ValueKind.NUMBER:
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise TypeMismatchError(op.value, "a date", value) from None
    if kind is not ValueKind.STRING or not value.strip():
        raise TypeMismatchError(op.value, "a date", value)
    try:
        return parse_date(value, settings)
    except (ValueError, OverflowError):
        raise TypeMismatchError(op.value, "a date", value) from None


def _right_date(
    op: OperatorKind, text: str, settings: EngineSettings, end_of_day: bool = False
) -> datetime:
    if not text.strip():
        raise InvalidOperandError(op.value, text, "empty date")
    try:
        return parse_date(text, settings, end_of_day=end_of_day)
    except (ValueError, OverflowError):
        raise InvalidOperandError(op.value, text, "not a recognizable date") from None


def _date_range(op: OperatorKind, text: str, settings: EngineSettings) -> tuple[datetime, datetime]:
    bounds = text.split(",")
    if len(bounds) != 2:
        raise InvalidOperandError(op.value, text, "expected two comma-separated dates")
    start = _right_date(op, bounds[0], settings)
    end = _right_date(op, bounds[1], settings, end_of_day=True)
    if start > end:
        raise InvalidOperandError(op.value, text, "range start is after range end")
    return start, end


def _length(op: OperatorKind, value: Any) -> int:
    if value_kind(value) is ValueKind.ARRAY:
        return len(value)
    return len(_as_text(op, value))


def _length_operand(op: OperatorKind, text: str) -> int | float:
    number = parse_number(text)
    if number is None:
        raise InvalidOperandError(op.value, text, "length must be a number")
    return number


def _equals(op, left, right, settings):
    return _values_equal(left, right)


def _not_equals(op, left, right, settings):
    return not _values_equal(left, right)


def _numeric(compare: Callable[[Any, Any], bool]) -> OperatorFunc:
    def operation(op, left, right, settings):
        left_number = _as_number(op, left)
        right_number = parse_number(right)
        if right_number is None:
            raise TypeMismatchError(op.value, "a numeric comparison value", right)
        return compare(left_number, right_number)

    return operation


def _contains(op, left, right, settings):
    if value_kind(left) is ValueKind.ARRAY:
        return any(_values_equal(element, right) for element in left)
    return right in _as_text(op, left)


def _not_contains(op, left, right, settings):
    return not _contains(op, left, right, settings)


def _starts_with(op, left, right, settings):
    return _as_text(op, left).startswith(right)


def _ends_with(op, left, right, settings):
    return _as_text(op, left).endswith(right)


def is_empty_value(value: Any) -> bool:
    """True for None, the empty string, and empty arrays or objects."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return True
    if kind in (ValueKind.STRING, ValueKind.ARRAY, ValueKind.OBJECT):
        return len(value) == 0
    return False


def _is_empty(op, left, right, settings):
    return is_empty_value(left)


def _is_not_empty(op, left, right, settings):
    return not is_empty_value(left)


def _matches_regex(op, left, right, settings):
    return compile_regex(right).search(_as_text(op, left)) is not None


def _in_list(op, left, right, settings):
    _as_text(op, left)
    return any(_values_equal(left, item) for item in _split_list(right))


def _not_in_list(op, left, right, settings):
    return not _in_list(op, left, right, settings)


def _length_compare(compare: Callable[[Any, Any], bool]) -> OperatorFunc:
    def operation(op, left, right, settings):
        return compare(_length(op, left), _length_operand(op, right))

    return operation


def _date_before(op, left, right, settings):
    return _left_date(op, left, settings) < _right_date(op, right, settings)


def _date_after(op, left, right, settings):
    return _left_date(op, left, settings) > _right_date(op, right, settings)


def _date_equals(op, left, right, settings):
    zone = tz.gettz(settings.default_timezone) or timezone.utc
    left_day = _left_date(op, left, settings).astimezone(zone).date()
    right_day = _right_date(op, right, settings).astimezone(zone).date()
    return left_day == right_day


def _date_between(op, left, right, settings):
    start, end = _date_range(op, right, settings)
    return start <= _left_date(op, left, settings) <= end


def _type_equals(op, left, right, settings):
    type_name = right.strip().lower()
    if type_name not in TYPE_NAMES:
        raise InvalidOperandError(
            op.value, right, f"expected one of {', '.join(sorted(TYPE_NAMES))}"
        )
    return value_kind(left).value == type_name


_OPERATIONS: dict[OperatorKind, OperatorFunc] = {
    OperatorKind.EQUALS: _equals,
    OperatorKind.NOT_EQUALS: _not_equals,
    OperatorKind.GREATER_THAN: _numeric(lambda a, b: a > b),
    OperatorKind.GREATER_OR_EQUAL: _numeric(lambda a, b: a >= b),
    OperatorKind.LESS_THAN: _numeric(lambda a, b: a < b),
    OperatorKind.LESS_OR_EQUAL: _numeric(lambda a, b: a <= b),
    OperatorKind.CONTAINS: _contains,
    OperatorKind.NOT_CONTAINS: _not_contains,
    OperatorKind.STARTS_WITH: _starts_with,
    OperatorKind.ENDS_WITH: _ends_with,
    OperatorKind.IS_EMPTY: _is_empty,
    OperatorKind.IS_NOT_EMPTY: _is_not_empty,
    OperatorKind.MATCHES_REGEX: _matches_regex,
    OperatorKind.IN_LIST: _in_list,
    OperatorKind.NOT_IN_LIST: _not_in_list,
    OperatorKind.LENGTH_EQUALS: _length_compare(lambda a, b: a == b),
    OperatorKind.LENGTH_GREATER_THAN: _length_compare(lambda a, b: a > b),
    OperatorKind.LENGTH_LESS_THAN: _length_compare(lambda a, b: a < b),
    OperatorKind.DATE_BEFORE: _date_before,
    OperatorKind.DATE_AFTER: _date_after,
    OperatorKind.DATE_EQUALS: _date_equals,
    OperatorKind.DATE_BETWEEN: _date_between,
    OperatorKind.TYPE_EQUALS: _type_equals,
}

_unhandled = set(OperatorKind) - set(_OPERATIONS)
if _unhandled:
    raise RuntimeError(f"Operators without an implementation: {sorted(k.value for k in _unhandled)}")


def apply_operator(
    operator: OperatorKind | str,
    left: Any,
    right: str = "",
    settings: EngineSettings | None = None,
) -> bool:
    """
    Apply an operator to a left-hand value and right-hand text.

    Params:
        operator: OperatorKind or authored operator name
        left: Typed left-hand value
        right: Interpolated right-hand text (ignored by is_empty/is_not_empty)
        settings: Engine settings; the process-wide settings when omitted

    Returns:
        Result of the comparison

    Raises:
        TypeMismatchError: If the left-hand value has the wrong type
        InvalidOperandError: If the operator is unknown or the right-hand
            value cannot be parsed
    """
    if not isinstance(operator, OperatorKind):
        operator = OperatorKind.parse(operator)
    return _OPERATIONS[operator](operator, left, right, settings or get_settings())


def validate_operand(
    operator: OperatorKind, right: str, settings: EngineSettings | None = None
) -> None:
    """
    Check a literal right-hand value before any run starts.

    Only values without ``{{...}}`` references can be checked ahead of time;
    callers skip templated values.

    Params:
        operator: Operator of the clause
        right: Literal right-hand text
        settings: Engine settings; the process-wide settings when omitted

    Raises:
        InvalidOperandError: If the value can never be valid for the operator
    """
    settings = settings or get_settings()
    if operator is OperatorKind.MATCHES_REGEX:
        compile_regex(right)
    elif operator in (
        OperatorKind.GREATER_THAN,
        OperatorKind.GREATER_OR_EQUAL,
        OperatorKind.LESS_THAN,
        OperatorKind.LESS_OR_EQUAL,
    ):
        if parse_number(right) is None:
            raise InvalidOperandError(operator.value, right, "comparison value must be a number")
    elif operator in (
        OperatorKind.LENGTH_EQUALS,
        OperatorKind.LENGTH_GREATER_THAN,
        OperatorKind.LENGTH_LESS_THAN,
    ):
        _length_operand(operator, right)
    elif operator in (OperatorKind.DATE_BEFORE, OperatorKind.DATE_AFTER, OperatorKind.DATE_EQUALS):
        _right_date(operator, right, settings)
    elif operator is OperatorKind.DATE_BETWEEN:
        _date_range(operator, right, settings)
    elif operator is OperatorKind.TYPE_EQUALS:
        _type_equals(operator, None, right, settings)
