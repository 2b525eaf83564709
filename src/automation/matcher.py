"""Value matching for "test" operations.

A test operation constrains an observed resource field either with a
literal ``value``, with a ``valueMatcher.matchesPattern`` regular
expression, or with both. The condition is resolved once per operation:

    condition = condition_for(operation.value, operation.value_matcher)
    condition.matches(instance.status)

A check whose field is absent places no constraint on the observed value.
An operation with neither field is rejected with ConditionError when it is
evaluated.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from automation.errors import ConditionError, PatternError, ValueTypeError


@dataclass(frozen=True)
class LiteralCondition:
    """Observed value must equal the literal exactly."""
    value: Any

    def matches(self, observed: str) -> bool:
        if not isinstance(self.value, str):
            raise ValueTypeError()
        return observed == self.value

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class PatternCondition:
    """Observed value must match the whole pattern."""
    pattern: str

    def matches(self, observed: str) -> bool:
        try:
            regex = re.compile(self.pattern)
        except re.error as e:
            raise PatternError(self.pattern, str(e)) from e
        return regex.fullmatch(observed) is not None

    def __str__(self) -> str:
        return f"pattern {self.pattern!r}"


@dataclass(frozen=True)
class AllOf:
    """Every condition must hold."""
    conditions: tuple

    def matches(self, observed: str) -> bool:
        # Evaluate all so type and pattern errors surface even after a miss
        results = [c.matches(observed) for c in self.conditions]
        return all(results)

    def __str__(self) -> str:
        return ' and '.join(str(c) for c in self.conditions)


@dataclass(frozen=True)
class Unspecified:
    """Neither value nor valueMatcher was given."""

    def matches(self, observed: str) -> bool:
        raise ConditionError()

    def __str__(self) -> str:
        return 'nothing'


def _pattern_of(value_matcher: Any) -> Optional[str]:
    """Read matchesPattern from a dict or an object carrying matches_pattern."""
    if value_matcher is None:
        return None
    if isinstance(value_matcher, dict):
        return value_matcher.get('matchesPattern')
    return getattr(value_matcher, 'matches_pattern', None)


def condition_for(value: Any = None, value_matcher: Any = None):
    """Resolve value/valueMatcher into a single condition."""
    conditions: list = []
    if value is not None:
        conditions.append(LiteralCondition(value))
    pattern = _pattern_of(value_matcher)
    if pattern is not None:
        conditions.append(PatternCondition(pattern))

    if not conditions:
        return Unspecified()
    if len(conditions) == 1:
        return conditions[0]
    return AllOf(tuple(conditions))


def matches(observed: str, value: Any = None, value_matcher: Any = None) -> bool:
    """Check observed against value and/or value_matcher.

    Raises:
        ValueTypeError: If value is given and is not a string
        PatternError: If the pattern does not compile
        ConditionError: If neither value nor value_matcher is given
    """
    return condition_for(value, value_matcher).matches(observed)
