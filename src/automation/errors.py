"""Error types raised while applying recommendations.

Every error carries a short code and a human-readable message, so callers
can report failures uniformly:
- E1xx: problems with the recommendation document itself
- E2xx: failures reported by the cloud backend (including failed tests)
"""


class AutomationError(Exception):
    """Base exception for recommendation automation errors."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class PreconditionError(AutomationError):
    """Recommendation is not in a state that allows applying it."""

    def __init__(self, message: str = "recommendation must be active"):
        super().__init__("E100", message)


class ParseError(AutomationError):
    """Resource identifier could not be parsed."""

    def __init__(self, message: str):
        super().__init__("E101", message)


class ValueTypeError(AutomationError, TypeError):
    """Test value has a type other than string."""

    def __init__(self, message: str = "value must be of type string"):
        super().__init__("E102", message)


class PatternError(AutomationError):
    """Value matcher pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__("E103", f"invalid pattern {pattern!r}: {reason}")


class ConditionError(AutomationError):
    """Test operation specifies neither value nor valueMatcher."""

    def __init__(self, message: str = "test operation requires value or valueMatcher"):
        super().__init__("E104", message)


class UnsupportedOperationError(AutomationError):
    """Action, resource type and path combination is not supported."""

    def __init__(self, message: str = "the operation is not supported"):
        super().__init__("E105", message)


class CapabilityError(AutomationError):
    """A cloud backend call failed."""

    def __init__(self, message: str, code: str = "E200"):
        super().__init__(code, message)


class PredicateFailedError(CapabilityError):
    """A test operation observed a value that does not satisfy its condition."""

    def __init__(self, field: str, observed: str, condition: str):
        self.field = field
        self.observed = observed
        self.condition = condition
        super().__init__(f"{field} is not as expected: got {observed!r}, wanted {condition}", code="E201")
