"""Apply Recommender API recommendations to compute resources."""

from automation.apply import apply, preview
from automation.dispatch import dispatch, plan
from automation.errors import (
    AutomationError,
    CapabilityError,
    ConditionError,
    ParseError,
    PatternError,
    PreconditionError,
    PredicateFailedError,
    UnsupportedOperationError,
    ValueTypeError,
)
from automation.locator import ResourceLocator, parse_machine_type, parse_resource
from automation.matcher import condition_for, matches
from automation.operations import Operation, OperationGroup, Recommendation
from automation.service import CloudService, Instance

__all__ = [
    'apply',
    'preview',
    'dispatch',
    'plan',
    'AutomationError',
    'CapabilityError',
    'ConditionError',
    'ParseError',
    'PatternError',
    'PreconditionError',
    'PredicateFailedError',
    'UnsupportedOperationError',
    'ValueTypeError',
    'ResourceLocator',
    'parse_machine_type',
    'parse_resource',
    'condition_for',
    'matches',
    'Operation',
    'OperationGroup',
    'Recommendation',
    'CloudService',
    'Instance',
]
