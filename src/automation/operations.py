"""Recommendation documents and the operations they carry.

Documents follow the Recommender API shape (camelCase keys):

    {name, etag, stateInfo: {state},
     content: {operationGroups: [{operations: [{action, path, resource,
                                                 resourceType, value?,
                                                 valueMatcher?}]}]}}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from automation.matcher import condition_for


class Action(str, Enum):
    """Operation actions the engine knows how to route."""
    TEST = 'test'
    REPLACE = 'replace'
    ADD = 'add'
    REMOVE = 'remove'

    @classmethod
    def parse(cls, raw: str) -> Optional['Action']:
        """Case-insensitive lookup; None for unknown actions."""
        try:
            return cls((raw or '').lower())
        except ValueError:
            return None


class ResourceType(str, Enum):
    """Resource kinds the engine knows how to route."""
    INSTANCE = 'compute.googleapis.com/Instance'
    DISK = 'compute.googleapis.com/Disk'
    SNAPSHOT = 'compute.googleapis.com/Snapshot'

    @classmethod
    def parse(cls, raw: str) -> Optional['ResourceType']:
        try:
            return cls(raw)
        except ValueError:
            return None


class Path(str, Enum):
    """Resource fields addressed by test/replace operations."""
    MACHINE_TYPE = '/machineType'
    STATUS = '/status'

    @classmethod
    def parse(cls, raw: str) -> Optional['Path']:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass
class Operation:
    """One patch step of a recommendation."""
    action: str
    resource_type: str = ''
    resource: str = ''
    path: str = ''
    value: Any = None
    value_matcher: Optional[dict] = None

    @property
    def condition(self):
        """Test condition resolved from value/value_matcher."""
        return condition_for(self.value, self.value_matcher)

    def describe(self) -> str:
        return f"{self.action} {self.path} on {self.resource or self.resource_type}"

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            'action': self.action,
            'resourceType': self.resource_type,
            'resource': self.resource,
            'path': self.path,
        }
        if self.value is not None:
            d['value'] = self.value
        if self.value_matcher is not None:
            d['valueMatcher'] = self.value_matcher
        return d

    @classmethod
    def from_dict(cls, data: dict) -> 'Operation':
        return cls(
            action=data.get('action') or '',
            resource_type=data.get('resourceType') or '',
            resource=data.get('resource') or '',
            path=data.get('path') or '',
            value=data.get('value'),
            value_matcher=data.get('valueMatcher'),
        )


@dataclass
class OperationGroup:
    """Ordered operations that together make one change."""
    operations: list[Operation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'OperationGroup':
        return cls(operations=[Operation.from_dict(o) for o in data.get('operations') or []])


@dataclass
class Recommendation:
    """A recommendation as consumed by the engine.

    Attributes:
        name: Full resource name of the recommendation
        etag: Concurrency token required on every state transition
        state: Lifecycle state as reported by the API (e.g. 'ACTIVE')
        operation_groups: Groups to apply, in order
        description: Human-readable summary
        recommender_subtype: e.g. 'CHANGE_MACHINE_TYPE', 'SNAPSHOT_AND_DELETE_DISK'
    """
    name: str
    etag: str
    state: str = 'ACTIVE'
    operation_groups: list[OperationGroup] = field(default_factory=list)
    description: str = ''
    recommender_subtype: str = ''

    @property
    def is_active(self) -> bool:
        return (self.state or '').lower() == 'active'

    @property
    def operations(self) -> list[Operation]:
        """All operations flattened in document order."""
        return [op for group in self.operation_groups for op in group.operations]

    @classmethod
    def from_dict(cls, data: dict) -> 'Recommendation':
        content = data.get('content') or {}
        return cls(
            name=data.get('name', ''),
            etag=data.get('etag', ''),
            state=(data.get('stateInfo') or {}).get('state', ''),
            operation_groups=[OperationGroup.from_dict(g) for g in content.get('operationGroups') or []],
            description=data.get('description', ''),
            recommender_subtype=data.get('recommenderSubtype', ''),
        )
